"""Row flattening, job-domain lookup, export and credential stores."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from vacancies.clients.credentials import EnvCredentialStore, KeyringCredentialStore, MemoryCredentialStore
from vacancies.io.export import COLUMNS, write_rows
from vacancies.pipeline.domains import find_job_domain, flatten_domains
from vacancies.pipeline.normalize import flatten_vacancies, flatten_vacancy

VACANCY = {
    "id": 123,
    "title": "  Zorgkundige  ",
    "url": "https://www.vdab.be/vindeenjob/vacatures/123",
    "company": {"id": "c1", "name": "AZ Sint-Jan"},
    "publicationDate": "2025-09-26T07:20:13Z",
    "location": {"city": "Brugge", "postalCode": "8000"},
    "jobDomain": "Gezondheidszorg",
    "expired": False,
}

DOMAINS = [
    {
        "id": "1",
        "name": "ICT",
        "level": 1,
        "children": [
            {"id": "11", "name": "Softwareontwikkeling", "parentId": "1", "level": 2},
            {"id": "12", "name": "Netwerkbeheer", "parentId": "1", "level": 2},
        ],
    },
    {"id": "2", "name": "Bouw", "level": 1},
]


def test_flatten_vacancy() -> None:
    assert flatten_vacancy(VACANCY) == {
        "id": "123",
        "title": "Zorgkundige",
        "company": "AZ Sint-Jan",
        "city": "Brugge",
        "postal_code": "8000",
        "job_domain": "Gezondheidszorg",
        "published": "2025-09-26",
        "url": "https://www.vdab.be/vindeenjob/vacatures/123",
        "expired": False,
    }


def test_flatten_vacancy_with_missing_fields() -> None:
    row = flatten_vacancy({"id": "9"})
    assert row["company"] is None
    assert row["published"] == ""
    assert row["title"] == ""


def test_flatten_vacancies_keeps_order() -> None:
    rows = flatten_vacancies([{"id": "3"}, {"id": "1"}, {"id": "2"}])
    assert [r["id"] for r in rows] == ["3", "1", "2"]


def test_flatten_domains_parents_first() -> None:
    assert [d["id"] for d in flatten_domains(DOMAINS)] == ["1", "11", "12", "2"]


@pytest.mark.parametrize("name, expected", [("ict", "1"), ("software ontwikkeling", "11"), ("netwerk beheer", "12")])
def test_find_job_domain(name, expected) -> None:
    match = find_job_domain(name, DOMAINS)
    assert match is not None
    assert match["id"] == expected
    assert match["_match_score"] >= 80


def test_find_job_domain_without_match() -> None:
    assert find_job_domain("astronaut", DOMAINS) is None
    assert find_job_domain("", DOMAINS) is None
    assert find_job_domain("ict", []) is None


def test_find_job_domain_does_not_mutate_input() -> None:
    find_job_domain("bouw", DOMAINS)
    assert "_match_score" not in DOMAINS[1]


def test_write_rows_csv(tmp_path) -> None:
    path = tmp_path / "vacatures.csv"

    assert write_rows(flatten_vacancies([VACANCY, {"id": "9", "title": "Lasser"}]), path) == 2

    df = pd.read_csv(path)
    assert list(df.columns) == COLUMNS
    assert df["title"].tolist() == ["Zorgkundige", "Lasser"]


def test_write_rows_json(tmp_path) -> None:
    path = tmp_path / "vacatures.json"

    write_rows(flatten_vacancies([VACANCY]), path)

    records = json.loads(path.read_text(encoding="utf-8"))
    assert records[0]["city"] == "Brugge"


def test_write_no_rows_gives_header_only(tmp_path) -> None:
    path = tmp_path / "empty.csv"
    assert write_rows([], path) == 0
    assert path.read_text().strip() == ",".join(COLUMNS)


def test_memory_store() -> None:
    store = MemoryCredentialStore()
    assert store.get() is None
    store.set("abc")
    assert store.get() == "abc"
    store.delete()
    assert store.get() is None


def test_env_store(monkeypatch: pytest.MonkeyPatch) -> None:
    store = EnvCredentialStore()
    assert store.get() is None
    monkeypatch.setenv("VDAB_API_KEY", "from-env")
    assert store.get() == "from-env"


def test_keyring_store_failure_reads_as_no_credential(monkeypatch: pytest.MonkeyPatch) -> None:
    from keyring.errors import KeyringError

    def locked(service, entry):
        raise KeyringError("locked")

    monkeypatch.setattr("keyring.get_password", locked)
    assert KeyringCredentialStore().get() is None


def test_keyring_store_round_trip(monkeypatch: pytest.MonkeyPatch) -> None:
    vault = {}
    monkeypatch.setattr("keyring.get_password", lambda s, e: vault.get((s, e)))
    monkeypatch.setattr("keyring.set_password", lambda s, e, v: vault.__setitem__((s, e), v))
    monkeypatch.setattr("keyring.delete_password", lambda s, e: vault.pop((s, e)))

    store = KeyringCredentialStore()
    store.set("secret")
    assert vault == {("vdab", "vdab_api_key"): "secret"}
    assert store.get() == "secret"
    store.delete()
    assert store.get() is None
