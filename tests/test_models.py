"""Search parameters, settings and error helpers."""

from __future__ import annotations

import json

import httpx
import pytest

from vacancies.config import API_REQUEST_LIMIT_PER_SECOND, DEFAULT_BASE_URL, Settings, load_settings
from vacancies.errors import ApiError, InvalidArgumentError, ProtocolError, TransportError, normalize_error
from vacancies.models import VacancySearchParams, total_pages


class TestVacancySearchParams:
    def test_defaults(self) -> None:
        params = VacancySearchParams()
        assert (params.page, params.limit, params.sort, params.lang) == (1, 10, "relevance", "nl")
        assert params.offset == 0

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"page": 0}, "page"),
            ({"limit": 0}, "limit"),
            ({"sort": "salary"}, "sort"),
            ({"lang": "de"}, "lang"),
        ],
    )
    def test_invalid_values(self, kwargs, field) -> None:
        with pytest.raises(InvalidArgumentError) as info:
            VacancySearchParams(**kwargs)
        assert info.value.field == field
        assert isinstance(info.value, ValueError)

    def test_offset_follows_page(self) -> None:
        assert VacancySearchParams(page=4, limit=15).offset == 45

    def test_same_search_ignores_page(self) -> None:
        a = VacancySearchParams(q="kok", postal_code="9000")
        assert a.same_search(a.with_page(3))
        assert not a.same_search(VacancySearchParams(q="kok", postal_code="2000"))

    def test_hashable(self) -> None:
        assert len({VacancySearchParams(q="a"), VacancySearchParams(q="a")}) == 1


@pytest.mark.parametrize(
    "page, expected",
    [
        ({"total": 47, "limit": 15}, 4),
        ({"total": 45, "limit": 15}, 3),
        ({"total": 0, "limit": 10}, 0),
        ({"total": 5, "limit": 0}, 0),
    ],
)
def test_total_pages(page, expected) -> None:
    assert total_pages(page) == expected


class TestSettings:
    def test_defaults(self) -> None:
        settings = load_settings({})
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.rate_limit == API_REQUEST_LIMIT_PER_SECOND
        assert settings.queue_timeout is None
        assert settings.api_key is None
        assert settings.dispatch_interval == pytest.approx(1 / 3)

    def test_from_env(self) -> None:
        settings = load_settings({
            "VDAB_BASE_URL": "https://example.test/api/",
            "VDAB_RATE_LIMIT": "5",
            "VDAB_TIMEOUT": "2.5",
            "VDAB_QUEUE_TIMEOUT": "30",
            "VDAB_API_KEY": "k",
        })
        assert settings.base_url == "https://example.test/api"
        assert settings.dispatch_interval == pytest.approx(0.2)
        assert settings.timeout == 2.5
        assert settings.queue_timeout == 30
        assert settings.api_key == "k"

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VDAB_RATE_LIMIT", "7")
        assert load_settings().rate_limit == 7

    @pytest.mark.parametrize("env", [{"VDAB_RATE_LIMIT": "0"}, {"VDAB_RATE_LIMIT": "fast"}, {"VDAB_TIMEOUT": "-1"}])
    def test_invalid_values(self, env) -> None:
        with pytest.raises(ValueError):
            load_settings(env)

    def test_frozen(self) -> None:
        with pytest.raises(Exception):
            Settings().rate_limit = 10  # type: ignore[misc]


class TestNormalizeError:
    def test_api_errors_pass_through(self) -> None:
        error = TransportError("TIMEOUT", "slow")
        assert normalize_error(error) is error

    def test_decode_error(self) -> None:
        with pytest.raises(json.JSONDecodeError) as info:
            json.loads("{nope")
        error = normalize_error(info.value)
        assert isinstance(error, ProtocolError)
        assert error.code == "DECODE_ERROR"

    def test_connect_timeout_is_a_timeout(self) -> None:
        request = httpx.Request("GET", "https://api.test/vacatures")
        error = normalize_error(httpx.ConnectTimeout("connect timed out", request=request))
        assert isinstance(error, TransportError)
        assert error.code == "TIMEOUT"

    def test_other_transport_errors(self) -> None:
        request = httpx.Request("GET", "https://api.test/vacatures")
        error = normalize_error(httpx.RemoteProtocolError("peer closed", request=request))
        assert error.code == "NETWORK_ERROR"

    def test_anything_else_is_unknown(self) -> None:
        error = normalize_error(RuntimeError("boom"))
        assert type(error) is ApiError
        assert error.to_dict() == {"code": "UNKNOWN_ERROR", "message": "boom"}
