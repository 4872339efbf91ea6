# src/vacancies/cli.py
"""
Command-line interface for the VDAB vacancy client.

This module provides CLI commands to:
- Search vacancies (several pages at once) and print or export them
- Show one vacancy, or vacancies similar to it
- Browse job domains, or resolve one by name
- Store / remove the API key in the system keyring
"""

from dotenv import load_dotenv
load_dotenv(override=True)  # automatically looks for a .env file in the project root

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import typer

from vacancies.clients import vdab
from vacancies.clients.credentials import KeyringCredentialStore, MemoryCredentialStore
from vacancies.clients.gateway import RequestGateway
from vacancies.config import load_settings
from vacancies.errors import ApiError, InvalidArgumentError
from vacancies.io.export import write_rows
from vacancies.models import VacancySearchParams
from vacancies.pipeline.domains import find_job_domain, flatten_domains
from vacancies.pipeline.normalize import flatten_vacancies
from vacancies.pipeline.pagination import InfiniteVacancySearch

T = TypeVar("T")

# Typer app instance for CLI commands
app = typer.Typer(help="Search VDAB vacancies")

_options: Dict[str, Any] = {"api_key": None}


@app.callback()
def main(
    api_key: Optional[str] = typer.Option(
        None, "--api-key", envvar="VDAB_API_KEY", help="API key (defaults to the one stored with `login`)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _options["api_key"] = api_key


def build_gateway(api_key: Optional[str] = None) -> RequestGateway:
    settings = load_settings()
    credentials = MemoryCredentialStore(api_key) if api_key else KeyringCredentialStore()
    return RequestGateway(settings, credentials)


def _run(work: Callable[[RequestGateway], Awaitable[T]]) -> T:
    """Run one unit of async work against a fresh gateway; ApiErrors become exit code 1."""

    async def runner() -> T:
        async with build_gateway(_options["api_key"]) as gateway:
            return await work(gateway)

    try:
        return asyncio.run(runner())
    except ApiError as e:
        typer.echo(f"{e.code}: {e.message}", err=True)
        raise typer.Exit(code=1)


def _print_rows(rows: list[dict]) -> None:
    for r in rows:
        where = f" ({r['city']})" if r.get("city") else ""
        flag = " [expired]" if r.get("expired") else ""
        typer.echo(f"{r['id']}  {r['title']} — {r.get('company') or '?'}{where}{flag}")


async def _resolve_domain(gateway: RequestGateway, domain: str, lang: str) -> str:
    # Numeric values are ids already; anything else is matched by name.
    if domain.isdigit():
        return domain
    match = find_job_domain(domain, await vdab.get_job_domains(gateway, lang))
    if match is None:
        raise InvalidArgumentError(f"No job domain matches {domain!r}", field="domain")
    typer.echo(f"Using job domain {match['name']} ({match['id']})", err=True)
    return str(match["id"])


@app.command()
def search(
    query: str = typer.Argument("", help="Free text, e.g. 'data engineer'"),
    postal_code: Optional[str] = typer.Option(None, "--postal-code", help="e.g. 9000"),
    distance: Optional[float] = typer.Option(None, "--distance", help="Radius around --postal-code in km"),
    domain: Optional[str] = typer.Option(None, "--domain", help="Job domain id or (fuzzy) name"),
    sort: str = typer.Option("relevance", "--sort", help="relevance | date | distance"),
    lang: str = typer.Option("nl", "--lang", help="nl | fr | en"),
    limit: int = typer.Option(10, "--limit", help="Results per page"),
    pages: int = typer.Option(1, "--pages", help="How many pages to fetch"),
    export: Optional[Path] = typer.Option(None, "--export", help="Write rows to a .csv or .json file"),
    as_json: bool = typer.Option(False, "--json", help="Print rows as JSON"),
):
    """
    Search vacancies → fetch up to --pages pages → print, or export to a file.
    """

    async def work(gateway: RequestGateway) -> InfiniteVacancySearch:
        domain_id = await _resolve_domain(gateway, domain, lang) if domain else None
        params = VacancySearchParams(
            q=query or None,
            job_domain_id=domain_id,
            postal_code=postal_code,
            distance=distance,
            limit=limit,
            sort=sort,  # type: ignore[arg-type]
            lang=lang,  # type: ignore[arg-type]
        )
        results = InfiniteVacancySearch(gateway, params)
        await results.fetch_all(max_pages=pages)
        return results

    results = _run(work)
    rows = flatten_vacancies(results.items)

    if export:
        n = write_rows(rows, export)
        typer.echo(f"Wrote {n} rows to {export} ({results.total} matching in total).")
        return
    if as_json:
        typer.echo(json.dumps({
            "total": results.total,
            "fetched": len(rows),
            "has_more": results.has_next_page,
            "rows": rows,
        }, indent=2, ensure_ascii=False))
        return

    typer.echo(f"{len(rows)} of {results.total} vacancies:")
    _print_rows(rows)


@app.command()
def vacancy(
    id: str = typer.Argument(..., help="Vacancy id"),
    lang: str = typer.Option("nl", "--lang"),
):
    """Print the full details of one vacancy as JSON."""
    details = _run(lambda gateway: vdab.get_vacancy_by_id(gateway, id, lang))
    typer.echo(json.dumps(details, indent=2, ensure_ascii=False))


@app.command()
def similar(
    id: str = typer.Argument(..., help="Vacancy id"),
    limit: int = typer.Option(vdab.DEFAULT_SIMILAR_LIMIT, "--limit"),
):
    """List vacancies similar to the given one."""
    page = _run(lambda gateway: vdab.get_similar_vacancies(gateway, id, limit))
    _print_rows(flatten_vacancies(page.get("items", [])))


@app.command()
def domains(
    parent: Optional[str] = typer.Option(None, "--parent", help="Only children of this domain id"),
    match: Optional[str] = typer.Option(None, "--match", help="Show the domain best matching this name"),
    lang: str = typer.Option("nl", "--lang"),
):
    """List job domains, or resolve one by name."""

    async def work(gateway: RequestGateway) -> list:
        if parent:
            return await vdab.get_child_job_domains(gateway, parent, lang)
        return await vdab.get_job_domains(gateway, lang)

    found = _run(work)
    if match:
        best = find_job_domain(match, found)
        if best is None:
            typer.echo(f"No job domain matches {match!r}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"{best['id']}  {best['name']}  (score={best['_match_score']:.0f})")
        return

    for d in flatten_domains(found):
        indent = "  " * max(int(d.get("level") or 1) - 1, 0)
        typer.echo(f"{indent}{d['id']}  {d.get('name', '')}")


@app.command()
def login(api_key: str = typer.Option(..., prompt=True, hide_input=True, help="Your VDAB API key")):
    """Store the API key in the system keyring."""
    KeyringCredentialStore().set(api_key)
    typer.echo("API key stored.")


@app.command()
def logout():
    """Remove the stored API key."""
    KeyringCredentialStore().delete()
    typer.echo("API key removed.")


if __name__ == "__main__":
    app()
