# src/vacancies/clients/vdab.py

"""
Plain async functions for the VDAB vacancy and job-domain endpoints.

Design goals:
- Keep URL paths and query parameter names here so the rest of the code never
  deals with them.
- Every call goes through a RequestGateway (rate limit, auth, error shape).
- Validate required ids *before* queuing, so a bad call never costs a slot.
- Return the raw JSON (dicts/lists); flatten for display elsewhere.
"""

from __future__ import annotations
from typing import Any, List, Mapping, Optional

from vacancies.clients.gateway import RequestGateway
from vacancies.errors import InvalidArgumentError
from vacancies.models import (
    DEFAULT_LANG,
    JobDomain,
    RequestDescriptor,
    VacancyDetails,
    VacancySearchParams,
    VacancySearchResponse,
)

VACANCIES_PATH = "/vacatures"
JOB_DOMAINS_PATH = "/jobdomeinen"
DEFAULT_SIMILAR_LIMIT = 5


# ---- Internal helpers ---------------------------------------------------------

def validate_required(values: Mapping[str, Any]) -> None:
    """
    Raise InvalidArgumentError for the first value that is None or blank.
    """
    for name, value in values.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidArgumentError(f"{name} is required", field=name)


def _get(path: str, params: Mapping[str, Any], response_type: type = dict) -> RequestDescriptor:
    return RequestDescriptor(method="GET", path=path, params=dict(params), response_type=response_type)


# ---- Vacancies ----------------------------------------------------------------

async def search_vacancies(gateway: RequestGateway, params: VacancySearchParams) -> VacancySearchResponse:
    """
    Fetch ONE page of search results.

    The page number becomes an offset: offset = (page - 1) * limit. Items come
    back in the order the server chose for `params.sort`.
    """
    return await gateway.enqueue_request(_get(VACANCIES_PATH, params.to_query()))


async def get_vacancy_by_id(gateway: RequestGateway, id: str, lang: str = DEFAULT_LANG) -> VacancyDetails:
    validate_required({"id": id})
    return await gateway.enqueue_request(_get(f"{VACANCIES_PATH}/{id}", {"lang": lang}))


async def get_similar_vacancies(
    gateway: RequestGateway, id: str, limit: int = DEFAULT_SIMILAR_LIMIT
) -> VacancySearchResponse:
    validate_required({"id": id})
    if limit <= 0:
        raise InvalidArgumentError("limit must be > 0", field="limit")
    return await gateway.enqueue_request(_get(f"{VACANCIES_PATH}/{id}/similar", {"limit": limit}))


# ---- Job domains ----------------------------------------------------------------

async def get_job_domains(gateway: RequestGateway, lang: str = DEFAULT_LANG) -> List[JobDomain]:
    return await gateway.enqueue_request(_get(JOB_DOMAINS_PATH, {"lang": lang}, response_type=list))


async def get_job_domain_by_id(gateway: RequestGateway, id: str, lang: str = DEFAULT_LANG) -> JobDomain:
    validate_required({"id": id})
    return await gateway.enqueue_request(_get(f"{JOB_DOMAINS_PATH}/{id}", {"lang": lang}))


async def get_child_job_domains(
    gateway: RequestGateway, parent_id: str, lang: str = DEFAULT_LANG
) -> List[JobDomain]:
    validate_required({"parent_id": parent_id})
    return await gateway.enqueue_request(
        _get(f"{JOB_DOMAINS_PATH}/{parent_id}/children", {"lang": lang}, response_type=list)
    )
