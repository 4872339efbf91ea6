# src/vacancies/pipeline/queries.py
"""
The query functions from vacancies.clients.vdab, each behind the cache with
its own staleness window. Reference data (job domains) changes rarely, so it
is kept much longer than search results.
"""

from __future__ import annotations
from typing import List, Optional

from vacancies.clients import vdab
from vacancies.clients.gateway import RequestGateway
from vacancies.models import (
    DEFAULT_LANG,
    JobDomain,
    VacancyDetails,
    VacancySearchParams,
    VacancySearchResponse,
)
from vacancies.pipeline.cache import QueryCache

MINUTE = 60.0
SEARCH_TTL = 5 * MINUTE
VACANCY_TTL = 10 * MINUTE
SIMILAR_TTL = 5 * MINUTE
JOB_DOMAIN_TTL = 24 * 60 * MINUTE


class CachedQueries:
    def __init__(self, gateway: RequestGateway, cache: Optional[QueryCache] = None) -> None:
        self.gateway = gateway
        self.cache = cache if cache is not None else QueryCache()

    async def search_vacancies(self, params: VacancySearchParams) -> VacancySearchResponse:
        return await self.cache.get_or_fetch(
            ("vacancies", params), SEARCH_TTL, lambda: vdab.search_vacancies(self.gateway, params)
        )

    async def get_vacancy_by_id(self, id: str, lang: str = DEFAULT_LANG) -> VacancyDetails:
        vdab.validate_required({"id": id})
        return await self.cache.get_or_fetch(
            ("vacancy", id, lang), VACANCY_TTL, lambda: vdab.get_vacancy_by_id(self.gateway, id, lang)
        )

    async def get_similar_vacancies(
        self, id: str, limit: int = vdab.DEFAULT_SIMILAR_LIMIT
    ) -> VacancySearchResponse:
        vdab.validate_required({"id": id})
        return await self.cache.get_or_fetch(
            ("similarVacancies", id, limit),
            SIMILAR_TTL,
            lambda: vdab.get_similar_vacancies(self.gateway, id, limit),
        )

    async def get_job_domains(self, lang: str = DEFAULT_LANG) -> List[JobDomain]:
        return await self.cache.get_or_fetch(
            ("jobDomains", lang), JOB_DOMAIN_TTL, lambda: vdab.get_job_domains(self.gateway, lang)
        )

    async def get_job_domain_by_id(self, id: str, lang: str = DEFAULT_LANG) -> JobDomain:
        vdab.validate_required({"id": id})
        return await self.cache.get_or_fetch(
            ("jobDomain", id, lang), JOB_DOMAIN_TTL, lambda: vdab.get_job_domain_by_id(self.gateway, id, lang)
        )

    async def get_child_job_domains(self, parent_id: str, lang: str = DEFAULT_LANG) -> List[JobDomain]:
        vdab.validate_required({"parent_id": parent_id})
        return await self.cache.get_or_fetch(
            ("childJobDomains", parent_id, lang),
            JOB_DOMAIN_TTL,
            lambda: vdab.get_child_job_domains(self.gateway, parent_id, lang),
        )
