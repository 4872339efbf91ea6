# src/vacancies/pipeline/pagination.py
"""
Infinite scrolling over the page-based vacancy search.

InfiniteVacancySearch keeps the pages fetched so far for one search and
exposes them as a single flattened list, in page order, exactly as the
server returned them. Pages are fetched one at a time:

- fetch_next_page() does nothing while a fetch is running, or once the last
  page fetched reaches ceil(total / limit).
- A failed fetch keeps the pages already loaded and does not move the cursor,
  so calling fetch_next_page() again retries the same page.
- Changing the search (anything but the page) throws everything away and
  starts again from page 1. Results still arriving for the old search are
  ignored.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import Any, List, Optional

from vacancies.clients.gateway import RequestGateway
from vacancies.clients.vdab import search_vacancies
from vacancies.errors import ApiError
from vacancies.models import VacancySearchParams, VacancySearchResponse, VacancySearchResult, total_pages
from vacancies.pipeline.cache import QueryCache
from vacancies.pipeline.queries import SEARCH_TTL

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "infiniteVacancies"


class InfiniteVacancySearch:
    def __init__(
        self,
        gateway: RequestGateway,
        params: VacancySearchParams,
        *,
        cache: Optional[QueryCache] = None,
        ttl: float = SEARCH_TTL,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.ttl = ttl
        self._params = params.with_page(1)
        self._generation = 0
        self._fetching: Optional[int] = None  # generation of the running fetch
        self._pages: List[VacancySearchResponse] = []
        self.error: Optional[ApiError] = None

    # ---- Read model ------------------------------------------------------------

    @property
    def params(self) -> VacancySearchParams:
        return self._params

    @property
    def pages(self) -> List[VacancySearchResponse]:
        return list(self._pages)

    @property
    def items(self) -> List[VacancySearchResult]:
        return [item for page in self._pages for item in page.get("items", [])]

    @property
    def total(self) -> Optional[int]:
        return self._pages[-1].get("total") if self._pages else None

    @property
    def has_next_page(self) -> bool:
        if not self._pages:
            return True
        return total_pages(self._pages[-1]) > len(self._pages)

    @property
    def is_fetching_next_page(self) -> bool:
        return self._fetching is not None and self._fetching == self._generation

    @property
    def is_error(self) -> bool:
        return self.error is not None

    # ---- Commands --------------------------------------------------------------

    async def fetch_next_page(self) -> Optional[VacancySearchResponse]:
        """Fetch and append the next page. Returns None when nothing was fetched."""
        if self.is_fetching_next_page or not self.has_next_page:
            return None

        generation = self._generation
        params = self._params.with_page(len(self._pages) + 1)
        self._fetching = generation
        try:
            page = await self._fetch(params)
        except ApiError as e:
            if generation == self._generation:
                self.error = e
            raise
        finally:
            if self._fetching == generation:
                self._fetching = None

        if generation != self._generation:
            logger.debug("Dropping page %d of a search that was reset", params.page)
            return None

        self._pages.append(page)
        self.error = None
        logger.debug(
            "Fetched page %d/%d (%d items, total %s)",
            params.page, total_pages(page), len(page.get("items", [])), page.get("total"),
        )
        return page

    def set_params(self, params: VacancySearchParams) -> bool:
        """Switch to another search. Returns True when the result set was reset."""
        if params.same_search(self._params):
            return False
        self._params = params.with_page(1)
        self._reset()
        return True

    def update(self, **changes: Any) -> bool:
        """set_params with some fields changed, e.g. update(postal_code="2000")."""
        return self.set_params(replace(self._params, **changes))

    async def refetch(self) -> Optional[VacancySearchResponse]:
        """Start over from page 1, bypassing cached pages."""
        if self.cache is not None:
            self.cache.invalidate((CACHE_NAMESPACE, self._params))
        self._reset()
        return await self.fetch_next_page()

    async def fetch_all(self, max_pages: Optional[int] = None) -> List[VacancySearchResult]:
        """Keep fetching until the last page (or `max_pages` pages are loaded)."""
        while self.has_next_page and (max_pages is None or len(self._pages) < max_pages):
            if await self.fetch_next_page() is None:
                break
        return self.items

    # ---- Internals -------------------------------------------------------------

    def _reset(self) -> None:
        self._generation += 1
        self._pages = []
        self.error = None

    async def _fetch(self, params: VacancySearchParams) -> VacancySearchResponse:
        if self.cache is None:
            return await search_vacancies(self.gateway, params)
        key = (CACHE_NAMESPACE, params.with_page(1), params.page)
        return await self.cache.get_or_fetch(key, self.ttl, lambda: search_vacancies(self.gateway, params))
