# src/vacancies/models.py
"""
Typed shapes for requests going out and JSON coming back from the VDAB API.

Response payloads stay plain dicts: the TypedDicts below only document which
keys exist (wire names, camelCase). Request-side values are frozen dataclasses
because they must be hashable (cache keys) and validated up front.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Mapping, Optional, TypedDict, Union

from vacancies.errors import InvalidArgumentError

Primitive = Union[str, int, float, bool, None]
SortOrder = Literal["relevance", "date", "distance"]
Language = Literal["nl", "fr", "en"]

SORT_ORDERS = ("relevance", "date", "distance")
LANGUAGES = ("nl", "fr", "en")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT: SortOrder = "relevance"
DEFAULT_LANG: Language = "nl"


# ---- Request side ------------------------------------------------------------

@dataclass(frozen=True)
class RequestDescriptor:
    """
    Everything needed to execute one HTTP call.

    `response_type` is the top-level JSON container we expect back (dict or
    list); anything else counts as an undecodable body.
    """

    method: str
    path: str
    params: Mapping[str, Primitive] = field(default_factory=dict)
    body: Any = None
    response_type: type = dict

    def query_params(self) -> Dict[str, Primitive]:
        # Absent optional values are left out of the URL entirely.
        return {k: v for k, v in self.params.items() if v is not None}


@dataclass(frozen=True)
class VacancySearchParams:
    q: Optional[str] = None
    job_domain_id: Optional[str] = None
    postal_code: Optional[str] = None
    distance: Optional[float] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort: SortOrder = DEFAULT_SORT
    lang: Language = DEFAULT_LANG

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidArgumentError("page must be >= 1", field="page")
        if self.limit <= 0:
            raise InvalidArgumentError("limit must be > 0", field="limit")
        if self.sort not in SORT_ORDERS:
            raise InvalidArgumentError(f"sort must be one of {SORT_ORDERS}", field="sort")
        if self.lang not in LANGUAGES:
            raise InvalidArgumentError(f"lang must be one of {LANGUAGES}", field="lang")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_query(self) -> Dict[str, Primitive]:
        """Wire-level query parameters; page becomes an offset."""
        return {
            "q": self.q,
            "jobDomainId": self.job_domain_id,
            "postalCode": self.postal_code,
            "distance": self.distance,
            "offset": self.offset,
            "limit": self.limit,
            "sort": self.sort,
            "lang": self.lang,
        }

    def with_page(self, page: int) -> "VacancySearchParams":
        return replace(self, page=page)

    def same_search(self, other: "VacancySearchParams") -> bool:
        """True when both describe the same search, ignoring the page."""
        return self.with_page(DEFAULT_PAGE) == other.with_page(DEFAULT_PAGE)


# ---- Response side -----------------------------------------------------------

class JobDomain(TypedDict, total=False):
    """One node of the VDAB job-domain tree, as returned by /jobdomeinen."""

    # Domain identifier, used as `jobDomainId` in searches
    id: str

    # Display name in the requested language
    name: str

    # Id of the parent domain; missing or None for top-level domains
    parentId: Optional[str]

    # Depth in the tree, 1 for top-level domains
    level: int

    # Sub-domains, only present when the server nests them
    children: List["JobDomain"]


class Company(TypedDict, total=False):
    # Employer identifier
    id: str

    # Employer name as shown on the vacancy
    name: str

    # Absolute URL of the employer logo, if any
    logoUrl: Optional[str]


class Location(TypedDict, total=False):
    # Municipality and its Belgian postal code
    city: str
    postalCode: str

    # Street address, often omitted
    street: Optional[str]
    houseNumber: Optional[str]

    # WGS84 coordinates, when the server geocoded the address
    latitude: Optional[float]
    longitude: Optional[float]

    # Country name; usually "België"
    country: Optional[str]


class VacancySearchResult(TypedDict, total=False):
    """
    One vacancy in a search page.

    Keys follow the server's camelCase spelling; see pipeline/normalize.py
    for the flattened row shape used by exports.
    """

    # Vacancy identifier, used for details and similar-vacancy lookups
    id: str

    # Job title as posted
    title: str

    # Public VDAB page for the vacancy
    url: str

    # Employer of the vacancy
    company: Company

    # ISO timestamp, e.g. "2025-09-26T07:20:13Z"
    publicationDate: str

    # Workplace address
    location: Location

    # Job-domain name and id the vacancy is filed under
    jobDomain: Optional[str]
    jobDomainId: Optional[str]

    # True once the vacancy no longer accepts applications
    expired: bool


class VacancySearchResponse(TypedDict):
    # Server order (relevance/date/distance as requested). Never re-sorted here.
    items: List[VacancySearchResult]

    # Number of matches across all pages
    total: int

    # Page size and start index the server applied
    limit: int
    offset: int

    # Number of items in this page
    count: int


class Salary(TypedDict, total=False):
    # Free-text amount, e.g. "€ 2.800 - € 3.400"
    value: Optional[str]

    # Period the amount covers, e.g. "maand"
    period: Optional[str]

    # Extra-legal benefits, one per entry
    benefits: List[str]


class VacancyDetails(VacancySearchResult, total=False):
    # Full job description (may contain line breaks)
    description: str

    # Listed requirements and qualifications, one per entry
    requirements: List[str]
    qualifications: List[str]

    # Free-text labels from the server, e.g. "Vast" or "Voltijds"
    experienceLevel: Optional[str]
    contractType: Optional[str]
    workRegime: Optional[str]

    # Pay information, when published
    salary: Salary

    # Ways to apply; any of them may be missing
    applicationUrl: Optional[str]
    applicationEmail: Optional[str]
    applicationPhone: Optional[str]

    # Last day to apply, as an ISO date
    applicationDeadline: Optional[str]



def total_pages(page: Mapping[str, Any]) -> int:
    """
    Number of pages the server reports for a search, from any one page.
    A page without a usable limit is treated as the only page.
    """
    limit = page.get("limit") or 0
    if limit <= 0:
        return 0
    return math.ceil((page.get("total") or 0) / limit)
