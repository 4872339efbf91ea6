# src/vacancies/pipeline/normalize.py
"""
Turn VDAB's nested vacancy JSON into flat rows for printing and export.

Order is preserved: rows come out in the order the server returned them.
"""
from typing import Iterable, List, Optional

from vacancies.models import VacancySearchResult


def _published_ymd(raw: Optional[str]) -> str:
    # VDAB format: "2025-09-26T07:20:13Z"
    if not raw:
        return ""
    return raw.split("T", 1)[0]  # "YYYY-MM-DD"


def flatten_vacancy(x: VacancySearchResult) -> dict:
    company = x.get("company") or {}
    location = x.get("location") or {}
    return {
        "id": str(x.get("id", "")),
        "title": (x.get("title") or "").strip(),
        # Company and location are nested objects in the API response
        "company": company.get("name"),
        "city": location.get("city"),
        "postal_code": location.get("postalCode"),
        "job_domain": x.get("jobDomain"),
        "published": _published_ymd(x.get("publicationDate")),
        "url": x.get("url", ""),
        "expired": bool(x.get("expired", False)),
    }


def flatten_vacancies(items: Iterable[VacancySearchResult]) -> List[dict]:
    return [flatten_vacancy(x) for x in items]
