# src/vacancies/pipeline/domains.py
"""
Helpers for the job-domain tree: flatten it, and find a domain by a loosely
typed name ("ict", "Bouw") so the CLI can take names instead of ids.
"""

from __future__ import annotations
from typing import Iterable, List, Optional

from rapidfuzz import fuzz, process

from vacancies.models import JobDomain


def flatten_domains(domains: Iterable[JobDomain]) -> List[JobDomain]:
    """Depth-first, parents before their children."""
    out: List[JobDomain] = []
    for d in domains:
        out.append(d)
        out.extend(flatten_domains(d.get("children") or []))
    return out


def _clean(name: str) -> str:
    return " ".join((name or "").lower().split())


def find_job_domain(name: str, domains: Iterable[JobDomain], score_cutoff: int = 80) -> Optional[JobDomain]:
    """
    Return the best matching domain (searching nested children too) or None.
    The match score is stored on the returned dict as `_match_score`.
    """
    cand = _clean(name)
    if not cand:
        return None

    # Parallel lists so RapidFuzz only sees strings
    names: List[str] = []
    rows: List[JobDomain] = []
    for d in flatten_domains(domains):
        n = _clean(d.get("name", ""))
        if n:
            names.append(n)
            rows.append(d)
    if not names:
        return None

    best = process.extractOne(cand, names, scorer=fuzz.WRatio, score_cutoff=score_cutoff)
    if not best:
        return None

    _, score, idx = best
    match = dict(rows[idx])
    match["_match_score"] = score
    return match  # type: ignore[return-value]
