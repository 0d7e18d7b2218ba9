# src/jobboard/pipeline/rules.py
"""
Versioned display/ordering policies.

The publisher has gone through two rule sets. Rather than keep two copies of
the pipeline, each concern that changed is one strategy on a Ruleset:

    current  numeric-only salary, freshest first, unknown regions dropped
    legacy   salary string preferred, best paid first, unknown regions -> WW
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List

from jobboard.models import JobRaw
from jobboard.render.format import parse_ts, salary_numeric, salary_prefer_text

# Anything above this is an annualized hourly rate or junk
SALARY_SORT_CAP = 600_000

_HOURLY_RE = re.compile(r"/hour", re.IGNORECASE)


def salary_sort_value(job: JobRaw) -> float:
    """Salary used for ordering; 0 means "sort as if no salary"."""
    if _HOURLY_RE.search(job.get("salary") or ""):
        return 0
    v = job.get("salaryMax") or job.get("salaryMin") or 0
    return 0 if v > SALARY_SORT_CAP else v


def _scraped_key(job: JobRaw) -> float:
    dt = parse_ts(job.get("scrapedAt"))
    return dt.timestamp() if dt else float("-inf")


def sort_by_freshness(jobs: Iterable[JobRaw]) -> List[JobRaw]:
    """Most recently scraped first; undated jobs last."""
    return sorted(jobs, key=_scraped_key, reverse=True)


def sort_by_salary_then_freshness(jobs: Iterable[JobRaw]) -> List[JobRaw]:
    """Jobs with a (capped) salary first, highest first, then most recently scraped."""

    def key(job: JobRaw):
        sal = salary_sort_value(job)
        return (0 if sal else 1, -sal, -_scraped_key(job))

    return sorted(jobs, key=key)


@dataclass(frozen=True)
class Ruleset:
    name: str
    salary_display: Callable[[JobRaw], str]
    sort_jobs: Callable[[Iterable[JobRaw]], List[JobRaw]]
    drop_unknown_regions: bool


CURRENT = Ruleset(
    name="current",
    salary_display=salary_numeric,
    sort_jobs=sort_by_freshness,
    drop_unknown_regions=True,
)

LEGACY = Ruleset(
    name="legacy",
    salary_display=salary_prefer_text,
    sort_jobs=sort_by_salary_then_freshness,
    drop_unknown_regions=False,
)

RULESETS: Dict[str, Ruleset] = {r.name: r for r in (CURRENT, LEGACY)}


def get_ruleset(name: str) -> Ruleset:
    try:
        return RULESETS[name]
    except KeyError:
        raise ValueError(f"Unknown ruleset {name!r}; choose from {', '.join(RULESETS)}") from None
