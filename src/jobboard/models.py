# src/jobboard/models.py
"""
Lightweight typed dictionaries for the records flowing through the publisher.

Everything coming off the feed stays a plain dict with type hints; nothing is
validated or mutated after the fetch. Derived views (buckets, sorted lists,
exports) are always new values.
"""

from typing import Dict, List, NamedTuple, Optional, TypedDict


REGIONS = ("WW", "EMEA", "APAC", "NA", "LATAM")

# Region code to human label
REGION_LABELS: Dict[str, str] = {
    "WW": "Remote Worldwide",
    "EMEA": "Europe & Middle East",
    "APAC": "Asia-Pacific",
    "NA": "North America",
    "LATAM": "Latin America",
}


class JobRaw(TypedDict, total=False):
    """
    One job posting as received in the `d` payload of a `job` feed line.

    Field names follow the API (camelCase), so a record can be passed around
    exactly as it was decoded.
    """

    id: str
    title: str
    company: Optional[str]

    # WW / EMEA / APAC / NA / LATAM, absent means WW
    region: Optional[str]
    isRemote: bool

    # Free text, may be a placeholder such as "Unknown"
    location: Optional[str]

    # Human-readable salary ("$40/hour", "£60k"), plus annual USD bounds
    salary: Optional[str]
    salaryMin: Optional[float]
    salaryMax: Optional[float]

    # "Python(0.95), AWS(0.80), Go"
    skills: Optional[str]

    seniority: Optional[str]
    ats: Optional[str]
    verifiedAt: Optional[str]
    scrapedAt: Optional[str]

    # "full" or "teaser"
    visibility: str


class FeedMeta(TypedDict, total=False):
    """The `meta` line of the feed. Only companyLogos is used."""

    type: str
    companyLogos: Dict[str, str]


class JobExport(TypedDict):
    """Simplified record written to data/jobs.json."""

    id: str
    title: str
    company: Optional[str]
    region: Optional[str]
    salary: str
    salaryMin: Optional[float]
    salaryMax: Optional[float]
    skills: List[str]
    seniority: Optional[str]
    ats: Optional[str]
    verifiedAt: Optional[str]
    scrapedAt: Optional[str]
    url: Optional[str]
    visibility: str


class LedgerEntry(NamedTuple):
    """One prior publication of a target."""

    revision: str
    timestamp: str
    count: str
    url: Optional[str] = None


class RegionStats(NamedTuple):
    code: str
    label: str
    total: int
    with_salary: int
    verified: int


def has_salary(job: JobRaw) -> bool:
    return bool(job.get("salaryMin") or job.get("salaryMax") or job.get("salary"))


def is_teaser(job: JobRaw) -> bool:
    return job.get("visibility") == "teaser"
