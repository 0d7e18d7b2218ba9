# src/jobboard/pipeline/filter.py
import re
from typing import Dict, Iterable, List

from jobboard.models import REGIONS, JobRaw

# Generic careers-page titles that slip through the API as "jobs"
NOISE_TITLES = re.compile(
    r"^(careers?|job\s+openings?|open\s+positions?|positions?"
    r"|current\s+(job\s+)?openings?|join\s+our\s+team|work\s+(with|at|for)\s+us)$",
    re.IGNORECASE,
)


def is_noise(job: JobRaw) -> bool:
    return NOISE_TITLES.match((job.get("title") or "").strip()) is not None


def filter_noise(jobs: Iterable[JobRaw]) -> List[JobRaw]:
    """
    Keep only jobs whose title is not a generic careers-page phrase.
    Returns a new list; running it twice changes nothing.
    """
    return [j for j in jobs if not is_noise(j)]


def group_by_region(jobs: Iterable[JobRaw], *, drop_unknown: bool = True) -> Dict[str, List[JobRaw]]:
    """
    Bucket jobs by region code.

    - Noise titles never land in any bucket.
    - A missing region counts as WW, and the WW bucket only takes jobs with
      isRemote true (WW means unrestricted remote, not "unspecified").
    - Unrecognized codes are dropped, or with drop_unknown=False treated as WW.
    """
    groups: Dict[str, List[JobRaw]] = {code: [] for code in REGIONS}
    for job in filter_noise(jobs):
        region = job.get("region") or "WW"
        if region not in groups:
            if drop_unknown:
                continue
            region = "WW"
        if region == "WW" and job.get("isRemote") is not True:
            continue
        groups[region].append(job)
    return groups
