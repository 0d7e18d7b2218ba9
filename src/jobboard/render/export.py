# src/jobboard/render/export.py
"""Machine-readable jobs.json and the one-line change descriptors."""

from __future__ import annotations

import json
from typing import Iterable, List, Optional, Sequence

from jobboard.models import JobExport, JobRaw, has_salary, is_teaser
from jobboard.pipeline.rules import CURRENT, Ruleset
from jobboard.render.format import job_url, parse_skills


def export_job(job: JobRaw, ruleset: Ruleset, site_url: str, ref: str, region: Optional[str] = None) -> JobExport:
    """Simplified record; teasers never carry the company or a direct link."""
    teaser = is_teaser(job)
    return {
        "id": job.get("id"),
        "title": job.get("title"),
        "company": None if teaser else job.get("company"),
        "region": region or job.get("region"),
        "salary": ruleset.salary_display(job),
        "salaryMin": job.get("salaryMin") or None,
        "salaryMax": job.get("salaryMax") or None,
        "skills": parse_skills(job.get("skills")),
        "seniority": job.get("seniority") or None,
        "ats": job.get("ats") or None,
        "verifiedAt": job.get("verifiedAt") or None,
        "scrapedAt": job.get("scrapedAt") or None,
        "url": None if teaser else job_url(job, site_url, ref),
        "visibility": job.get("visibility") or "full",
    }


def build_data_json(
    jobs: Iterable[JobRaw],
    ruleset: Ruleset = CURRENT,
    *,
    site_url: str,
    ref: str,
    region: Optional[str] = None,
) -> List[JobExport]:
    return [export_job(j, ruleset, site_url, ref, region) for j in jobs]


def dump_json(records: Sequence[JobExport]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False)


def summary_line(jobs: Sequence[JobRaw], stamp: str, region: Optional[str] = None) -> str:
    """
    Change descriptor for one target, e.g.

        21,024 jobs | 9,100 with salary | 20,000 verified | 12 Pro teasers — 26-Feb-2026 04:35 UTC
        1,204 EMEA jobs | 500 with salary | 1,100 verified — 26-Feb-2026 04:35 UTC

    The history aggregator parses the count and timestamp back out of it.
    """
    salary = sum(1 for j in jobs if has_salary(j))
    verified = sum(1 for j in jobs if j.get("verifiedAt"))
    if region:
        return f"{len(jobs):,} {region} jobs | {salary:,} with salary | {verified:,} verified — {stamp}"
    teasers = sum(1 for j in jobs if is_teaser(j))
    return f"{len(jobs):,} jobs | {salary:,} with salary | {verified:,} verified | {teasers} Pro teasers — {stamp}"
