from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List

import pytest

from jobboard.clients.feed import Feed
from jobboard.config import Settings, Target
from jobboard.models import JobRaw

NOW = datetime(2026, 2, 26, 4, 35, 12, tzinfo=timezone.utc)
STAMP = "26-Feb-2026 04:35 UTC"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_job() -> Callable[..., JobRaw]:
    """Build a job record with sensible defaults; keyword args override."""
    counter = iter(range(1, 100_000))

    def _make(**fields: Any) -> JobRaw:
        n = next(counter)
        job: JobRaw = {
            "id": f"job{n}",
            "title": f"Backend Engineer {n}",
            "company": f"Company {n}",
            "region": "WW",
            "isRemote": True,
            "scrapedAt": "2026-02-25T12:00:00Z",
            "visibility": "full",
        }
        job.update(fields)  # type: ignore[typeddict-item]
        return job

    return _make


@pytest.fixture
def sample_jobs(make_job: Callable[..., JobRaw]) -> List[JobRaw]:
    return [
        make_job(title="Staff Engineer", company="Acme", salaryMin=150000, salaryMax=180000,
                 verifiedAt="2026-02-25T00:00:00Z", skills="Python(0.95), AWS(0.80), Go"),
        make_job(region="NA", company="Initech", isRemote=False),
        make_job(region="EMEA", company="Globex", salary="£60k", verifiedAt="2026-02-20T00:00:00Z"),
        make_job(region="EMEA", company="Umbrella"),
        make_job(region="APAC", company="Hooli", salaryMax=90000),
        make_job(region="LATAM", company="Vandelay"),
        make_job(title="Careers", company="NoiseCo"),
        make_job(region="WW", isRemote=False, company="OfficeOnly"),
    ]


@pytest.fixture
def sample_feed(sample_jobs: List[JobRaw]) -> Feed:
    return Feed(meta={"type": "meta", "companyLogos": {"acme": "logo-1"}}, jobs=sample_jobs)


@pytest.fixture
def targets(tmp_path: Path) -> List[Target]:
    return Settings(
        main_dir=tmp_path / "main",
        emea_dir=tmp_path / "emea",
        apac_dir=tmp_path / "apac",
    ).targets()
