"""Tests for the in-memory render pipeline: README tables, jobs.json, summaries, history."""

import json
from datetime import datetime
from typing import Callable, List

import pytest

from jobboard.clients.feed import Feed
from jobboard.config import Target
from jobboard.models import JobRaw, LedgerEntry, has_salary
from jobboard.pipeline.publish import EmptyFeedError, build_publication
from jobboard.pipeline.rules import LEGACY
from jobboard.render.export import summary_line
from jobboard.render.markdown import RenderContext, job_table, main_readme, region_readme, table_rows

MakeJob = Callable[..., JobRaw]
STAMP = "26-Feb-2026 04:35 UTC"


def _body_rows(table: str) -> List[str]:
    return [l for l in table.splitlines() if l.startswith("| ") and not l.startswith("| Company")]


class TestBuildPublication:
    def test_empty_feed_aborts(self, targets: List[Target], now: datetime) -> None:
        with pytest.raises(EmptyFeedError):
            build_publication(Feed(), targets, now=now)

    def test_idempotent(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        a = build_publication(sample_feed, targets, now=now)
        b = build_publication(sample_feed, targets, now=now)
        assert a.files() == b.files()

    def test_file_order(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        pub = build_publication(sample_feed, targets, now=now)
        paths = [f.path for f in pub.files()]
        assert paths[0] == targets[0].readme_path
        assert paths[4] == targets[1].readme_path
        assert paths[8] == targets[2].readme_path
        assert len(paths) == 12

    def test_input_untouched(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        before = [dict(j) for j in sample_feed.jobs]
        build_publication(sample_feed, targets, now=now)
        assert sample_feed.jobs == before

    def test_buckets(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        pub = build_publication(sample_feed, targets, now=now)
        counts = {s.code: s.total for s in pub.stats}
        # noise title and the non-remote WW job are gone
        assert counts == {"WW": 1, "EMEA": 2, "APAC": 1, "NA": 1, "LATAM": 1}

    def test_main_export(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        pub = build_publication(sample_feed, targets, now=now)
        data = json.loads(pub.outputs[0].data)
        companies = {d["company"] for d in data}
        assert "NoiseCo" not in companies
        assert "OfficeOnly" not in companies
        acme = next(d for d in data if d["company"] == "Acme")
        assert list(acme) == [
            "id", "title", "company", "region", "salary", "salaryMin", "salaryMax", "skills",
            "seniority", "ats", "verifiedAt", "scrapedAt", "url", "visibility",
        ]
        assert acme["salary"] == "$150k–$180k/year"
        assert acme["skills"] == ["Python", "AWS", "Go"]
        assert acme["url"].startswith("https://wagey.gg/jobs/")
        assert acme["visibility"] == "full"

    def test_region_exports(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        pub = build_publication(sample_feed, targets, now=now)
        emea = json.loads(pub.outputs[1].data)
        apac = json.loads(pub.outputs[2].data)
        assert {d["company"] for d in emea} == {"Globex", "Umbrella"}
        assert [d["region"] for d in apac] == ["APAC"]

    def test_summaries(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        pub = build_publication(sample_feed, targets, now=now)
        assert pub.summaries == {
            "main": f"6 jobs | 3 with salary | 2 verified | 0 Pro teasers — {STAMP}",
            "emea": f"2 EMEA jobs | 1 with salary | 1 verified — {STAMP}",
            "apac": f"1 APAC jobs | 1 with salary | 0 verified — {STAMP}",
        }

    def test_readme_counts_match_rows(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        pub = build_publication(sample_feed, targets, now=now)
        readme = pub.outputs[1].readme
        assert f"| **Europe & Middle East as of {STAMP}** | **2** | **1** | **1** |" in readme
        assert len(_body_rows(readme.split("## Jobs")[1].split("## Update History")[0])) == 2

    def test_main_readme_sections(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        readme = build_publication(sample_feed, targets, now=now).outputs[0].readme
        assert '## <a id="ww"></a>Remote Worldwide (1)' in readme
        assert f"| **Total as of {STAMP}** | **6** | **3** | **2** |" in readme
        assert "https://wagey.gg/api/company-logo?id=logo-1" in readme
        # EMEA jobs live in their own repo, not inline
        assert "Globex" not in readme

    def test_history_includes_current_run(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        ledgers = {
            "main": [LedgerEntry("aaaaaaa", "26-Feb-2026 03:35 UTC", "5")],
            "emea": [LedgerEntry("bbbbbbb", "26-Feb-2026 03:35 UTC", "2")],
        }
        pub = build_publication(sample_feed, targets, now=now, ledgers=ledgers)
        assert [r.timestamp for r in pub.history] == [STAMP, "26-Feb-2026 03:35 UTC"]
        readme = pub.outputs[2].readme
        assert "| 26-Feb-2026 03:35 UTC | `aaaaaaa` 5 | `bbbbbbb` 2 | — |" in readme
        assert "| Time (UTC) | Main | EMEA | APAC |" in readme

    def test_ledgers_written(self, sample_feed: Feed, targets: List[Target], now: datetime) -> None:
        prior = {"apac": [LedgerEntry("ccccccc", "25-Feb-2026 04:35 UTC", "3")]}
        pub = build_publication(sample_feed, targets, now=now, ledgers=prior)
        lines = [json.loads(l) for l in pub.outputs[2].ledger.splitlines()]
        assert lines[0]["timestamp"] == STAMP
        assert lines[0]["count"] == "1"
        assert len(lines[0]["revision"]) == 7
        assert lines[1]["revision"] == "ccccccc"


class TestTeaser:
    def test_export_redacted(self, make_job: MakeJob, targets: List[Target], now: datetime) -> None:
        teaser = make_job(company="SecretCorp", visibility="teaser", title="Principal Engineer")
        pub = build_publication(Feed(jobs=[teaser]), targets, now=now)
        record = json.loads(pub.outputs[0].data)[0]
        assert record["company"] is None
        assert record["url"] is None
        assert record["visibility"] == "teaser"

    def test_readme_redacted(self, make_job: MakeJob, targets: List[Target], now: datetime) -> None:
        teaser = make_job(company="SecretCorp", visibility="teaser", title="Principal Engineer")
        pub = build_publication(Feed(jobs=[teaser]), targets, now=now)
        readme = pub.outputs[0].readme
        assert "SecretCorp" not in readme
        assert "secretcorp" not in readme
        assert "[🔒 Pro](https://wagey.gg/pricing?ref=github)" in readme
        assert "/jobs/job" not in readme
        assert "1 Pro teasers" in pub.summaries["main"]


class TestJobTable:
    def test_empty(self, now: datetime) -> None:
        assert job_table([], RenderContext(now=now)) == "*No jobs currently listed.*\n"

    def test_cap(self, make_job: MakeJob, now: datetime) -> None:
        jobs = [make_job() for _ in range(7)]
        assert len(_body_rows(job_table(jobs, RenderContext(now=now), limit=5))) == 5

    def test_default_cap(self, make_job: MakeJob, now: datetime) -> None:
        jobs = [make_job(region="EMEA") for _ in range(503)]
        readme = region_readme("EMEA", {"EMEA": jobs}, RenderContext(now=now))
        assert len(_body_rows(readme.split("## Jobs")[1])) == 500
        assert "*Showing the first 500 of 503.*" in readme

    def test_with_salary_count_matches_rendered(self, make_job: MakeJob, now: datetime) -> None:
        ctx = RenderContext(now=now)
        jobs = [make_job(salaryMin=100_000), make_job(), make_job(salary="$50/hour"), make_job()]
        rows = table_rows(jobs, ctx)
        summary = summary_line(jobs, STAMP)
        assert summary.startswith(f"4 jobs | {sum(1 for j in rows if has_salary(j))} with salary")

    def test_cell_escaping(self, make_job: MakeJob, now: datetime) -> None:
        job = make_job(title="Dev | Ops\nLead", company="A|B")
        row = _body_rows(job_table([job], RenderContext(now=now)))[0]
        assert "Dev \\| Ops Lead" in row
        assert "A\\|B" in row

    def test_row_layout(self, make_job: MakeJob, now: datetime) -> None:
        job = make_job(
            id="77", title="SRE", company="Acme", location="Remote, Germany",
            salaryMin=100_000, salaryMax=120_000, scrapedAt="2026-02-26T01:00:00Z",
        )
        row = _body_rows(job_table([job], RenderContext(now=now)))[0]
        assert "SRE <br><sub>🌐 Remote, Germany • WW</sub>" in row
        assert "| $100k–$120k/year | 3h | [Apply](https://wagey.gg/jobs/77-sre-at-acme?ref=github) |" in row

    def test_legacy_sort_and_salary(self, make_job: MakeJob, now: datetime) -> None:
        ctx = RenderContext(now=now, ruleset=LEGACY)
        cheap = make_job(title="Cheap", salaryMax=50_000, scrapedAt="2026-02-26T00:00:00Z")
        rich = make_job(title="Rich", salary="$200k+", salaryMax=200_000, scrapedAt="2026-01-01T00:00:00Z")
        rows = _body_rows(job_table([cheap, rich], ctx))
        assert "Rich" in rows[0]
        assert "| $200k+ |" in rows[0]

    def test_counts_follow_rendered_rows_past_cap(self, make_job: MakeJob, now: datetime) -> None:
        ctx = RenderContext(now=now)
        fresh = [make_job(region="EMEA", scrapedAt="2026-02-26T03:00:00Z") for _ in range(500)]
        older = [
            make_job(region="EMEA", salaryMin=120_000, verifiedAt="2026-02-20T00:00:00Z",
                     scrapedAt="2026-01-01T00:00:00Z")
            for _ in range(10)
        ]
        jobs = fresh + older
        rows = table_rows(jobs, ctx)
        assert len(rows) == 500
        assert not any(has_salary(j) for j in rows)
        readme = region_readme("EMEA", {"EMEA": jobs}, ctx)
        assert f"| **Europe & Middle East as of {STAMP}** | **500** | **0** | **0** |" in readme
        assert "*Showing the first 500 of 510.*" in readme

    def test_main_section_header_past_cap(self, make_job: MakeJob, now: datetime) -> None:
        jobs = [make_job(salaryMax=90_000) for _ in range(501)]
        readme = main_readme({"WW": jobs}, RenderContext(now=now))
        assert '## <a id="ww"></a>Remote Worldwide (500)' in readme
        assert f"| **Total as of {STAMP}** | **500** | **500** | **0** |" in readme
        assert "*Showing the first 500 of 501.*" in readme
