# src/jobboard/render/markdown.py
"""README rendering for the main and per-region target repositories."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Mapping, Sequence

from jobboard.config import REF, SITE_URL, github_url
from jobboard.models import REGION_LABELS, REGIONS, JobRaw, RegionStats, has_salary, is_teaser
from jobboard.pipeline.rules import CURRENT, Ruleset
from jobboard.render.format import (
    company_cell,
    esc,
    fmt_age,
    fmt_datetime,
    fmt_location,
    fmt_role,
    job_url,
    teaser_mask,
)

ROW_LIMIT = 500

# Rendered as sections on the main README; the rest live in their own repos
ON_PAGE = ("WW", "NA", "LATAM")
OFF_PAGE = ("EMEA", "APAC")

SECTION_BLURBS = {"WW": "True remote — no location restriction."}


@dataclass(frozen=True)
class RenderContext:
    """Everything a table or README needs besides the jobs themselves."""

    now: datetime
    ruleset: Ruleset = CURRENT
    logos: Mapping[str, str] = field(default_factory=dict)
    site_url: str = SITE_URL
    ref: str = REF
    history: str = ""

    @property
    def home(self) -> str:
        return f"{self.site_url}?ref={self.ref}"

    @property
    def stamp(self) -> str:
        return fmt_datetime(self.now)


def region_stats(code: str, jobs: Sequence[JobRaw], label: str = "") -> RegionStats:
    return RegionStats(
        code=code,
        label=label or REGION_LABELS.get(code, code),
        total=len(jobs),
        with_salary=sum(1 for j in jobs if has_salary(j)),
        verified=sum(1 for j in jobs if j.get("verifiedAt")),
    )


def all_region_stats(groups: Mapping[str, Sequence[JobRaw]]) -> List[RegionStats]:
    return [region_stats(code, groups.get(code, [])) for code in REGIONS]


def table_rows(jobs: Iterable[JobRaw], ctx: RenderContext, limit: int = ROW_LIMIT) -> List[JobRaw]:
    """The jobs a table will show, in display order."""
    return ctx.ruleset.sort_jobs(jobs)[:limit]


def apply_cell(job: JobRaw, ctx: RenderContext) -> str:
    if is_teaser(job):
        return f"[🔒 Pro]({ctx.site_url}/pricing?ref={ctx.ref})"
    return f"[Apply]({job_url(job, ctx.site_url, ctx.ref)})"


def job_row(job: JobRaw, ctx: RenderContext) -> str:
    if is_teaser(job):
        company = f"🔒 {teaser_mask(job)}"
    else:
        company = company_cell(job, ctx.logos, ctx.site_url)
    remote = "🌐" if job.get("isRemote") else "🏢"
    loc = fmt_location(job)
    loc_part = f"{loc} • " if loc else ""
    role = f"{fmt_role(job.get('title'))} <br><sub>{remote} {loc_part}{esc(job.get('region')) or '?'}</sub>"
    salary = esc(ctx.ruleset.salary_display(job))
    age = fmt_age(job.get("scrapedAt"), ctx.now)
    return f"| {company} | {role} | {salary} | {age} | {apply_cell(job, ctx)} |"


def _render_rows(rows: Sequence[JobRaw], ctx: RenderContext) -> str:
    if not rows:
        return "*No jobs currently listed.*\n"
    lines = [
        "| Company | Role | Salary USD | Age | |",
        "|---------|------|------------|-----|---|",
    ]
    lines.extend(job_row(j, ctx) for j in rows)
    return "\n".join(lines) + "\n"


def job_table(jobs: Iterable[JobRaw], ctx: RenderContext, limit: int = ROW_LIMIT) -> str:
    return _render_rows(table_rows(jobs, ctx, limit), ctx)


def _truncation_note(jobs: Sequence[JobRaw], rows: Sequence[JobRaw]) -> str:
    if len(jobs) <= len(rows):
        return ""
    return f"*Showing the first {len(rows):,} of {len(jobs):,}.*\n\n"


def _section(code: str, jobs: Sequence[JobRaw], rows: Sequence[JobRaw], ctx: RenderContext) -> str:
    # counts describe the rendered rows; the bucket total only appears in the note
    parts = [f'## <a id="{code.lower()}"></a>{REGION_LABELS[code]} ({len(rows):,})', ""]
    if code in SECTION_BLURBS:
        parts += [SECTION_BLURBS[code], ""]
    parts.append(_truncation_note(jobs, rows) + _render_rows(rows, ctx))
    return "\n".join(parts)


def _stats_row(label: str, s: RegionStats, bold: bool = False) -> str:
    cells = [f"{s.total:,}", f"{s.with_salary:,}", f"{s.verified:,}"]
    if bold:
        cells = [f"**{c}**" for c in cells]
    return f"| {label} | {' | '.join(cells)} |"


def _footer(ctx: RenderContext) -> str:
    history = f"{ctx.history}\n" if ctx.history else ""
    return f"{history}*Updated automatically every hour. Powered by [wagey.gg]({ctx.home}).*\n"


def main_readme(groups: Mapping[str, Sequence[JobRaw]], ctx: RenderContext) -> str:
    """Overview of all five regions, with WW / NA / LATAM tables inline."""
    shown = {code: table_rows(groups.get(code, []), ctx) for code in REGIONS}
    totals = region_stats("ALL", [j for code in REGIONS for j in shown[code]], "All regions")

    region_lines = []
    for code in ON_PAGE + OFF_PAGE:
        s = region_stats(code, shown[code])
        link = github_url(code.lower()) if code in OFF_PAGE else f"#{code.lower()}"
        region_lines.append(_stats_row(f"[{s.label}]({link})", s))
    region_lines.append(_stats_row(f"**Total as of {ctx.stamp}**", totals, bold=True))

    other = "\n".join(
        f"- [**{REGION_LABELS[c]}**]({github_url(c.lower())}) — {len(shown[c]):,} jobs"
        for c in OFF_PAGE
    )
    sections = "\n---\n\n".join(_section(c, groups.get(c, []), shown[c], ctx) for c in ON_PAGE)
    region_table = "\n".join(region_lines)

    return f"""# Remote Tech Jobs — Updated Hourly

> Every job is checked against the employer's live careers page. Every job can be applied to in one click at [wagey.gg]({ctx.home}).

## Jobs by Region

| Region | Jobs | With Salary | Verified |
|--------|------|-------------|----------|
{region_table}

> Upload your CV at [wagey.gg]({ctx.home}) for smart matching and one-click apply.

## How It Works

1. **Scrape** thousands of job boards, company career pages, and ATS platforms daily
2. **Verify** every job is still live on the employer's site — dead links are removed automatically
3. **Tag** each job with skills, seniority, salary, and region using AI extraction
4. **Apply** in one click via [wagey.gg]({ctx.home}) — upload your CV once, then auto-apply to any job

## Other Regions

{other}

---

{sections}
---

{_footer(ctx)}"""


def region_readme(code: str, groups: Mapping[str, Sequence[JobRaw]], ctx: RenderContext) -> str:
    """Standalone README for one off-page region (EMEA or APAC)."""
    jobs = groups.get(code, [])
    rows = table_rows(jobs, ctx)
    s = region_stats(code, rows)
    others = [f"- [**All regions (main list)**]({github_url('main')})"]
    others += [
        f"- [**{REGION_LABELS[c]}**]({github_url(c.lower())}) — {len(table_rows(groups.get(c, []), ctx)):,} jobs"
        for c in OFF_PAGE
        if c != code
    ]
    other_lines = "\n".join(others)
    stats_line = _stats_row(f"**{s.label} as of {ctx.stamp}**", s, bold=True)

    return f"""# Remote Tech Jobs — {s.label} — Updated Hourly

> Every job is checked against the employer's live careers page. Every job can be applied to in one click at [wagey.gg]({ctx.home}).

| | Jobs | With Salary | Verified |
|--|------|-------------|----------|
{stats_line}

> Upload your CV at [wagey.gg]({ctx.home}) for smart matching and one-click apply.

## Other Regions

{other_lines}

---

## Jobs

{_truncation_note(jobs, rows)}{_render_rows(rows, ctx)}
---

{_footer(ctx)}"""
