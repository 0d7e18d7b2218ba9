# src/jobboard/pipeline/publish.py
"""
Feed -> every target's files, entirely in memory.

Nothing here touches the filesystem or the clock: ledgers and `now` are
passed in, and the result is a Publication the caller hands to a Sink once
every target has rendered. Same input and same `now` give byte-identical
output.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from jobboard.clients.feed import Feed
from jobboard.config import REF, SITE_URL, Target
from jobboard.history import HistoryRow, history_table, merge_history, prepend_ledger
from jobboard.io.sink import OutputFile
from jobboard.models import REGIONS, JobRaw, LedgerEntry, RegionStats
from jobboard.pipeline.filter import group_by_region
from jobboard.pipeline.rules import CURRENT, Ruleset
from jobboard.render.export import build_data_json, dump_json, summary_line
from jobboard.render.format import fmt_datetime
from jobboard.render.markdown import RenderContext, all_region_stats, main_readme, region_readme


class EmptyFeedError(RuntimeError):
    """The feed parsed fine but held no jobs; publishing would wipe good output."""


@dataclass(frozen=True)
class TargetOutput:
    target: Target
    readme: str
    data: str
    summary: str
    ledger: str

    def files(self) -> List[OutputFile]:
        t = self.target
        return [
            OutputFile(t.readme_path, self.readme),
            OutputFile(t.data_path, self.data),
            OutputFile(t.summary_path, self.summary),
            OutputFile(t.ledger_path, self.ledger),
        ]


@dataclass(frozen=True)
class Publication:
    stamp: str
    groups: Mapping[str, Sequence[JobRaw]]
    outputs: List[TargetOutput]
    history: List[HistoryRow]

    def files(self) -> List[OutputFile]:
        """All files, main target first, then each secondary in order."""
        return [f for out in self.outputs for f in out.files()]

    @property
    def stats(self) -> List[RegionStats]:
        return all_region_stats(self.groups)

    @property
    def summaries(self) -> Dict[str, str]:
        return {out.target.key: out.summary for out in self.outputs}


def _target_jobs(target: Target, groups: Mapping[str, Sequence[JobRaw]]) -> List[JobRaw]:
    if target.region:
        return list(groups.get(target.region, []))
    return [j for code in REGIONS for j in groups.get(code, [])]


def _export(target: Target, groups: Mapping[str, Sequence[JobRaw]], ruleset: Ruleset, site_url: str, ref: str) -> str:
    codes = [target.region] if target.region else list(REGIONS)
    records = []
    for code in codes:
        records += build_data_json(groups.get(code, []), ruleset, site_url=site_url, ref=ref, region=code)
    return dump_json(records)


def _revision(data: str) -> str:
    return hashlib.sha1(data.encode("utf-8")).hexdigest()[:7]


def build_publication(
    feed: Feed,
    targets: Sequence[Target],
    *,
    now: datetime,
    ruleset: Ruleset = CURRENT,
    ledgers: Optional[Mapping[str, Sequence[LedgerEntry]]] = None,
    site_url: str = SITE_URL,
    ref: str = REF,
) -> Publication:
    """
    Bucket, render and cross-reference every target.

    `targets[0]` is the primary target; its ledger drives the history table.
    `ledgers` maps target key to prior entries (newest first); missing keys
    count as empty ledgers.
    """
    if not feed.jobs:
        raise EmptyFeedError("No jobs fetched, aborting")

    ledgers = ledgers or {}
    groups = group_by_region(feed.jobs, drop_unknown=ruleset.drop_unknown_regions)
    stamp = fmt_datetime(now)

    per_target = []
    for t in targets:
        jobs = _target_jobs(t, groups)
        data = _export(t, groups, ruleset, site_url, ref)
        summary = summary_line(jobs, stamp, t.region)
        entry = LedgerEntry(revision=_revision(data), timestamp=stamp, count=f"{len(jobs):,}")
        prior = [e for e in ledgers.get(t.key, []) if e.timestamp != stamp]
        per_target.append((t, data, summary, [entry] + prior))

    histories = [entries for _, _, _, entries in per_target]
    rows = merge_history(histories[0], histories[1:]) if histories else []
    headers = ["Main"] + [t.region or t.key for t, _, _, _ in per_target[1:]]
    ctx = RenderContext(
        now=now,
        ruleset=ruleset,
        logos=feed.logos,
        site_url=site_url,
        ref=ref,
        history=history_table(rows, headers),
    )

    outputs = []
    for t, data, summary, entries in per_target:
        readme = region_readme(t.region, groups, ctx) if t.region else main_readme(groups, ctx)
        outputs.append(
            TargetOutput(
                target=t,
                readme=readme,
                data=data,
                summary=summary,
                ledger=prepend_ledger(entries[0], entries[1:]),
            )
        )
    return Publication(stamp=stamp, groups=groups, outputs=outputs, history=rows)
