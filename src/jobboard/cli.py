# src/jobboard/cli.py
"""
Command-line interface for the job board publisher.

This module provides CLI commands to:
- Fetch the jobs feed and publish README / jobs.json / commit message to the
  main, EMEA and APAC repos (`publish`, with --dry-run to only report)
- Print the cross-repo update history from the existing ledgers (`history`)
- Fetch the feed and print the per-region breakdown without rendering (`feed-stats`)
"""

from dotenv import load_dotenv
load_dotenv(override=True)  # automatically looks for a .env file in the project root

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import typer

from jobboard.clients.feed import FeedFormatError, fetch_feed
from jobboard.config import Settings, Target
from jobboard.history import history_table, load_target_ledger, merge_history
from jobboard.io.sink import Sink
from jobboard.models import LedgerEntry
from jobboard.pipeline.filter import group_by_region
from jobboard.pipeline.publish import EmptyFeedError, Publication, build_publication
from jobboard.pipeline.rules import RULESETS, get_ruleset
from jobboard.render.markdown import all_region_stats

# Typer app instance for CLI commands
app = typer.Typer(help="Remote tech jobs publisher")

FATAL_ERRORS = (httpx.HTTPError, FeedFormatError, EmptyFeedError, OSError, ValueError)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )


def _settings(
    ruleset: Optional[str] = None,
    hours: Optional[int] = None,
    main_dir: Optional[Path] = None,
    emea_dir: Optional[Path] = None,
    apac_dir: Optional[Path] = None,
) -> Settings:
    return Settings.from_env().with_overrides(
        ruleset=ruleset, hours=hours, main_dir=main_dir, emea_dir=emea_dir, apac_dir=apac_dir
    )


def _load_ledgers(targets: List[Target]) -> Dict[str, List[LedgerEntry]]:
    return {t.key: load_target_ledger(t) for t in targets}


def _print_breakdown(pub: Publication) -> None:
    typer.echo("\nRegion breakdown:")
    for s in pub.stats:
        typer.echo(f"  {s.label}: {s.total} jobs ({s.with_salary} with salary, {s.verified} verified)")
    typer.echo(f"  TOTAL: {sum(s.total for s in pub.stats)} jobs")


@app.command()
def publish(
    dry_run: bool = typer.Option(False, "--dry-run", help="Fetch and render, but do not write any files"),
    ruleset: Optional[str] = typer.Option(None, "--ruleset", help=f"Rule set: {', '.join(RULESETS)}"),
    hours: Optional[int] = typer.Option(None, "--hours", help="Feed lookback window in hours"),
    main_dir: Optional[Path] = typer.Option(None, "--main-dir", help="Main repo checkout"),
    emea_dir: Optional[Path] = typer.Option(None, "--emea-dir", help="EMEA repo checkout"),
    apac_dir: Optional[Path] = typer.Option(None, "--apac-dir", help="APAC repo checkout"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Fetch feed → bucket by region → render every target in memory → write all files.
    Nothing is written unless every target rendered.
    """
    _setup_logging(verbose)
    settings = _settings(ruleset, hours, main_dir, emea_dir, apac_dir)

    typer.echo("\n=== wagey.gg GitHub Job Publisher ===")
    typer.echo(f"API: {settings.api_base_url}")
    typer.echo(f"User: {settings.user_id}")
    typer.echo(f"Rules: {settings.ruleset}")
    typer.echo(f"Dry run: {dry_run}\n")

    try:
        rules = get_ruleset(settings.ruleset)
        feed = fetch_feed(settings.api_base_url, settings.user_id, hours=settings.hours)
        typer.echo(f"Company logos: {len(feed.logos)} companies with logos")

        targets = settings.targets()
        pub = build_publication(
            feed,
            targets,
            now=utc_now(),
            ruleset=rules,
            ledgers=_load_ledgers(targets),
            site_url=settings.site_url,
            ref=settings.ref,
        )
        _print_breakdown(pub)
        typer.echo(f"  History: {len(pub.history)} entries")

        sink = Sink(dry_run=dry_run)
        for out in pub.outputs:
            typer.echo(f"\n--- {out.target.key} repo ({out.target.directory}) ---")
            sink.write_all(out.files())
    except FATAL_ERRORS as e:
        typer.echo(f"Fatal: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo("\nCommit messages:")
    for key, msg in pub.summaries.items():
        typer.echo(f"  {key}: {msg}")
    typer.echo("\nDone!")


@app.command()
def history(
    main_dir: Optional[Path] = typer.Option(None, "--main-dir", help="Main repo checkout"),
    emea_dir: Optional[Path] = typer.Option(None, "--emea-dir", help="EMEA repo checkout"),
    apac_dir: Optional[Path] = typer.Option(None, "--apac-dir", help="APAC repo checkout"),
):
    """
    Print the merged update history of all targets (no fetch, no writes).
    """
    targets = _settings(main_dir=main_dir, emea_dir=emea_dir, apac_dir=apac_dir).targets()
    ledgers = _load_ledgers(targets)
    rows = merge_history(ledgers[targets[0].key], [ledgers[t.key] for t in targets[1:]])
    table = history_table(rows, ["Main"] + [t.region or t.key for t in targets[1:]])
    typer.echo(table or "No update history found.")


@app.command()
def feed_stats(
    ruleset: Optional[str] = typer.Option(None, "--ruleset", help=f"Rule set: {', '.join(RULESETS)}"),
    hours: Optional[int] = typer.Option(None, "--hours", help="Feed lookback window in hours"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Debug: fetch the feed and print per-region counts as JSON.
    """
    _setup_logging(verbose)
    settings = _settings(ruleset, hours)
    try:
        rules = get_ruleset(settings.ruleset)
        feed = fetch_feed(settings.api_base_url, settings.user_id, hours=settings.hours)
    except FATAL_ERRORS as e:
        typer.echo(f"Fatal: {e}", err=True)
        raise typer.Exit(code=1)

    groups = group_by_region(feed.jobs, drop_unknown=rules.drop_unknown_regions)
    typer.echo(json.dumps({
        "fetched": len(feed.jobs),
        "logos": len(feed.logos),
        "regions": {s.code: s._asdict() for s in all_region_stats(groups)},
    }, indent=2))


if __name__ == "__main__":
    app()
