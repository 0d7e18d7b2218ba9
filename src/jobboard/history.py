# src/jobboard/history.py
"""
Cross-target update history.

Every target keeps its own publication ledger (data/ledger.jsonl, one JSON
object per line, newest first). The main target's ledger drives the table;
EMEA/APAC entries are matched to it by identical timestamp string.

Targets published before the ledger existed only have git history, whose
commit subjects are the summary lines ("21,024 jobs | ... — 26-Feb-2026 04:35 UTC").
For those we fall back to reading `git log` and pulling the timestamp and
count out of the subject.

A target whose history can't be read at all just contributes nothing.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from jobboard.config import Target
from jobboard.models import LedgerEntry

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 42
PLACEHOLDER = "—"

_COUNT_RE = re.compile(r"([\d,]+)\s+(?:EMEA |APAC )?jobs")
_TS_RE = re.compile(r"(\d{1,2}-\w{3}-\d{4}\s+\d{2}:\d{2}\s+UTC)")


def extract_job_count(message: str) -> Optional[str]:
    """'21,024 jobs | ...' -> '21,024'."""
    m = _COUNT_RE.search(message or "")
    return m.group(1) if m else None


def extract_timestamp(message: str) -> Optional[str]:
    """'... — 26-Feb-2026 04:35 UTC' -> '26-Feb-2026 04:35 UTC'."""
    m = _TS_RE.search(message or "")
    return m.group(1) if m else None


# ---- Reading ------------------------------------------------------------------

def read_ledger(path: Path, limit: int = HISTORY_LIMIT) -> List[LedgerEntry]:
    """Structured ledger, newest first. Missing or unreadable file -> []."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []
    out: List[LedgerEntry] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            obj = json.loads(line)
            out.append(
                LedgerEntry(
                    revision=str(obj["revision"]),
                    timestamp=str(obj["timestamp"]),
                    count=str(obj["count"]),
                    url=obj.get("url"),
                )
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Skipping bad ledger line in %s: %s", path, e)
        if len(out) >= limit:
            break
    return out


def read_git_ledger(repo: Path, github_url: Optional[str] = None, limit: int = HISTORY_LIMIT) -> List[LedgerEntry]:
    """
    Ledger entries recovered from `git log` subjects. Commits without a
    timestamp and a job count (code changes) are skipped. Any git failure -> [].
    """
    try:
        raw = subprocess.run(
            ["git", "log", "--format=%H|%aI|%s", f"-{limit}"],
            cwd=repo,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=10,
            check=True,
        ).stdout.strip()
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("No git history for %s: %s", repo, e)
        return []
    out: List[LedgerEntry] = []
    for line in raw.splitlines():
        sha, _, rest = line.partition("|")
        _, _, subject = rest.partition("|")
        ts, count = extract_timestamp(subject), extract_job_count(subject)
        if not ts or not count:
            continue
        url = f"{github_url}/commit/{sha}" if github_url else None
        out.append(LedgerEntry(revision=sha[:7], timestamp=ts, count=count, url=url))
    return out


def load_target_ledger(target: Target, limit: int = HISTORY_LIMIT) -> List[LedgerEntry]:
    entries = read_ledger(target.ledger_path, limit)
    if entries:
        return entries
    return read_git_ledger(target.directory, target.github_url, limit)


# ---- Writing ------------------------------------------------------------------

def ledger_line(entry: LedgerEntry) -> str:
    return json.dumps(entry._asdict(), ensure_ascii=False)


def prepend_ledger(entry: LedgerEntry, prior: Sequence[LedgerEntry], limit: int = HISTORY_LIMIT) -> str:
    """New ledger file content: `entry` followed by the prior entries, capped."""
    entries = [entry] + [e for e in prior if e.timestamp != entry.timestamp]
    return "".join(ledger_line(e) + "\n" for e in entries[:limit])


# ---- Merging ------------------------------------------------------------------

class HistoryRow(NamedTuple):
    timestamp: str
    primary: LedgerEntry
    # one per secondary target, None when no entry shares the timestamp
    secondaries: List[Optional[LedgerEntry]]


def _by_timestamp(entries: Iterable[LedgerEntry]) -> Dict[str, LedgerEntry]:
    index: Dict[str, LedgerEntry] = {}
    for e in entries:
        # keep the newest entry for a timestamp
        index.setdefault(e.timestamp, e)
    return index


def merge_history(primary: Sequence[LedgerEntry], secondaries: Sequence[Sequence[LedgerEntry]]) -> List[HistoryRow]:
    """One row per primary entry, in primary order."""
    indexes = [_by_timestamp(s) for s in secondaries]
    rows: List[HistoryRow] = []
    for entry in primary:
        if not entry.timestamp or not entry.count:
            continue
        rows.append(HistoryRow(entry.timestamp, entry, [ix.get(entry.timestamp) for ix in indexes]))
    return rows


def _cell(entry: Optional[LedgerEntry]) -> str:
    if entry is None:
        return PLACEHOLDER
    rev = f"`{entry.revision}`"
    if entry.url:
        rev = f"[{rev}]({entry.url})"
    return f"{rev} {entry.count or '?'}"


def history_table(rows: Sequence[HistoryRow], headers: Sequence[str] = ("Main", "EMEA", "APAC")) -> str:
    if not rows:
        return ""
    lines = [
        "## Update History",
        "",
        f"| Time (UTC) | {' | '.join(headers)} |",
        "|---" * (len(headers) + 1) + "|",
    ]
    for row in rows:
        cells = [_cell(row.primary)] + [_cell(e) for e in row.secondaries]
        lines.append(f"| {row.timestamp} | {' | '.join(cells)} |")
    return "\n".join(lines) + "\n"
