# src/jobboard/config.py
"""
Runtime settings, read from the environment (a .env file is loaded by the CLI).

Environment:
  API_BASE_URL    Base URL of the jobs API (default: https://wagey.gg)
  SYSTEM_USER_ID  Caller identity sent as x-user-id (default: system_github_publish)
  FEED_HOURS      Lookback window passed to the API (default: 8760, i.e. everything applyable)
  RULESET         "current" (default) or "legacy"
  MAIN_REPO_DIR   Checkout of the main target (default: current directory)
  EMEA_REPO_DIR   Checkout of the EMEA target (default: ../wagey-gg-remote-tech-emea-jobs)
  APAC_REPO_DIR   Checkout of the APAC target (default: ../wagey-gg-remote-tech-apac-jobs)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional

DEFAULT_API_BASE = "https://wagey.gg"
DEFAULT_USER_ID = "system_github_publish"
DEFAULT_HOURS = 8760

SITE_URL = "https://wagey.gg"
REF = "github"

GITHUB_OWNER_URL = "https://github.com/7-of-9"
REPO_NAMES: Dict[str, str] = {
    "main": "wagey-gg-remote-tech-jobs",
    "emea": "wagey-gg-remote-tech-emea-jobs",
    "apac": "wagey-gg-remote-tech-apac-jobs",
}


@dataclass(frozen=True)
class Target:
    """One published output repository."""

    key: str
    label: str
    # None for the main target, which renders several regions
    region: Optional[str]
    directory: Path
    github_url: str

    @property
    def readme_path(self) -> Path:
        return self.directory / "README.md"

    @property
    def data_path(self) -> Path:
        return self.directory / "data" / "jobs.json"

    @property
    def summary_path(self) -> Path:
        return self.directory / "data" / "commit-msg.txt"

    @property
    def ledger_path(self) -> Path:
        return self.directory / "data" / "ledger.jsonl"


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE
    user_id: str = DEFAULT_USER_ID
    hours: int = DEFAULT_HOURS
    ruleset: str = "current"
    main_dir: Path = field(default_factory=Path.cwd)
    emea_dir: Optional[Path] = None
    apac_dir: Optional[Path] = None
    site_url: str = SITE_URL
    ref: str = REF

    @classmethod
    def from_env(cls) -> "Settings":
        main_dir = Path(os.getenv("MAIN_REPO_DIR") or Path.cwd())
        emea = os.getenv("EMEA_REPO_DIR")
        apac = os.getenv("APAC_REPO_DIR")
        return cls(
            api_base_url=(os.getenv("API_BASE_URL") or DEFAULT_API_BASE).rstrip("/"),
            user_id=os.getenv("SYSTEM_USER_ID") or DEFAULT_USER_ID,
            hours=int(os.getenv("FEED_HOURS") or DEFAULT_HOURS),
            ruleset=os.getenv("RULESET") or "current",
            main_dir=main_dir,
            emea_dir=Path(emea) if emea else None,
            apac_dir=Path(apac) if apac else None,
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def targets(self) -> List[Target]:
        """Targets in publication order: main first, then EMEA, then APAC."""
        siblings = self.main_dir.resolve().parent
        return [
            Target("main", "All regions", None, self.main_dir, github_url("main")),
            Target(
                "emea",
                "Europe & Middle East",
                "EMEA",
                self.emea_dir or siblings / REPO_NAMES["emea"],
                github_url("emea"),
            ),
            Target(
                "apac",
                "Asia-Pacific",
                "APAC",
                self.apac_dir or siblings / REPO_NAMES["apac"],
                github_url("apac"),
            ),
        ]


def github_url(key: str) -> str:
    return f"{GITHUB_OWNER_URL}/{REPO_NAMES[key]}"
