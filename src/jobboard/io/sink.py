# src/jobboard/io/sink.py
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, NamedTuple

logger = logging.getLogger(__name__)


class OutputFile(NamedTuple):
    path: Path
    content: str


class Sink:
    """
    Writes rendered files to disk, or only reports them in dry-run mode.

    Each file is written to a temp file next to it and renamed into place,
    so a reader never sees a half-written file. Errors are not caught here.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.written: List[Path] = []

    def write(self, path: Path, content: str) -> int:
        """Write `content` to `path`; returns the byte length."""
        data = content.encode("utf-8")
        if self.dry_run:
            logger.info("  [dry-run] Would write %s (%d bytes)", path, len(data))
            return len(data)

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        self.written.append(path)
        logger.info("  Wrote %s (%d bytes)", path, len(data))
        return len(data)

    def write_all(self, files: Iterable[OutputFile]) -> int:
        """Write files in order, stopping at the first failure. Returns total bytes."""
        return sum(self.write(f.path, f.content) for f in files)
