# tests/utils/mtime.py
"""Helpers for tests that depend on file modification times."""

import os
import time
from pathlib import Path


def set_mtime(path: Path, offset: float) -> None:
    """Set ``path``'s mtime to now + ``offset`` seconds (negative = past)."""
    stamp = time.time() + offset
    os.utime(path, (stamp, stamp))


def age_tree(root: Path, seconds: float = 60.0) -> None:
    """Push every file under ``root`` ``seconds`` into the past.

    Keeps staleness checks independent of filesystem timestamp resolution.
    """
    for p in root.rglob("*"):
        if p.is_file():
            set_mtime(p, -seconds)


def snapshot_mtimes(root: Path) -> dict[Path, int]:
    return {p: p.stat().st_mtime_ns for p in sorted(root.rglob("*")) if p.is_file()}
