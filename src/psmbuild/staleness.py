# src/psmbuild/staleness.py
"""Decide whether a module needs rebuilding, cleaning the output on request."""

import shutil
from collections.abc import Iterator
from pathlib import Path

from .config.config_types import TargetType
from .errors import FilesystemError
from .logs import getAppLogger


def _iter_files(root: Path, *, skip: Path | None = None) -> Iterator[Path]:
    if not root.is_dir():
        return
    for p in root.rglob("*"):
        if skip is not None and (p == skip or p.is_relative_to(skip)):
            continue
        if p.is_file():
            yield p


def newest_mtime(root: Path) -> float | None:
    """Latest modification time of any file under ``root``, None if none."""
    return max((p.stat().st_mtime for p in _iter_files(root)), default=None)


def find_newer_source(
    source_root: Path,
    output_root: Path,
    since: float,
) -> Path | None:
    """First file under ``source_root`` modified after ``since``.

    Files inside ``output_root`` never count, in case the output lives
    inside the source tree.
    """
    for p in _iter_files(source_root, skip=output_root):
        if p.stat().st_mtime > since:
            return p
    return None


def clean_output(output_root: Path) -> None:
    logger = getAppLogger()
    if not output_root.exists():
        logger.trace("[STALE] Nothing to clean at %s", output_root)
        return
    logger.info("🧹 Cleaning %s", output_root)
    try:
        if output_root.is_dir():
            shutil.rmtree(output_root)
        else:
            output_root.unlink()
    except OSError as e:
        xmsg = f"Could not clean output directory {output_root}: {e}"
        raise FilesystemError(xmsg) from e


def should_build(target: TargetType, source_root: Path, output_root: Path) -> bool:
    """Apply the Clean / Build / CleanBuild target.

    - Clean: remove the output and stop.
    - Build: keep the output; build only if a source file is newer than the
      newest output file (or the output is empty).
    - CleanBuild: remove the output, then always build.
    """
    logger = getAppLogger()

    if target == "Clean":
        clean_output(output_root)
        return False

    if target == "CleanBuild":
        clean_output(output_root)
        return True

    newest = newest_mtime(output_root)
    if newest is None:
        logger.trace("[STALE] No previous output in %s", output_root)
        return True

    changed = find_newer_source(source_root, output_root, newest)
    if changed is None:
        logger.info("⏭️  %s is up to date", output_root)
        return False

    logger.debug("Source changed since last build: %s", changed)
    return True
