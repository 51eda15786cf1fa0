# src/psmbuild/actions.py
import re
import subprocess
import time
from collections.abc import Callable, Iterable
from contextlib import suppress
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as dist_version
from pathlib import Path

from .config import ModuleInfo
from .constants import DEFAULT_WATCH_INTERVAL
from .logs import getAppLogger
from .meta import PROGRAM_PACKAGE, Metadata


def _collect_watched_files(modules: Iterable[ModuleInfo]) -> list[Path]:
    """Every file under each module base, minus its output directory."""
    files: set[Path] = set()
    for info in modules:
        out = info["output_directory"].resolve()
        for p in info["module_base"].rglob("*"):
            if p == out or p.is_relative_to(out):
                continue
            if p.is_file():
                files.add(p)
    return sorted(files)


def _snapshot(files: Iterable[Path]) -> dict[Path, float]:
    mtimes: dict[Path, float] = {}
    for f in files:
        with suppress(FileNotFoundError):
            mtimes[f] = f.stat().st_mtime
    return mtimes


def watch_for_changes(
    rebuild_func: Callable[[], None],
    modules: list[ModuleInfo],
    interval: float = DEFAULT_WATCH_INTERVAL,
    *,
    max_cycles: int | None = None,
) -> None:
    """Poll file modification times and rebuild when changes are detected.

    - Skips files inside each module's output directory.
    - Re-scans the module bases every loop to notice new or removed files.
    - ``max_cycles`` bounds the number of polls (mainly for tests).
    Stops on KeyboardInterrupt.
    """
    logger = getAppLogger()
    logger.info(
        "👀 Watching for changes (interval=%.2fs)... Press Ctrl+C to stop.", interval
    )

    mtimes = _snapshot(_collect_watched_files(modules))

    rebuild_func()  # initial build

    cycles = 0
    try:
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            time.sleep(interval)

            # 🔁 re-scan every tick so new/removed files are tracked
            current = _snapshot(_collect_watched_files(modules))
            logger.trace(f"[watch] Checking {len(current)} files for changes")

            changed = [f for f, m in current.items() if mtimes.get(f) != m]
            changed.extend(f for f in mtimes if f not in current)

            if changed:
                logger.info(
                    "\n🔁 Detected %d modified file(s). Rebuilding...", len(changed)
                )
                rebuild_func()
            mtimes = current
    except KeyboardInterrupt:
        logger.info("\n🛑 Watch stopped.")


def get_metadata() -> Metadata:
    """Return (version, commit) tuple for this tool.

    - Source checkout → read pyproject.toml + git
    - Installed package → distribution metadata
    """
    logger = getAppLogger()
    logger.trace(f"get_metadata ran from: {Path(__file__).resolve()}")

    version = "unknown"
    commit = "unknown"

    # Try pyproject.toml for version
    root = Path(__file__).resolve().parents[2]
    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        logger.trace(f"trying to read metadata from {pyproject}")
        text = pyproject.read_text(encoding="utf-8")
        match = re.search(r'(?m)^\s*version\s*=\s*["\']([^"\']+)["\']', text)
        if match:
            version = match.group(1)

    if version == "unknown":
        with suppress(PackageNotFoundError):
            version = dist_version(PROGRAM_PACKAGE)

    # Try git for commit
    with suppress(OSError, subprocess.CalledProcessError):
        logger.trace("trying to get commit from git")
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            cwd=root,
            capture_output=True,
            text=True,
            check=True,
        )
        commit = result.stdout.strip()

    logger.trace(f"got package version {version} with commit {commit}")
    return Metadata(version, commit)
