# src/psmbuild/cli.py

import argparse
import json
import os
import platform
import sys
from collections.abc import Callable, Sequence
from difflib import get_close_matches
from typing import Any

from apathetic_logging import LEVEL_ORDER, safeLog
from apathetic_utils import get_sys_version_info

from .actions import get_metadata, watch_for_changes
from .build import run_all_builds
from .config import BuildConfig, ModuleInfo, resolve_build_config
from .constants import (
    DEFAULT_ENV_WATCH_INTERVAL,
    DEFAULT_WATCH_INTERVAL,
    ENCODINGS,
    TARGETS,
)
from .logs import getAppLogger
from .meta import PROGRAM_DISPLAY, PROGRAM_ENV, PROGRAM_SCRIPT


# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


class HintingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        # Build known option strings: ["-v", "--verbose", "--log-level", ...]
        known_opts: list[str] = []
        for action in self._actions:
            known_opts.extend([s for s in action.option_strings if s])

        hint_lines: list[str] = []
        # Argparse message for bad flags is typically
        # "unrecognized arguments: --ouput ..."
        if "unrecognized arguments:" in message:
            bad = message.split("unrecognized arguments:", 1)[1].strip()
            bad_args = [tok for tok in bad.split() if tok.startswith("-")]
            for arg in bad_args:
                close = get_close_matches(arg, known_opts, n=1, cutoff=0.6)
                if close:
                    hint_lines.append(f"Hint: did you mean {close[0]}?")

        self.print_usage(sys.stderr)
        full = f"{self.prog}: error: {message}"
        if hint_lines:
            full += "\n" + "\n".join(hint_lines)
        self.exit(2, full + "\n")


def _choice_type(choices: Sequence[str]) -> Callable[[str], str]:
    """Match enum flags case-insensitively, leaving argparse to reject misses."""
    lookup = {c.lower(): c for c in choices}

    def convert(value: str) -> str:
        return lookup.get(value.lower(), value)

    return convert


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = HintingArgumentParser(
        prog=PROGRAM_SCRIPT,
        description="Build a PowerShell module from its source fragments.",
    )

    parser.add_argument(
        "source_path",
        nargs="*",
        metavar="SOURCE_PATH",
        help=(
            "Module source folder, or its .psd1 manifest. "
            "Several may be given; defaults to the current directory."
        ),
    )

    # --- Build settings ---
    parser.add_argument(
        "-o",
        "--output-directory",
        help=(
            "Where to write the built module. Relative paths are taken from the "
            "folder above the module source (default: ../Output/<Name>)."
        ),
    )
    parser.add_argument(
        "--module-version",
        metavar="SEMVER",
        help="Version to stamp into the output manifest, e.g. 1.2.0-beta1.",
    )
    parser.add_argument(
        "--copy-directories",
        nargs="+",
        metavar="DIR",
        help="Folders copied as-is into the output directory.",
    )
    parser.add_argument(
        "--source-directories",
        nargs="+",
        metavar="DIR",
        help="Folders whose .ps1 files are combined, in this order.",
    )
    parser.add_argument(
        "--public-filter",
        metavar="GLOB",
        help="Files whose names become FunctionsToExport (default: Public/*.ps1).",
    )
    parser.add_argument(
        "--encoding",
        type=_choice_type(list(ENCODINGS)),
        choices=list(ENCODINGS),
        help="Encoding of the generated .psm1 (default: UTF8).",
    )
    parser.add_argument(
        "--prefix",
        help="Text, or a file, placed at the top of the generated .psm1.",
    )
    parser.add_argument(
        "--postfix",
        help="Text, or a file, placed at the bottom of the generated .psm1.",
    )
    parser.add_argument(
        "--target",
        type=_choice_type(TARGETS),
        choices=TARGETS,
        help="Clean, Build (only when sources changed) or CleanBuild (default).",
    )
    parser.add_argument(
        "--versioned-output-directory",
        action="store_true",
        default=None,
        help="Append the module version to the output directory.",
    )
    parser.add_argument(
        "--passthru",
        action="store_true",
        default=None,
        help="Print the built module's resolved settings as JSON.",
    )

    parser.add_argument(
        "--watch",
        nargs="?",
        type=float,
        const=0.0,
        metavar="SECONDS",
        default=None,
        help=(
            "Rebuild automatically on changes. "
            "Optionally specify interval in seconds"
            f" (default env {PROGRAM_ENV}_{DEFAULT_ENV_WATCH_INTERVAL}"
            f" or: {DEFAULT_WATCH_INTERVAL})."
        ),
    )

    # --- Color ---
    color = parser.add_mutually_exclusive_group()
    color.add_argument(
        "--no-color",
        dest="use_color",
        action="store_const",
        const=False,
        help="Disable ANSI color output.",
    )
    color.add_argument(
        "--color",
        dest="use_color",
        action="store_const",
        const=True,
        help="Force-enable ANSI color output (overrides auto-detect).",
    )
    color.set_defaults(use_color=None)

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        choices=LEVEL_ORDER,
        default=None,
        dest="log_level",
        help="Set log verbosity level.",
    )
    return parser


# --------------------------------------------------------------------------- #
# Main entry helpers
# --------------------------------------------------------------------------- #


def _initialize_logger(args: argparse.Namespace) -> None:
    """Initialize logger with CLI args, env vars, and defaults."""
    logger = getAppLogger()
    log_level = logger.determineLogLevel(args=args)
    logger.setLevel(log_level)
    use_color = getattr(args, "use_color", None)
    logger.enable_color = (
        use_color if use_color is not None else logger.determineColorEnabled()
    )
    logger.trace("[BOOT] log-level initialized: %s", logger.levelName)

    logger.debug(
        "Runtime: Python %s (%s)\n    %s",
        platform.python_version(),
        platform.python_implementation(),
        sys.version.replace("\n", " "),
    )


def _handle_early_exits(args: argparse.Namespace) -> int | None:
    """Handle --version and the Python version check.

    Returns exit code if we should exit early, None otherwise.
    """
    logger = getAppLogger()

    # --- Version flag ---
    if getattr(args, "version", None):
        meta = get_metadata()
        logger.info("%s %s (%s)", PROGRAM_DISPLAY, meta.version, meta.commit)
        return 0

    # --- Python version check ---
    if get_sys_version_info() < (3, 10):
        logger.error("%s requires Python 3.10 or newer.", PROGRAM_DISPLAY)
        return 1

    return None


# argparse dest -> BuildConfig key
_OVERRIDE_FLAGS: tuple[str, ...] = (
    "output_directory",
    "module_version",
    "copy_directories",
    "source_directories",
    "public_filter",
    "encoding",
    "prefix",
    "postfix",
    "target",
    "versioned_output_directory",
    "passthru",
)


def _build_overrides(args: argparse.Namespace) -> BuildConfig:
    """Collect the build settings actually given on the command line."""
    overrides: dict[str, Any] = {}
    for key in _OVERRIDE_FLAGS:
        value = getattr(args, key, None)
        if value is not None:
            overrides[key] = value
    return BuildConfig(**overrides)  # type: ignore[typeddict-item]


def _resolve_watch_interval(args: argparse.Namespace) -> float:
    """CLI value → env var → default."""
    logger = getAppLogger()
    cli_value: float | None = getattr(args, "watch", None)
    if cli_value is not None and cli_value > 0:
        return cli_value

    env_keys = (
        f"{PROGRAM_ENV}_{DEFAULT_ENV_WATCH_INTERVAL}",
        DEFAULT_ENV_WATCH_INTERVAL,
    )
    for env_key in env_keys:
        raw = os.getenv(env_key)
        if raw is None:
            continue
        try:
            return float(raw)
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", env_key, raw)
    return DEFAULT_WATCH_INTERVAL


def _print_passthru(results: list[ModuleInfo]) -> None:
    payload = results[0] if len(results) == 1 else results
    print(json.dumps(payload, indent=2, default=str))  # noqa: T201


def _execute_build(args: argparse.Namespace) -> None:
    """Execute builds either in watch mode or one-time mode."""
    logger = getAppLogger()
    paths: list[str] = args.source_path or ["."]
    overrides = _build_overrides(args)

    if getattr(args, "watch", None) is not None:
        modules = [
            resolve_build_config(p, overrides, overrides_origin="cli") for p in paths
        ]

        def rebuild() -> None:
            run_all_builds(paths, overrides, overrides_origin="cli")

        watch_for_changes(rebuild, modules, interval=_resolve_watch_interval(args))
        return

    results = run_all_builds(paths, overrides, overrides_origin="cli")
    if results:
        logger.trace("[CLI] Printing %d passthru result(s)", len(results))
        _print_passthru(results)


# --------------------------------------------------------------------------- #
# Main entry
# --------------------------------------------------------------------------- #


def main(argv: list[str] | None = None) -> int:
    logger = getAppLogger()  # init (use env + defaults)

    try:
        parser = _setup_parser()
        args = parser.parse_args(argv)

        # --- Early runtime init (use CLI + env + defaults) ---
        _initialize_logger(args)

        # --- Handle early exits (version, etc.) ---
        early_exit_code = _handle_early_exits(args)
        if early_exit_code is not None:
            return early_exit_code

        # --- Execute build ---
        _execute_build(args)

    except (FileNotFoundError, ValueError, TypeError, RuntimeError) as e:
        # controlled termination
        try:
            logger.errorIfNotDebug(str(e))
        except Exception:  # noqa: BLE001
            safeLog(f"[FATAL] Logging failed while reporting: {e}")
        return 1

    except Exception as e:  # noqa: BLE001
        # unexpected internal error
        try:
            logger.criticalIfNotDebug("Unexpected internal error: %s", e)
        except Exception:  # noqa: BLE001
            safeLog(f"[FATAL] Logging failed while reporting: {e}")
        return 1

    else:
        return 0
