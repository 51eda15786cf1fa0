# src/psmbuild/config/config_loader.py


from difflib import get_close_matches
from pathlib import Path
from typing import Any, cast

from apathetic_utils import load_jsonc, load_toml, plural

from psmbuild import psd1
from psmbuild.constants import BUILD_CONFIG_NAMES
from psmbuild.logs import getAppLogger

from .config_types import BuildConfig


# Spellings accepted in sidecar files, compared after lowercasing and
# dropping "_" and "-". PowerShell hashtable keys are case-insensitive.
_KEY_ALIASES: dict[str, str] = {
    "path": "source_path",
    "sourcepath": "source_path",
    "outputdirectory": "output_directory",
    "moduleversion": "module_version",
    "version": "module_version",
    "semver": "module_version",
    "copydirectories": "copy_directories",
    "sourcedirectories": "source_directories",
    "publicfilter": "public_filter",
    "encoding": "encoding",
    "prefix": "prefix",
    "postfix": "postfix",
    "target": "target",
    "passthru": "passthru",
    "versionedoutputdirectory": "versioned_output_directory",
    "suppressdiagnostics": "suppress_diagnostics",
}

_LIST_KEYS = {"copy_directories", "source_directories", "suppress_diagnostics"}
_BOOL_KEYS = {"passthru", "versioned_output_directory"}


def _canonical_key(key: str) -> str | None:
    return _KEY_ALIASES.get(key.replace("_", "").replace("-", "").lower())


def _coerce_value(key: str, value: Any, source: str) -> Any:
    """Check one value's type, widening scalars where that is unambiguous."""
    if value is None:
        return None
    if key in _LIST_KEYS:
        items = value if isinstance(value, list) else [value]
        if not all(isinstance(v, str) for v in items):
            xmsg = f"{key} in {source} must be a string or a list of strings"
            raise TypeError(xmsg)
        return list(cast("list[str]", items))
    if key in _BOOL_KEYS:
        if not isinstance(value, bool):
            xmsg = f"{key} in {source} must be true or false"
            raise TypeError(xmsg)
        return value
    if key == "module_version" and isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        xmsg = f"{key} in {source} must be a string, not {type(value).__name__}"
        raise TypeError(xmsg)
    return value


def normalize_build_config(raw: dict[str, Any], *, source: str) -> BuildConfig:
    """Map file keys onto BuildConfig keys, dropping unknown ones with a warning."""
    logger = getAppLogger()
    result: dict[str, Any] = {}
    unknown: list[str] = []

    for key, value in raw.items():
        canonical = _canonical_key(key)
        if canonical is None:
            unknown.append(key)
            continue
        result[canonical] = _coerce_value(canonical, value, source)

    if unknown:
        known = sorted(set(_KEY_ALIASES.values()))
        for key in unknown:
            close = get_close_matches(key.lower(), known, n=1, cutoff=0.6)
            hint = f" (did you mean {close[0]!r}?)" if close else ""
            logger.warning("Ignoring unknown key %r in %s%s", key, source, hint)

    return cast("BuildConfig", result)


def find_build_config(module_base: Path) -> Path | None:
    """Locate the sidecar build config beside the manifest.

    Candidates, in priority order: build.psd1, build.jsonc, build.json,
    build.toml. Absence is not an error.
    """
    logger = getAppLogger()
    found = [module_base / n for n in BUILD_CONFIG_NAMES if (module_base / n).is_file()]

    if not found:
        logger.trace(f"[find_build_config] No build config in {module_base}")
        return None

    if len(found) > 1:
        names = ", ".join(p.name for p in found)
        logger.warning(
            "Multiple build config files detected (%s); using %s.",
            names,
            found[0].name,
        )
    return found[0]


def load_build_config(config_path: Path) -> BuildConfig:
    """Load and normalize a sidecar build config.

    Supports .psd1 (PowerShell data), .json/.jsonc and .toml files. An empty
    JSON file counts as an empty config.
    """
    logger = getAppLogger()
    logger.trace(f"[load_build_config] Loading from {config_path}")

    raw: Any
    try:
        if config_path.suffix.lower() == ".psd1":
            raw = psd1.load(config_path)
        elif config_path.suffix.lower() == ".toml":
            raw = load_toml(config_path, required=True)
        else:
            raw = load_jsonc(config_path)
    except ValueError as e:
        xmsg = f"Error while loading build config '{config_path.name}': {e}"
        raise ValueError(xmsg) from e

    if raw is None:
        return BuildConfig()
    if not isinstance(raw, dict):
        xmsg = (
            f"Build config {config_path.name} must contain a table of settings,"
            f" not {type(raw).__name__}"
        )
        raise TypeError(xmsg)

    config = normalize_build_config(
        cast("dict[str, Any]", raw), source=config_path.name
    )
    logger.debug(
        "Loaded %d setting%s from %s", len(config), plural(config), config_path.name
    )
    return config
