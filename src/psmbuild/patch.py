# src/psmbuild/patch.py
"""Rewrite the export list and version of a built module's manifest."""

from pathlib import Path

from apathetic_utils import has_glob_chars, plural

from . import psd1
from .assemble import path_sort_key
from .config.config_types import PathResolved
from .constants import (
    FRAGMENT_EXTENSION,
    MANIFEST_EXPORTS_KEY,
    MANIFEST_PRERELEASE_KEY,
    MANIFEST_PSDATA_PATH,
    MANIFEST_VERSION_KEY,
)
from .errors import FilesystemError
from .logs import getAppLogger
from .versions import parse_module_version


def _filter_bases(root: Path, dir_part: str) -> list[Path]:
    """Folders selected by the directory part of a public filter."""
    if dir_part in ("", "."):
        return [root]
    if has_glob_chars(dir_part):
        return sorted(p for p in root.glob(dir_part) if p.is_dir())
    return [root / dir_part]


def collect_public_functions(public_filter: PathResolved) -> list[str]:
    """Function names exported by the fragments ``public_filter`` matches.

    The filter's directory part selects folders (wildcards allowed, ``**``
    included); each one is searched recursively for files whose name
    matches the last segment. Names come from the file stem, in the same
    order the fragments are written to the .psm1, first occurrence wins.
    """
    logger = getAppLogger()
    root = Path(public_filter["root"])
    pattern = str(public_filter["path"]).replace("\\", "/")

    found: set[Path] = set()
    if has_glob_chars(pattern):
        dir_part, _, name = pattern.rpartition("/")
        if name == "**":
            name = "*"
        for base in _filter_bases(root, dir_part):
            found.update(p for p in base.rglob(name) if p.is_file())
    else:
        candidate = root / pattern
        if candidate.is_dir():
            found.update(
                p for p in candidate.rglob(f"*{FRAGMENT_EXTENSION}") if p.is_file()
            )
        elif candidate.is_file():
            found.add(candidate)

    files = sorted(found, key=lambda p: path_sort_key(p, root))

    names: list[str] = []
    seen: set[str] = set()
    for p in files:
        if p.stem.lower() in seen:
            logger.trace("[PATCH] Skipping duplicate function name %s", p)
            continue
        seen.add(p.stem.lower())
        names.append(p.stem)

    logger.trace(
        "[PATCH] %s matched %d public function%s", pattern, len(names), plural(names)
    )
    return names


def patch_manifest(
    manifest_path: Path,
    public_filter: PathResolved | None = None,
    module_version: str | None = None,
) -> list[str]:
    """Update FunctionsToExport and ModuleVersion in place.

    Only the entries being set change; comments, ordering and formatting of
    the rest of the file are kept. With neither argument set the file is
    not touched. Returns the names of the entries written.
    """
    logger = getAppLogger()
    if public_filter is None and not module_version:
        logger.trace("[PATCH] Nothing to patch in %s", manifest_path.name)
        return []

    try:
        text, encoding = psd1.read_text(manifest_path)
    except (OSError, UnicodeDecodeError) as e:
        xmsg = f"Could not read {manifest_path}: {e}"
        raise FilesystemError(xmsg) from e

    source = manifest_path.name
    written: list[str] = []

    if public_filter is not None:
        functions = collect_public_functions(public_filter)
        text = psd1.set_value(text, (), MANIFEST_EXPORTS_KEY, functions, source=source)
        written.append(MANIFEST_EXPORTS_KEY)

    if module_version:
        version = parse_module_version(module_version)
        text = psd1.set_value(
            text, (), MANIFEST_VERSION_KEY, version.version, source=source
        )
        written.append(MANIFEST_VERSION_KEY)
        if version.prerelease:
            try:
                text = psd1.set_value(
                    text,
                    MANIFEST_PSDATA_PATH,
                    MANIFEST_PRERELEASE_KEY,
                    version.prerelease,
                    source=source,
                )
                written.append(MANIFEST_PRERELEASE_KEY)
            except KeyError:
                logger.warning(
                    "%s has no PrivateData.PSData table; prerelease %r not written",
                    source,
                    version.prerelease,
                )

    try:
        psd1.write_text(manifest_path, text, encoding)
    except OSError as e:
        xmsg = f"Could not write {manifest_path}: {e}"
        raise FilesystemError(xmsg) from e

    logger.debug("Patched %s: %s", source, ", ".join(written))
    return written
