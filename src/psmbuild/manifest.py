# src/psmbuild/manifest.py
"""Locate and load module manifests."""

import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any, NamedTuple

from . import psd1
from .constants import (
    CONTAINER_DIR_NAMES,
    DEFAULT_SUPPRESS_DIAGNOSTICS,
    MANIFEST_EXTENSION,
    MANIFEST_VERSION_KEY,
)
from .errors import InvalidSourcePathError, ManifestLoadError, ManifestNotFoundError
from .logs import getAppLogger


_DOTTED_VERSION_RE = re.compile(r"^\d+(\.\d+){1,3}$")
_GUID_RE = re.compile(
    r"^\{?[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\}?$",
    re.IGNORECASE,
)
# NestedModules may name installed modules; only path-like entries are checked
_PATH_LIKE_RE = re.compile(r"[\\/]|\.(psm1|psd1|ps1|dll|cdxml|xaml)$", re.IGNORECASE)


class ManifestLocation(NamedTuple):
    name: str
    module_base: Path
    manifest_path: Path


class LoadedManifest(NamedTuple):
    data: dict[str, Any]
    diagnostics: list[str]  # suppressed ones only


def derive_module_name(module_base: Path) -> str:
    """Name a module after its folder.

    A generic container folder such as ``Source`` or ``src`` does not name
    the module; its parent folder does.
    """
    name = module_base.name
    if name.lower().endswith(MANIFEST_EXTENSION):
        name = name[: -len(MANIFEST_EXTENSION)]
    if name.lower() in CONTAINER_DIR_NAMES:
        name = module_base.parent.name
    return name


def resolve_manifest(path: Path | str) -> ManifestLocation:
    """Find the module base, module name and manifest for ``path``.

    ``path`` is the module's source folder or the manifest file itself.
    """
    logger = getAppLogger()
    source = Path(path).expanduser().resolve()

    if source.is_file() and source.suffix.lower() == MANIFEST_EXTENSION:
        logger.trace("[RESOLVE] Source path is a manifest: %s", source)
        return ManifestLocation(source.stem, source.parent, source)

    if not source.exists():
        xmsg = f"Source path not found: {source}"
        raise InvalidSourcePathError(xmsg)
    if not source.is_dir():
        xmsg = f"Source path is not a directory: {source}"
        raise InvalidSourcePathError(xmsg)

    name = derive_module_name(source)
    manifest_path = source / f"{name}{MANIFEST_EXTENSION}"
    logger.trace("[RESOLVE] %s → module %r, manifest %s", source, name, manifest_path)

    if not manifest_path.is_file():
        xmsg = f"Module manifest not found: {manifest_path}"
        raise ManifestNotFoundError(xmsg)

    return ManifestLocation(name, source, manifest_path)


# --------------------------------------------------------------------------- #
# loading
# --------------------------------------------------------------------------- #


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def check_manifest(data: dict[str, Any], module_base: Path) -> list[str]:
    """Return diagnostics for references the manifest cannot satisfy.

    Each diagnostic starts with an identifier such as
    ``InvalidRootModuleInModuleManifest`` followed by a description.
    """
    diagnostics: list[str] = []

    root_module = psd1.get_value(data, "RootModule") or psd1.get_value(
        data, "ModuleToProcess"
    )
    if isinstance(root_module, str) and root_module:
        if not (module_base / root_module).exists():
            diagnostics.append(
                "InvalidRootModuleInModuleManifest: "
                f"RootModule {root_module!r} was not found in {module_base}"
            )

    for nested in _as_list(psd1.get_value(data, "NestedModules")):
        if isinstance(nested, dict):
            nested = psd1.get_value(nested, "ModuleName")  # noqa: PLW2901
        if not isinstance(nested, str) or not _PATH_LIKE_RE.search(nested):
            continue
        if not (module_base / nested).exists():
            diagnostics.append(
                "InvalidNestedModuleInModuleManifest: "
                f"NestedModules entry {nested!r} was not found in {module_base}"
            )

    version = psd1.get_value(data, MANIFEST_VERSION_KEY)
    if version is not None and not _DOTTED_VERSION_RE.match(str(version)):
        diagnostics.append(
            "InvalidModuleVersionInModuleManifest: "
            f"{MANIFEST_VERSION_KEY} {version!r} is not a version number"
        )

    guid = psd1.get_value(data, "GUID")
    if guid is not None and not _GUID_RE.match(str(guid)):
        diagnostics.append(f"InvalidGuidInModuleManifest: GUID {guid!r} is malformed")

    return diagnostics


def is_suppressed(diagnostic: str, suppress: Sequence[str]) -> bool:
    identifier = diagnostic.split(":", 1)[0].lower()
    return any(s and s.lower() in identifier for s in suppress)


def load_manifest(
    manifest_path: Path,
    module_base: Path | None = None,
    *,
    suppress: Sequence[str] = DEFAULT_SUPPRESS_DIAGNOSTICS,
) -> LoadedManifest:
    """Parse a manifest and check its references.

    Diagnostics matching ``suppress`` are logged and returned; any other
    diagnostic, or a file that does not parse, raises ManifestLoadError.
    """
    logger = getAppLogger()
    base = module_base or manifest_path.parent

    try:
        data = psd1.load(manifest_path)
    except (OSError, UnicodeDecodeError) as e:
        xmsg = f"Could not read module manifest {manifest_path}: {e}"
        raise ManifestLoadError(xmsg) from e
    except psd1.Psd1ParseError as e:
        xmsg = f"Invalid module manifest {e}"
        raise ManifestLoadError(xmsg) from e

    if not isinstance(data, dict):
        xmsg = (
            f"Invalid module manifest {manifest_path.name}: "
            f"expected a hashtable, got {type(data).__name__}"
        )
        raise ManifestLoadError(xmsg)

    suppressed: list[str] = []
    fatal: list[str] = []
    for diagnostic in check_manifest(data, base):
        if is_suppressed(diagnostic, suppress):
            logger.warning("Ignoring manifest problem: %s", diagnostic)
            suppressed.append(diagnostic)
        else:
            fatal.append(diagnostic)

    if fatal:
        details = "\n   ".join(fatal)
        xmsg = f"Module manifest {manifest_path.name} failed to load:\n   {details}"
        raise ManifestLoadError(xmsg, fatal)

    logger.trace("[MANIFEST] Loaded %s (%d key(s))", manifest_path, len(data))
    return LoadedManifest(data, suppressed)
