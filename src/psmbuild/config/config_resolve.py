# src/psmbuild/config/config_resolve.py


from collections.abc import Sequence
from difflib import get_close_matches
from pathlib import Path
from typing import Any, cast

from apathetic_utils import cast_hint

from psmbuild import psd1
from psmbuild.constants import (
    DEFAULT_ENCODING,
    DEFAULT_OUTPUT_DIR_NAME,
    DEFAULT_PASSTHRU,
    DEFAULT_PUBLIC_FILTER,
    DEFAULT_SOURCE_DIRECTORIES,
    DEFAULT_SUPPRESS_DIAGNOSTICS,
    DEFAULT_TARGET,
    DEFAULT_VERSIONED_OUTPUT_DIRECTORY,
    ENCODINGS,
    MANIFEST_VERSION_KEY,
    POSTFIX_LABEL,
    PREFIX_LABEL,
    TARGETS,
)
from psmbuild.logs import getAppLogger
from psmbuild.manifest import ManifestLocation, load_manifest, resolve_manifest
from psmbuild.versions import parse_module_version

from .config_loader import find_build_config, load_build_config
from .config_types import (
    BuildConfig,
    EncodingType,
    MetaBuildConfigResolved,
    ModuleInfo,
    OriginType,
    PathResolved,
    TargetType,
    TextBlockResolved,
)


# --------------------------------------------------------------------------- #
# layers
# --------------------------------------------------------------------------- #


def default_build_config() -> BuildConfig:
    """Built-in defaults, the lowest configuration layer."""
    return BuildConfig(
        source_directories=list(DEFAULT_SOURCE_DIRECTORIES),
        copy_directories=[],
        public_filter=DEFAULT_PUBLIC_FILTER,
        encoding=DEFAULT_ENCODING,
        target=DEFAULT_TARGET,
        passthru=DEFAULT_PASSTHRU,
        versioned_output_directory=DEFAULT_VERSIONED_OUTPUT_DIRECTORY,
        suppress_diagnostics=list(DEFAULT_SUPPRESS_DIAGNOSTICS),
    )


def merge_layers(
    layers: Sequence[tuple[OriginType, BuildConfig]],
) -> tuple[BuildConfig, dict[str, OriginType]]:
    """Merge sparse config layers field by field; later layers win.

    A key set to None in a layer counts as unset. Returns the merged config
    and, for every key, the origin of the layer that supplied it.
    """
    merged: dict[str, Any] = {}
    origins: dict[str, OriginType] = {}
    for origin, layer in layers:
        for key, value in layer.items():
            if value is None:
                continue
            merged[key] = value
            origins[key] = origin
    return cast("BuildConfig", merged), origins


def _load_sidecar(module_base: Path) -> tuple[Path | None, BuildConfig]:
    config_path = find_build_config(module_base)
    if config_path is None:
        return None, BuildConfig()
    return config_path, load_build_config(config_path)


# --------------------------------------------------------------------------- #
# field resolution
# --------------------------------------------------------------------------- #


def _resolve_choice(value: str, choices: Sequence[str], label: str) -> str:
    for choice in choices:
        if choice.lower() == value.lower():
            return choice
    close = get_close_matches(value, list(choices), n=1, cutoff=0.6)
    hint = f" Did you mean {close[0]!r}?" if close else ""
    xmsg = f"Invalid {label} {value!r}; expected one of: {', '.join(choices)}.{hint}"
    raise ValueError(xmsg)


def _anchor(raw: str | Path, base: Path) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _is_existing_file(candidate: Path) -> bool:
    try:
        return candidate.is_file()
    except (OSError, ValueError):
        # inline text can be too long or contain characters no path allows
        return False


def resolve_text_block(
    value: str | None,
    label: str,
    module_base: Path,
) -> TextBlockResolved | None:
    """Decide once whether a prefix/postfix names a file or is inline text."""
    logger = getAppLogger()
    if not value:
        return None
    if "\n" not in value:
        candidate = Path(value).expanduser()
        if not candidate.is_absolute():
            candidate = module_base / candidate
        if _is_existing_file(candidate):
            logger.trace("[RESOLVE] %s is read from file %s", label, candidate)
            return TextBlockResolved(
                label=label, origin="file", path=candidate.resolve()
            )
    logger.trace("[RESOLVE] %s is inline text", label)
    return TextBlockResolved(label=label, origin="inline", text=value)


def _make_path_resolved(raw: str, root: Path, origin: OriginType) -> PathResolved:
    path = Path(raw).expanduser()
    if path.is_absolute():
        try:
            return PathResolved(path=path.relative_to(root), root=root, origin=origin)
        except ValueError:
            return PathResolved(path=path.name, root=path.parent, origin=origin)
    return PathResolved(path=raw.replace("\\", "/"), root=root, origin=origin)


def resolve_output_directory(
    raw: str | Path | None,
    module_base: Path,
    name: str,
) -> Path:
    """Unset → ``<parent>/Output/<name>``; relative → anchored at the parent.

    The parent is the module base's parent folder. Absolute values pass
    through unchanged.
    """
    parent = module_base.parent
    if raw is None or str(raw) == "":
        return parent / DEFAULT_OUTPUT_DIR_NAME / name
    return _anchor(raw, parent)


def _manifest_version(manifest: dict[str, Any]) -> str | None:
    value = psd1.get_value(manifest, MANIFEST_VERSION_KEY)
    return None if value is None else str(value)


# --------------------------------------------------------------------------- #
# main entry
# --------------------------------------------------------------------------- #


def _resolve_layers(
    location: ManifestLocation,
    overrides: BuildConfig,
    overrides_origin: OriginType,
) -> tuple[Path | None, BuildConfig, dict[str, OriginType]]:
    config_path, file_cfg = _load_sidecar(location.module_base)
    merged, origins = merge_layers(
        [
            ("default", default_build_config()),
            ("config", file_cfg),
            (overrides_origin, overrides),
        ]
    )
    return config_path, merged, origins


def resolve_build_config(  # noqa: PLR0912, PLR0915
    path: Path | str,
    overrides: BuildConfig | None = None,
    *,
    overrides_origin: OriginType = "code",
) -> ModuleInfo:
    """Resolve everything one module build needs.

    Layers are merged defaults → sidecar build config → ``overrides``. The
    manifest is located from ``path`` (or from a ``source_path`` the merged
    config points at instead), loaded, and the resolved fields are laid over
    its data. All paths in the result are absolute.
    """
    logger = getAppLogger()
    overrides = overrides or BuildConfig()

    location = resolve_manifest(path)
    config_path, merged, origins = _resolve_layers(
        location, overrides, overrides_origin
    )

    # A Path/SourcePath setting may move the module somewhere else.
    raw_source = merged.get("source_path")
    if raw_source is not None:
        anchor = (
            config_path.parent
            if origins.get("source_path") == "config" and config_path
            else Path.cwd()
        )
        source = _anchor(raw_source, anchor)
        if source not in (location.module_base, location.manifest_path):
            logger.debug("Source path redirected by config → %s", source)
            location = resolve_manifest(source)
            config_path, merged, origins = _resolve_layers(
                location, overrides, overrides_origin
            )
    for key, origin in sorted(origins.items()):
        logger.trace("[CONFIG] %s ← %s", key, origin)

    name, module_base, manifest_path = location

    target = cast_hint(TargetType, _resolve_choice(merged["target"], TARGETS, "target"))
    encoding = cast_hint(
        EncodingType, _resolve_choice(merged["encoding"], list(ENCODINGS), "encoding")
    )

    module_version = merged.get("module_version") or None
    if module_version is not None:
        parse_module_version(module_version)

    suppress = merged.get("suppress_diagnostics", [])
    loaded = load_manifest(manifest_path, module_base, suppress=suppress)

    output_directory = resolve_output_directory(
        merged.get("output_directory"), module_base, name
    )
    if merged.get("versioned_output_directory", False):
        version = (
            parse_module_version(module_version).version
            if module_version
            else _manifest_version(loaded.data)
        )
        if not version:
            xmsg = (
                "versioned_output_directory needs a module version, but neither"
                f" the build nor {manifest_path.name} sets one"
            )
            raise ValueError(xmsg)
        output_directory = output_directory / version

    config_origin = origins.get("copy_directories", "default")
    copy_directories = [
        _make_path_resolved(d, module_base, config_origin)
        for d in merged.get("copy_directories", [])
    ]
    source_directories = [
        _anchor(d, module_base) for d in merged.get("source_directories", [])
    ]
    raw_filter = merged.get("public_filter") or None
    public_filter = (
        _make_path_resolved(
            raw_filter, module_base, origins.get("public_filter", "default")
        )
        if raw_filter
        else None
    )

    meta = MetaBuildConfigResolved(config_path=config_path, origins=origins)
    info = ModuleInfo(
        source_path=module_base,
        output_directory=output_directory,
        module_version=module_version,
        copy_directories=copy_directories,
        source_directories=source_directories,
        public_filter=public_filter,
        encoding=encoding,
        prefix=resolve_text_block(merged.get("prefix"), PREFIX_LABEL, module_base),
        postfix=resolve_text_block(merged.get("postfix"), POSTFIX_LABEL, module_base),
        target=target,
        passthru=merged.get("passthru", False),
        versioned_output_directory=merged.get("versioned_output_directory", False),
        suppress_diagnostics=list(suppress),
        __meta__=meta,
        name=name,
        module_base=module_base,
        manifest_path=manifest_path,
        manifest=loaded.data,
        diagnostics=loaded.diagnostics,
    )

    logger.debug(
        "Resolved %s: target=%s, output=%s", name, target, output_directory
    )
    return info
