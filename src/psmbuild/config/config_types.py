# src/psmbuild/config/config_types.py


from pathlib import Path
from typing import Any, Literal, TypedDict

from typing_extensions import NotRequired


OriginType = Literal["cli", "config", "default", "code"]

TargetType = Literal["Clean", "Build", "CleanBuild"]

EncodingType = Literal["UTF8", "UTF7", "ASCII", "Unicode", "UTF16", "UTF32"]


class PathResolved(TypedDict):
    path: Path | str  # relative to `root`, or a pattern
    root: Path  # canonical origin directory for resolution

    # meta only
    origin: OriginType  # provenance


class TextBlockResolved(TypedDict):
    label: str  # PREFIX / POSTFIX
    origin: Literal["file", "inline"]
    path: NotRequired[Path]  # origin == "file"
    text: NotRequired[str]  # origin == "inline"


class BuildConfig(TypedDict, total=False):
    """One sparse layer of build settings (defaults, sidecar file, overrides)."""

    source_path: str | Path
    output_directory: str | Path
    module_version: str
    copy_directories: list[str]
    source_directories: list[str]
    public_filter: str
    encoding: str
    prefix: str
    postfix: str
    target: str
    passthru: bool
    versioned_output_directory: bool
    suppress_diagnostics: list[str]


class MetaBuildConfigResolved(TypedDict):
    # sources of parameters
    config_path: Path | None  # sidecar file, if one was found
    origins: dict[str, OriginType]  # key -> layer that supplied it


class BuildConfigResolved(TypedDict):
    source_path: Path
    output_directory: Path
    module_version: str | None
    copy_directories: list[PathResolved]
    source_directories: list[Path]
    public_filter: PathResolved | None  # None leaves the export list alone
    encoding: EncodingType
    prefix: TextBlockResolved | None
    postfix: TextBlockResolved | None
    target: TargetType
    passthru: bool
    versioned_output_directory: bool
    suppress_diagnostics: list[str]

    # global provenance (optional, for audit/debug)
    __meta__: MetaBuildConfigResolved


class ModuleInfo(BuildConfigResolved):
    """Resolved build settings overlaid on the module's manifest."""

    name: str
    module_base: Path
    manifest_path: Path
    manifest: dict[str, Any]
    diagnostics: list[str]  # suppressed manifest diagnostics

    # filled in by a completed build
    artifact_path: NotRequired[Path]
    output_manifest_path: NotRequired[Path]
