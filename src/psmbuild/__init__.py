# src/psmbuild/__init__.py

"""PSModBuild: build a PowerShell module from its source fragments.

Full developer API
==================
This package re-exports all non-private symbols from its submodules,
making it suitable for programmatic use, custom integrations, or plugins.
Anything prefixed with "_" is considered internal and may change.

Highlights:
    - main()                  → CLI entrypoint
    - run_build()             → Resolve and build one module
    - resolve_build_config()  → Merge defaults, build.psd1 and overrides
    - patch_manifest()        → Rewrite FunctionsToExport / ModuleVersion
    - get_metadata()          → Retrieve version / commit info
"""

from .actions import get_metadata, watch_for_changes
from .assemble import AssembledArtifact, Fragment, assemble_module, iter_fragments
from .build import build_module, run_all_builds, run_build
from .cli import main
from .config import (
    BuildConfig,
    BuildConfigResolved,
    MetaBuildConfigResolved,
    ModuleInfo,
    OriginType,
    PathResolved,
    TextBlockResolved,
    find_build_config,
    load_build_config,
    resolve_build_config,
)
from .constants import (
    DEFAULT_ENV_LOG_LEVEL,
    DEFAULT_ENV_WATCH_INTERVAL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_WATCH_INTERVAL,
)
from .errors import (
    BuildError,
    FilesystemError,
    InvalidSourcePathError,
    ManifestLoadError,
    ManifestNotFoundError,
)
from .logs import getAppLogger
from .manifest import (
    LoadedManifest,
    ManifestLocation,
    derive_module_name,
    load_manifest,
    resolve_manifest,
)
from .meta import (
    PROGRAM_DISPLAY,
    PROGRAM_ENV,
    PROGRAM_PACKAGE,
    PROGRAM_SCRIPT,
    Metadata,
)
from .patch import collect_public_functions, patch_manifest
from .staleness import clean_output, should_build
from .versions import ModuleVersion, parse_module_version


__all__ = [  # noqa: RUF022
    # actions
    "get_metadata",
    "watch_for_changes",
    # assemble
    "AssembledArtifact",
    "Fragment",
    "assemble_module",
    "iter_fragments",
    # build
    "build_module",
    "run_all_builds",
    "run_build",
    # cli
    "main",
    # config
    "BuildConfig",
    "BuildConfigResolved",
    "find_build_config",
    "load_build_config",
    "MetaBuildConfigResolved",
    "ModuleInfo",
    "OriginType",
    "PathResolved",
    "resolve_build_config",
    "TextBlockResolved",
    # constants
    "DEFAULT_ENV_LOG_LEVEL",
    "DEFAULT_ENV_WATCH_INTERVAL",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_WATCH_INTERVAL",
    # errors
    "BuildError",
    "FilesystemError",
    "InvalidSourcePathError",
    "ManifestLoadError",
    "ManifestNotFoundError",
    # logs
    "getAppLogger",
    # manifest
    "derive_module_name",
    "LoadedManifest",
    "load_manifest",
    "ManifestLocation",
    "resolve_manifest",
    # meta
    "Metadata",
    "PROGRAM_DISPLAY",
    "PROGRAM_ENV",
    "PROGRAM_PACKAGE",
    "PROGRAM_SCRIPT",
    # patch
    "collect_public_functions",
    "patch_manifest",
    # staleness
    "clean_output",
    "should_build",
    # versions
    "ModuleVersion",
    "parse_module_version",
]
