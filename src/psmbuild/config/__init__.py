# src/psmbuild/config/__init__.py

"""Configuration handling for psmbuild.

Sidecar build config loading, layer merging and resolution of a module's
complete build settings.
"""

from .config_loader import (
    find_build_config,
    load_build_config,
    normalize_build_config,
)
from .config_resolve import (
    default_build_config,
    merge_layers,
    resolve_build_config,
    resolve_output_directory,
    resolve_text_block,
)
from .config_types import (
    BuildConfig,
    BuildConfigResolved,
    EncodingType,
    MetaBuildConfigResolved,
    ModuleInfo,
    OriginType,
    PathResolved,
    TargetType,
    TextBlockResolved,
)


__all__ = [  # noqa: RUF022
    # config_loader
    "find_build_config",
    "load_build_config",
    "normalize_build_config",
    # config_resolve
    "default_build_config",
    "merge_layers",
    "resolve_build_config",
    "resolve_output_directory",
    "resolve_text_block",
    # config_types
    "BuildConfig",
    "BuildConfigResolved",
    "EncodingType",
    "MetaBuildConfigResolved",
    "ModuleInfo",
    "OriginType",
    "PathResolved",
    "TargetType",
    "TextBlockResolved",
]
