# tests/utils/__init__.py

from .constants import DEFAULT_TEST_LOG_LEVEL, PROJ_ROOT
from .module import (
    DEFAULT_PRIVATE,
    DEFAULT_PUBLIC,
    GUID,
    make_manifest_text,
    make_module,
)
from .mtime import age_tree, set_mtime, snapshot_mtimes


__all__ = [  # noqa: RUF022
    # constants
    "PROJ_ROOT",
    "DEFAULT_TEST_LOG_LEVEL",
    # module
    "DEFAULT_PRIVATE",
    "DEFAULT_PUBLIC",
    "GUID",
    "make_manifest_text",
    "make_module",
    # mtime
    "age_tree",
    "set_mtime",
    "snapshot_mtimes",
]
