# src/psmbuild/errors.py
"""Fatal build errors.

Each error also derives from the builtin exception the CLI already treats
as a controlled termination, so callers can catch either form.
"""


class BuildError(Exception):
    """Base for every error that aborts a module build."""


class InvalidSourcePathError(BuildError, FileNotFoundError):
    """Source path is missing or is not a module directory."""


class ManifestNotFoundError(BuildError, FileNotFoundError):
    """The derived ``<Name>.psd1`` manifest does not exist."""


class ManifestLoadError(BuildError, ValueError):
    """Manifest could not be parsed or has unsuppressed diagnostics."""

    def __init__(self, msg: str, diagnostics: list[str] | None = None) -> None:
        super().__init__(msg)
        self.diagnostics = diagnostics or []


class FilesystemError(BuildError, RuntimeError):
    """Copy, write or delete failed while cleaning or assembling."""
