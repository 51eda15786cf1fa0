# src/psmbuild/meta.py
"""Program identity constants."""

from typing import NamedTuple


PROGRAM_PACKAGE = "psmbuild"
PROGRAM_SCRIPT = "psmbuild"
PROGRAM_DISPLAY = "PSModBuild"
PROGRAM_ENV = "PSMBUILD"


class Metadata(NamedTuple):
    """Version information for the tool itself."""

    version: str
    commit: str
