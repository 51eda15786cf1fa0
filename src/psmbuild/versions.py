# src/psmbuild/versions.py

import re
from typing import NamedTuple


_SEMVER_RE = re.compile(
    r"^v?(?P<version>\d+(?:\.\d+){1,3})"
    r"(?:-(?P<prerelease>[0-9A-Za-z][0-9A-Za-z.-]*))?"
    r"(?:\+(?P<build>[0-9A-Za-z][0-9A-Za-z.-]*))?$"
)


class ModuleVersion(NamedTuple):
    version: str  # numeric part, as written to ModuleVersion
    prerelease: str | None
    build: str | None


def parse_module_version(raw: str) -> ModuleVersion:
    """Split a semantic version like ``1.2.3-beta1+sha`` into its parts.

    A leading ``v`` is accepted. Raises ValueError for anything else.
    """
    match = _SEMVER_RE.match(raw.strip())
    if not match:
        xmsg = (
            f"Invalid module version {raw!r}: "
            "expected a semantic version such as 1.2.3 or 1.2.3-beta1"
        )
        raise ValueError(xmsg)
    return ModuleVersion(
        match.group("version"),
        match.group("prerelease"),
        match.group("build"),
    )
