# tests/50_core/test_get_metadata.py
"""Verify get_metadata() reports a version and a commit."""

import re

import psmbuild.actions as mod_actions
from tests.utils import PROJ_ROOT


def test_get_metadata_returns_strings() -> None:
    # --- execute ---
    metadata = mod_actions.get_metadata()

    # --- verify ---
    assert isinstance(metadata.version, str)
    assert metadata.version
    assert isinstance(metadata.commit, str)
    assert metadata.commit


def test_get_metadata_reads_pyproject_version() -> None:
    """A source checkout reports the version declared in pyproject.toml."""
    # --- setup ---
    text = (PROJ_ROOT / "pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r'(?m)^version\s*=\s*"([^"]+)"', text)
    assert match is not None

    # --- execute ---
    metadata = mod_actions.get_metadata()

    # --- verify ---
    assert metadata.version == match.group(1)


def test_get_metadata_commit_format() -> None:
    # --- execute ---
    commit = mod_actions.get_metadata().commit

    # --- verify ---
    if commit != "unknown":
        assert all(c in "0123456789abcdef" for c in commit.lower())
