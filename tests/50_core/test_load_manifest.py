# tests/50_core/test_load_manifest.py
"""Tests for manifest loading and reference diagnostics."""

from pathlib import Path

import pytest

import psmbuild.errors as mod_errors
import psmbuild.manifest as mod_manifest
from tests.utils import make_manifest_text, make_module


def test_default_suppression_allows_missing_root_module(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """RootModule normally points at the .psm1 the build is about to create."""
    # --- setup ---
    base = make_module(tmp_path, "MyModule")

    # --- execute ---
    loaded = mod_manifest.load_manifest(base / "MyModule.psd1")

    # --- verify ---
    assert loaded.data["RootModule"] == "MyModule.psm1"
    assert len(loaded.diagnostics) == 1
    assert loaded.diagnostics[0].startswith("InvalidRootModuleInModuleManifest")
    assert "ignoring manifest problem" in capsys.readouterr().err.lower()


def test_unsuppressed_diagnostic_is_fatal(tmp_path: Path) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")

    # --- execute ---
    with pytest.raises(mod_errors.ManifestLoadError) as exc_info:
        mod_manifest.load_manifest(base / "MyModule.psd1", suppress=[])

    # --- verify ---
    assert exc_info.value.diagnostics == [
        "InvalidRootModuleInModuleManifest: RootModule 'MyModule.psm1' "
        f"was not found in {base}"
    ]
    assert isinstance(exc_info.value, ValueError)


def test_existing_root_module_has_no_diagnostics(tmp_path: Path) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule", files={"MyModule.psm1": ""})

    # --- execute ---
    loaded = mod_manifest.load_manifest(base / "MyModule.psd1", suppress=[])

    # --- verify ---
    assert loaded.diagnostics == []


def test_suppress_matches_by_substring(tmp_path: Path) -> None:
    # --- setup ---
    manifest = make_manifest_text(
        "MyModule", extra="    NestedModules = @('Lib\\Helper.psm1', 'PSReadLine')"
    )
    base = make_module(tmp_path, "MyModule", manifest=manifest)

    # --- execute ---
    loaded = mod_manifest.load_manifest(
        base / "MyModule.psd1", suppress=["RootModule", "nested"]
    )

    # --- verify ---
    identifiers = sorted(d.split(":", 1)[0] for d in loaded.diagnostics)
    # PSReadLine names an installed module, not a file, so it is not checked
    assert identifiers == [
        "InvalidNestedModuleInModuleManifest",
        "InvalidRootModuleInModuleManifest",
    ]


def test_bad_version_and_guid_are_reported(tmp_path: Path) -> None:
    # --- setup ---
    manifest = make_manifest_text("MyModule", version="one").replace(
        "a3b5c7d9-1234-4abc-9def-0123456789ab", "not-a-guid"
    )
    base = make_module(tmp_path, "MyModule", manifest=manifest)

    # --- execute ---
    with pytest.raises(mod_errors.ManifestLoadError) as exc_info:
        mod_manifest.load_manifest(base / "MyModule.psd1")

    # --- verify ---
    identifiers = [d.split(":", 1)[0] for d in exc_info.value.diagnostics]
    assert identifiers == [
        "InvalidModuleVersionInModuleManifest",
        "InvalidGuidInModuleManifest",
    ]


def test_unparseable_manifest(tmp_path: Path) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule", manifest="@{ RootModule = $x }\n")

    # --- execute and verify ---
    with pytest.raises(mod_errors.ManifestLoadError, match=r"MyModule\.psd1:1:"):
        mod_manifest.load_manifest(base / "MyModule.psd1")


def test_manifest_must_be_a_hashtable(tmp_path: Path) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule", manifest="@('a', 'b')\n")

    # --- execute and verify ---
    with pytest.raises(mod_errors.ManifestLoadError, match="expected a hashtable"):
        mod_manifest.load_manifest(base / "MyModule.psd1")
