# tests/50_core/test_should_build.py
"""Tests for the Clean / Build / CleanBuild staleness decision."""

from pathlib import Path

import pytest

import psmbuild.staleness as mod_staleness
from tests.utils import age_tree, set_mtime


def _make_tree(tmp_path: Path) -> tuple[Path, Path]:
    src = tmp_path / "MyModule"
    (src / "Public").mkdir(parents=True)
    (src / "Public" / "Get-Foo.ps1").write_text("function Get-Foo {}\n")
    (src / "MyModule.psd1").write_text("@{}\n")
    out = tmp_path / "Output" / "MyModule"
    out.mkdir(parents=True)
    (out / "MyModule.psm1").write_text("# built\n")
    return src, out


def test_clean_removes_output_and_stops(tmp_path: Path) -> None:
    # --- setup ---
    src, out = _make_tree(tmp_path)

    # --- execute ---
    result = mod_staleness.should_build("Clean", src, out)

    # --- verify ---
    assert result is False
    assert not out.exists()
    assert (src / "Public" / "Get-Foo.ps1").exists()


def test_clean_without_output_is_fine(tmp_path: Path) -> None:
    # --- execute and verify ---
    assert mod_staleness.should_build("Clean", tmp_path, tmp_path / "missing") is False


def test_cleanbuild_removes_output_and_builds(tmp_path: Path) -> None:
    # --- setup ---
    src, out = _make_tree(tmp_path)

    # --- execute ---
    result = mod_staleness.should_build("CleanBuild", src, out)

    # --- verify ---
    assert result is True
    assert not out.exists()


def test_build_without_previous_output(tmp_path: Path) -> None:
    # --- setup ---
    src, out = _make_tree(tmp_path)
    (out / "MyModule.psm1").unlink()

    # --- execute and verify ---
    assert mod_staleness.should_build("Build", src, out) is True


def test_build_skips_when_output_is_newer(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    src, out = _make_tree(tmp_path)
    age_tree(src, 120)

    # --- execute ---
    result = mod_staleness.should_build("Build", src, out)

    # --- verify ---
    assert result is False
    assert (out / "MyModule.psm1").exists()
    assert "is up to date" in capsys.readouterr().out


def test_build_runs_when_a_source_is_newer(tmp_path: Path) -> None:
    # --- setup ---
    src, out = _make_tree(tmp_path)
    age_tree(src, 120)
    age_tree(out, 60)
    set_mtime(src / "Public" / "Get-Foo.ps1", -30)

    # --- execute ---
    result = mod_staleness.should_build("Build", src, out)

    # --- verify ---
    assert result is True
    assert (out / "MyModule.psm1").exists()  # Build never cleans


def test_output_inside_source_is_ignored(tmp_path: Path) -> None:
    """Built files under the source tree must not count as newer sources."""
    # --- setup ---
    src = tmp_path / "MyModule"
    src.mkdir()
    (src / "a.ps1").write_text("1")
    out = src / "Output"
    out.mkdir()
    (out / "MyModule.psm1").write_text("# built")
    age_tree(src, 120)
    set_mtime(out / "MyModule.psm1", -60)
    (out / "later.txt").write_text("x")

    # --- execute and verify ---
    assert mod_staleness.find_newer_source(src, out, since=0.0) == src / "a.ps1"
    assert mod_staleness.should_build("Build", src, out) is False


def test_newest_mtime(tmp_path: Path) -> None:
    # --- setup ---
    (tmp_path / "a").write_text("a")
    (tmp_path / "b").write_text("b")
    set_mtime(tmp_path / "a", -100)
    set_mtime(tmp_path / "b", -10)

    # --- execute ---
    newest = mod_staleness.newest_mtime(tmp_path)

    # --- verify ---
    assert newest == (tmp_path / "b").stat().st_mtime
    assert mod_staleness.newest_mtime(tmp_path / "missing") is None
