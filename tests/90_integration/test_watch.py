# tests/90_integration/test_watch.py
"""Tests for --watch and how its interval is chosen."""

from pathlib import Path
from typing import Any

import apathetic_utils as mod_utils
import pytest

import psmbuild.actions as mod_actions
import psmbuild.cli as mod_cli
import psmbuild.constants as mod_constants
import psmbuild.meta as mod_meta
from tests.utils import make_module


def _capture_watch(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    called: dict[str, Any] = {}

    def fake_watch(
        rebuild_func: Any,
        modules: list[Any],
        interval: float,
        **_kwargs: Any,
    ) -> None:
        called["rebuild"] = rebuild_func
        called["modules"] = modules
        called["interval"] = interval

    mod_utils.patch_everywhere(
        monkeypatch,
        mod_actions,
        "watch_for_changes",
        fake_watch,
        package_prefix=mod_meta.PROGRAM_PACKAGE,
    )
    return called


def test_watch_flag_invokes_watch_mode(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")
    called = _capture_watch(monkeypatch)

    # --- execute ---
    code = mod_cli.main([str(base), "--watch", "0.25"])

    # --- verify ---
    assert code == 0
    assert called["interval"] == pytest.approx(0.25)
    assert [m["name"] for m in called["modules"]] == ["MyModule"]
    # nothing is built until the watcher asks for it
    assert not (tmp_path / "Output").exists()
    called["rebuild"]()
    assert (tmp_path / "Output" / "MyModule" / "MyModule.psm1").exists()


def test_watch_without_value_reads_env(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")
    called = _capture_watch(monkeypatch)
    monkeypatch.setenv(f"{mod_meta.PROGRAM_ENV}_WATCH_INTERVAL", "0.42")

    # --- execute ---
    code = mod_cli.main([str(base), "--watch"])

    # --- verify ---
    assert code == 0
    assert called["interval"] == pytest.approx(0.42)


def test_watch_falls_back_to_default_interval(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")
    called = _capture_watch(monkeypatch)
    monkeypatch.delenv(f"{mod_meta.PROGRAM_ENV}_WATCH_INTERVAL", raising=False)
    monkeypatch.delenv("WATCH_INTERVAL", raising=False)

    # --- execute ---
    code = mod_cli.main([str(base), "--watch"])

    # --- verify ---
    assert code == 0
    expected = mod_constants.DEFAULT_WATCH_INTERVAL
    assert called["interval"] == pytest.approx(expected)


def test_watch_builds_then_stops_on_interrupt(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")

    def fake_sleep(*_args: Any, **_kwargs: Any) -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(mod_actions.time, "sleep", fake_sleep)

    # --- execute ---
    code = mod_cli.main([str(base), "--watch", "5"])

    # --- verify ---
    assert code == 0
    assert (tmp_path / "Output" / "MyModule" / "MyModule.psm1").exists()
    assert "Watch stopped" in capsys.readouterr().out
