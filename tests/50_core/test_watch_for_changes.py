# tests/50_core/test_watch_for_changes.py
"""Tests for psmbuild.actions.watch_for_changes."""

from pathlib import Path
from typing import Any

import pytest

import psmbuild.actions as mod_actions
import psmbuild.config as mod_config
from tests.utils import make_module, set_mtime


def _fake_sleep(
    monkeypatch: pytest.MonkeyPatch,
    on_tick: dict[int, Any],
) -> dict[str, int]:
    """Replace time.sleep so each watch tick runs ``on_tick[n]`` instead."""
    counter = {"n": 0}

    def fake_sleep(*_args: Any, **_kwargs: Any) -> None:
        counter["n"] += 1
        action = on_tick.get(counter["n"])
        if action is not None:
            action()

    monkeypatch.setattr(mod_actions.time, "sleep", fake_sleep)
    return counter


def test_rebuilds_once_per_change(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """The initial build runs once, then one rebuild per modified tick."""
    # --- setup ---
    base = make_module(tmp_path, "MyModule")
    info = mod_config.resolve_build_config(base)
    calls: list[str] = []
    fragment = base / "Public" / "Get-Foo.ps1"
    _fake_sleep(monkeypatch, {2: lambda: set_mtime(fragment, 30)})

    # --- execute ---
    mod_actions.watch_for_changes(
        lambda: calls.append("rebuilt"), [info], interval=0.01, max_cycles=4
    )

    # --- verify ---
    assert calls == ["rebuilt", "rebuilt"]


def test_new_and_removed_files_trigger_rebuild(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")
    info = mod_config.resolve_build_config(base)
    calls: list[str] = []
    added = base / "Private" / "New-Thing.ps1"
    _fake_sleep(
        monkeypatch,
        {
            1: lambda: added.write_text("function New-Thing {}\n"),
            3: added.unlink,
        },
    )

    # --- execute ---
    mod_actions.watch_for_changes(
        lambda: calls.append("rebuilt"), [info], interval=0.01, max_cycles=3
    )

    # --- verify ---
    assert len(calls) == 3  # initial + add + remove


def test_ignores_changes_inside_output_directory(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")
    out = base / "Out"
    info = mod_config.resolve_build_config(base, {"output_directory": str(out)})
    out.mkdir()
    calls: list[str] = []
    _fake_sleep(
        monkeypatch, {1: lambda: (out / "MyModule.psm1").write_text("# built\n")}
    )

    # --- execute ---
    mod_actions.watch_for_changes(
        lambda: calls.append("rebuilt"), [info], interval=0.01, max_cycles=2
    )

    # --- verify ---
    assert calls == ["rebuilt"]


def test_keyboard_interrupt_stops_cleanly(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    base = make_module(tmp_path, "MyModule")
    info = mod_config.resolve_build_config(base)

    def interrupt() -> None:
        raise KeyboardInterrupt

    counter = _fake_sleep(monkeypatch, {2: interrupt})

    # --- execute ---
    mod_actions.watch_for_changes(lambda: None, [info], interval=0.01)

    # --- verify ---
    assert counter["n"] == 2
    out = capsys.readouterr().out
    assert "Watching for changes" in out
    assert "Watch stopped" in out
