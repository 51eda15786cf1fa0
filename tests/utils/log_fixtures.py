# tests/utils/log_fixtures.py
"""Reusable fixtures for testing with the app logger."""

import uuid

import pytest
from apathetic_logging import makeSafeTrace
from apathetic_utils import patch_everywhere

import psmbuild.logs as mod_logs
import psmbuild.meta as mod_meta


TEST_TRACE = makeSafeTrace("📏")


def _suffix() -> str:
    return "_" + uuid.uuid4().hex[:6]


@pytest.fixture
def module_logger(monkeypatch: pytest.MonkeyPatch) -> mod_logs.AppLogger:
    """Replace getAppLogger() everywhere with a new isolated instance.

    Ensures all modules (build, config, etc.) calling getAppLogger()
    will use this test logger for the duration of the test.

    Automatically reverts after test completion.

    Default log level is set to "test" for maximum verbosity in test output.
    """
    new_logger = mod_logs.AppLogger(f"isolated_logger{_suffix()}", enable_color=False)
    new_logger.setLevel("test")
    patch_everywhere(
        monkeypatch,
        mod_logs,
        "getAppLogger",
        lambda: new_logger,
        package_prefix=mod_meta.PROGRAM_PACKAGE,
    )
    TEST_TRACE(
        "module_logger fixture",
        f"id={id(new_logger)}",
        f"level={new_logger.levelName}",
    )
    return new_logger
