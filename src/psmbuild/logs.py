# src/psmbuild/logs.py
"""The psmbuild logger.

Every build step logs through getAppLogger(). Info lines are the build
progress (resolve, clean, assemble, patch), debug lines list copied files
and fragments, and trace lines carry tags such as [RESOLVE] or [PATCH].
The level comes from --log-level, then PSMBUILD_LOG_LEVEL or LOG_LEVEL,
then "info".
"""

import logging
from typing import cast

from apathetic_logging import (
    Logger,
    registerDefaultLogLevel,
    registerLogger,
    registerLogLevelEnvVars,
)

from .constants import DEFAULT_ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL
from .meta import PROGRAM_ENV, PROGRAM_PACKAGE


class AppLogger(Logger):
    """App-specific logger class."""


# --- Logger initialization ---------------------------------------------------

# Must happen before any loggers are created.
logging.setLoggerClass(AppLogger)

# Registers TRACE, DETAIL, BRIEF, TEST and SILENT levels
AppLogger.extendLoggingModule()

registerLogLevelEnvVars(
    [f"{PROGRAM_ENV}_{DEFAULT_ENV_LOG_LEVEL}", DEFAULT_ENV_LOG_LEVEL]
)
registerDefaultLogLevel(DEFAULT_LOG_LEVEL)
registerLogger(PROGRAM_PACKAGE)

_APP_LOGGER = cast("AppLogger", logging.getLogger(PROGRAM_PACKAGE))


# --- Convenience utils ---------------------------------------------------------


def getAppLogger() -> AppLogger:  # noqa: N802
    """Return the configured app logger.

    Call this at function entry instead of caching the logger at import time
    so tests can swap it out with the module_logger fixture.
    """
    return _APP_LOGGER
