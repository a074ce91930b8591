from __future__ import annotations

import logging
import os
import sys
from typing import Literal

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

LOGLEVEL_ENV_VAR = "LOGLEVEL"
DEFAULT_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%H:%M:%S"

# third-party loggers that are noisy at DEBUG
QUIET_LOGGERS = ("dbus_fast", "asyncio")


def _resolve_level(level: str | None) -> str:
    resolved = (level or os.environ.get(LOGLEVEL_ENV_VAR) or DEFAULT_LEVEL).upper()
    if resolved not in logging.getLevelNamesMapping():
        return DEFAULT_LEVEL
    return resolved


def setup_logging(level: LogLevel | None = None) -> None:
    """Colored logs on stderr so stdout stays clean for command output."""
    coloredlogs.install(
        level=_resolve_level(level),
        fmt=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
