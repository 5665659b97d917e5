"""GLOBEBOARD FILE PURPOSE
Purpose: the `globeboard` logger; quiet by default, chatty under GLOBEBOARD_DEBUG=1.
Hot path: yes (upstream and webhook paths log through here).
Feature flags: GLOBEBOARD_DEBUG, GB_LOG_LEVEL.
Failure mode: an unknown GB_LOG_LEVEL falls back to the debug-derived level.
"""

from __future__ import annotations

import logging
import os

from core.config import is_debug

LOGGER_NAME = "globeboard"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _level() -> int:
    explicit = (os.getenv("GB_LOG_LEVEL") or "").strip().upper()
    level = logging.getLevelName(explicit) if explicit else None
    if isinstance(level, int):
        return level
    return logging.INFO if is_debug() else logging.WARNING


def _configure() -> logging.Logger:
    log = logging.getLogger(LOGGER_NAME)
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        log.addHandler(handler)
    log.setLevel(_level())
    return log


logger = _configure()


def dbg(msg: str) -> None:
    """INFO breadcrumb emitted only under GLOBEBOARD_DEBUG=1 (checked per call)."""
    if is_debug():
        logger.info(msg)
