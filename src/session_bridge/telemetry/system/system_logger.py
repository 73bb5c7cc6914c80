"""System logger for operational events.

Warnings and errors go to stderr as JSON lines. When a log directory is
configured, configure_system_logger() adds
<log_dir>/session_bridge_logs/system/system.jsonl at the configured level.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from session_bridge.utils.logging.logger_setup import FallbackFileHandler, JsonlFormatter

SYSTEM_LOGGER_NAME = "session_bridge.system"

_STDERR_HANDLER_NAME = "session_bridge.system.stderr"
_FILE_HANDLER_NAME = "session_bridge.system.file"


def get_system_logger() -> logging.Logger:
    """Return the shared system logger, attaching the stderr handler once.

    Records still propagate, so host applications (and pytest's caplog)
    see them through the root logger.
    """
    logger = logging.getLogger(SYSTEM_LOGGER_NAME)
    if not any(h.get_name() == _STDERR_HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_STDERR_HANDLER_NAME)
        handler.setLevel(logging.WARNING)
        handler.setFormatter(JsonlFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    return logger


def configure_system_logger(log_path: Path | None, log_level: str = "INFO") -> logging.Logger:
    """Attach (or replace) the system.jsonl file handler.

    Args:
        log_path: Path to system.jsonl, or None to log to stderr only.
        log_level: "DEBUG" or "INFO".

    Returns:
        The system logger.
    """
    logger = get_system_logger()
    for handler in list(logger.handlers):
        if handler.get_name() == _FILE_HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    if log_path is None:
        return logger

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = FallbackFileHandler(log_path)
    handler.set_name(_FILE_HANDLER_NAME)
    handler.setLevel(logging.getLevelName(log_level))
    handler.setFormatter(JsonlFormatter())
    logger.addHandler(handler)
    return logger
