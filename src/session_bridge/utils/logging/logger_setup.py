"""Logger setup for JSONL log files.

All session-bridge loggers emit dict payloads, e.g.:

    logger.info({"event": "local_registered", "email": "ann@x.com"})

JsonlFormatter renders those as one JSON object per line, adding a UTC
ISO 8601 "time" and the level name. Plain string messages are wrapped in
{"message": ...}.
"""

from __future__ import annotations

__all__ = [
    "FallbackFileHandler",
    "JsonlFormatter",
    "setup_jsonl_logger",
]

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


class JsonlFormatter(logging.Formatter):
    """Format records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
        }
        if isinstance(record.msg, dict):
            entry.update(record.msg)
        else:
            entry["message"] = record.getMessage()

        if record.exc_info and "stacktrace" not in entry:
            entry["stacktrace"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class FallbackFileHandler(logging.FileHandler):
    """FileHandler that reports write failures to a fallback logger.

    The default Handler.handleError prints a traceback to stderr and drops
    the record. Here the dropped record is re-emitted through the fallback
    logger so it lands in the system log instead.
    """

    def __init__(self, filename: Path, fallback: logging.Logger | None = None) -> None:
        super().__init__(filename, encoding="utf-8", delay=True)
        self._fallback = fallback

    def emit(self, record: logging.LogRecord) -> None:
        # FileHandler opens the delayed stream outside its own error handling
        try:
            super().emit(record)
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        if self._fallback is None:
            super().handleError(record)
            return
        payload = record.msg if isinstance(record.msg, dict) else {"message": record.getMessage()}
        self._fallback.error(
            {
                "event": "log_write_failed",
                "source_file": Path(self.baseFilename).name,
                "dropped": payload,
            }
        )


def setup_jsonl_logger(
    name: str,
    log_path: Path,
    *,
    log_level: int = logging.INFO,
    fallback: logging.Logger | None = None,
    propagate: bool = False,
) -> logging.Logger:
    """Create (or reconfigure) a logger writing JSONL to log_path.

    Creates the parent directory with 0o700 permissions. Existing handlers on
    the named logger are closed and replaced, so repeated setup does not
    duplicate lines.

    Args:
        name: Logger name (e.g. "session_bridge.audit.auth").
        log_path: Destination .jsonl file.
        log_level: Minimum level written.
        fallback: Logger receiving records that could not be written.
        propagate: Whether records also propagate to ancestor loggers.

    Returns:
        Configured logger.
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.parent.chmod(0o700)

    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = FallbackFileHandler(log_path, fallback=fallback)
    handler.setFormatter(JsonlFormatter())
    handler.setLevel(log_level)

    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = propagate
    return logger
