"""Authentication audit logger.

Logs session lifecycle events to audit/auth.jsonl:
- Local registration and sign-in (success/failure)
- Federated sign-in and sign-out (success/failure)
- Logout
- Session restore at startup (restored/discarded)

Best-effort: a failed audit write is re-emitted to the system logger and
never interrupts the session operation that produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from session_bridge.telemetry.models.audit import AuthEvent, SubjectIdentity
from session_bridge.telemetry.system.system_logger import get_system_logger
from session_bridge.utils.logging.logger_setup import setup_jsonl_logger

AUTH_LOGGER_NAME = "session_bridge.audit.auth"


class AuthLogger:
    """Audit logger for authentication events.

    Usage:
        auth_logger = create_auth_logger(log_path)
        auth_logger.log_local_sign_in(subject=..., error_type=None)
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log_event(self, event: AuthEvent) -> None:
        event_data = event.model_dump(mode="json", exclude={"time"}, exclude_none=True)
        self._logger.info(event_data)

    @staticmethod
    def _status(error_type: str | None) -> str:
        return "Failure" if error_type else "Success"

    def log_local_registered(
        self,
        *,
        subject: SubjectIdentity,
        error_type: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Log a local registration attempt."""
        self._log_event(
            AuthEvent(
                event_type="local_registered",
                status=self._status(error_type),
                subject=subject,
                error_type=error_type,
                error_message=error_message,
            )
        )

    def log_local_sign_in(
        self,
        *,
        subject: SubjectIdentity,
        error_type: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Log a local sign-in attempt."""
        self._log_event(
            AuthEvent(
                event_type="local_sign_in",
                status=self._status(error_type),
                subject=subject,
                error_type=error_type,
                error_message=error_message,
            )
        )

    def log_federated_sign_in(
        self,
        *,
        subject: SubjectIdentity | None = None,
        error_type: str | None = None,
        error_message: str | None = None,
        replaced_local: bool = False,
    ) -> None:
        """Log a federated sign-in attempt.

        Args:
            subject: Federated identity on success.
            error_type: Error code on failure.
            error_message: Error description on failure.
            replaced_local: Whether a local session was cleared by this sign-in.
        """
        details: dict[str, Any] | None = {"replaced_local_session": True} if replaced_local else None
        self._log_event(
            AuthEvent(
                event_type="federated_sign_in",
                status=self._status(error_type),
                subject=subject,
                error_type=error_type,
                error_message=error_message,
                details=details,
            )
        )

    def log_federated_sign_out(
        self,
        *,
        subject: SubjectIdentity | None = None,
        error_type: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Log a federated sign-out attempt."""
        self._log_event(
            AuthEvent(
                event_type="federated_sign_out",
                status=self._status(error_type),
                subject=subject,
                error_type=error_type,
                error_message=error_message,
            )
        )

    def log_logged_out(self, *, subject: SubjectIdentity | None = None) -> None:
        """Log a completed logout. The local half always succeeds."""
        self._log_event(AuthEvent(event_type="logged_out", status="Success", subject=subject))

    def log_session_restored(self, *, subject: SubjectIdentity) -> None:
        """Log a local session restored from storage at startup."""
        self._log_event(AuthEvent(event_type="session_restored", status="Success", subject=subject))

    def log_session_discarded(self, *, subject: SubjectIdentity, message: str) -> None:
        """Log a persisted local session dropped at startup."""
        self._log_event(
            AuthEvent(
                event_type="session_discarded",
                status="Failure",
                subject=subject,
                message=message,
            )
        )


def create_auth_logger(log_path: Path | None) -> AuthLogger:
    """Create an auth logger.

    Args:
        log_path: Path to auth.jsonl, or None to discard audit events.

    Returns:
        AuthLogger: Configured logger for authentication events.
    """
    if log_path is None:
        logger = logging.getLogger(AUTH_LOGGER_NAME)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        return AuthLogger(logger)

    logger = setup_jsonl_logger(
        AUTH_LOGGER_NAME,
        log_path,
        log_level=logging.INFO,
        fallback=get_system_logger(),
    )
    return AuthLogger(logger)
