"""Audit logging for authentication and session lifecycle."""

from session_bridge.telemetry.audit.auth_logger import (
    AuthLogger,
    create_auth_logger,
)

__all__ = [
    "AuthLogger",
    "create_auth_logger",
]
