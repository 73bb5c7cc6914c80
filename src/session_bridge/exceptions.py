"""Exception taxonomy for session-bridge.

Local-credential errors are converted to AuthResult values by the
SessionCoordinator for display to the user. Federated errors are logged
and degrade to a no-op. Nothing here is meant to terminate the process.
"""

from __future__ import annotations

__all__ = [
    "CoordinatorDisposedError",
    "CorruptPersistedStateError",
    "DuplicateEmailError",
    "NoSuchAccountError",
    "ProviderError",
    "ProviderNotConfiguredError",
    "ProviderOperationFailedError",
    "SessionBridgeError",
    "WrongSecretError",
]

from session_bridge.constants import (
    DUPLICATE_EMAIL_MESSAGE,
    NO_SUCH_ACCOUNT_MESSAGE,
    PROVIDER_NOT_CONFIGURED_MESSAGE,
    WRONG_SECRET_MESSAGE,
)


class SessionBridgeError(Exception):
    """Base class for all session-bridge errors.

    Attributes:
        code: Stable machine-friendly identifier, used in logs and results.
    """

    code: str = "session_bridge_error"


class DuplicateEmailError(SessionBridgeError):
    """Registration attempted for an email that is already registered."""

    code = "duplicate_email"

    def __init__(self, email: str) -> None:
        super().__init__(DUPLICATE_EMAIL_MESSAGE)
        self.email = email


class NoSuchAccountError(SessionBridgeError):
    """Local sign-in attempted for an email with no registered account."""

    code = "no_such_account"

    def __init__(self, email: str) -> None:
        super().__init__(NO_SUCH_ACCOUNT_MESSAGE)
        self.email = email


class WrongSecretError(SessionBridgeError):
    """Local sign-in attempted with a secret that does not match."""

    code = "wrong_secret"

    def __init__(self, email: str) -> None:
        super().__init__(WRONG_SECRET_MESSAGE)
        self.email = email


class ProviderError(SessionBridgeError):
    """Base class for federated provider failures."""

    code = "provider_error"


class ProviderNotConfiguredError(ProviderError):
    """No federated provider is configured."""

    code = "provider_not_configured"

    def __init__(self, message: str = PROVIDER_NOT_CONFIGURED_MESSAGE) -> None:
        super().__init__(message)


class ProviderOperationFailedError(ProviderError):
    """A federated sign-in or sign-out was cancelled or failed.

    The provider's own exception, if any, is chained as __cause__.
    """

    code = "provider_operation_failed"

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Federated {operation} failed: {message}")
        self.operation = operation


class CorruptPersistedStateError(SessionBridgeError):
    """A persisted entry could not be decoded.

    Raised by decoders and caught by the stores, which treat the entry
    as absent.
    """

    code = "corrupt_persisted_state"

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Persisted entry '{key}' is corrupt: {reason}")
        self.key = key
        self.reason = reason


class CoordinatorDisposedError(SessionBridgeError, RuntimeError):
    """A SessionCoordinator was used after dispose()."""

    code = "coordinator_disposed"

    def __init__(self) -> None:
        super().__init__("SessionCoordinator has been disposed")
