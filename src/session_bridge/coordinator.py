"""Session coordinator: one logical session over two identity sources.

SessionCoordinator merges the federated provider's live identity with the
persisted local session into a single view:

    is_logged_in = federated identity present OR local session present
    user_name    = federated display name, else local display name, else None

State: (federated_identity, local_session, initializing). Local and federated
sessions are mutually exclusive in storage: a federated sign-in clears the
local session. The merged view may still briefly reflect both, e.g. when a
restored local session meets a provider that reports a signed-in user.

Lifecycle:
    coordinator = SessionCoordinator(registry, store, adapter)
    await coordinator.start()   # load local session, subscribe, wait for
                                # the provider's initial state
    ...
    coordinator.dispose()       # unsubscribe; no state updates afterwards

or, equivalently, `async with SessionCoordinator(...) as coordinator:`.
"""

from __future__ import annotations

__all__ = [
    "AuthResult",
    "MergedSession",
    "Notifier",
    "SessionCoordinator",
    "create_session_coordinator",
]

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Literal

from session_bridge.config import AppConfig, get_auth_log_path, get_system_log_path
from session_bridge.constants import PROVIDER_NOT_CONFIGURED_MESSAGE
from session_bridge.exceptions import (
    CoordinatorDisposedError,
    DuplicateEmailError,
    NoSuchAccountError,
    ProviderError,
    ProviderNotConfiguredError,
    SessionBridgeError,
    WrongSecretError,
)
from session_bridge.federated.adapter import FederatedAuthAdapter, create_federated_adapter
from session_bridge.federated.models import FederatedIdentity
from session_bridge.identity.models import LocalSession
from session_bridge.identity.registry import CredentialRegistry
from session_bridge.identity.session_store import SessionStore
from session_bridge.storage.kv import create_storage
from session_bridge.telemetry.audit.auth_logger import AuthLogger, create_auth_logger
from session_bridge.telemetry.models.audit import SubjectIdentity
from session_bridge.telemetry.system.system_logger import configure_system_logger, get_system_logger
from session_bridge.utils.listeners import ListenerSet, Unsubscribe
from session_bridge.utils.validation import normalize_email

# Shows a visible, non-fatal message to the user (toast, alert, stderr line)
Notifier = Callable[[str], None]

logger = get_system_logger()


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a coordinator operation, for display to the user.

    Attributes:
        success: Whether the operation succeeded.
        error: User-facing message on failure.
        code: Stable error code on failure (see SessionBridgeError.code).
    """

    success: bool
    error: str | None = None
    code: str | None = None

    @classmethod
    def ok(cls) -> "AuthResult":
        return cls(success=True)

    @classmethod
    def failure(cls, error: SessionBridgeError) -> "AuthResult":
        return cls(success=False, error=str(error), code=error.code)

    def to_dict(self) -> dict[str, Any]:
        """Return the {success, error?} shape consumed by UI collaborators."""
        result: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class MergedSession:
    """Derived logged-in view. Never stored.

    Attributes:
        is_logged_in: True iff either identity source is present.
        display_name: Name to show, federated taking precedence.
        source: Which source display_name came from, if any.
        initializing: True until the provider's initial state arrived.
            Consumers should not render a logged-out state while True.
    """

    is_logged_in: bool
    display_name: str | None
    source: Literal["federated", "local"] | None = None
    initializing: bool = False


def _local_subject(email: str, display_name: str | None = None) -> SubjectIdentity:
    return SubjectIdentity(subject_id=normalize_email(email), source="local", display_name=display_name)


def _federated_subject(identity: FederatedIdentity) -> SubjectIdentity:
    return SubjectIdentity(subject_id=identity.uid, source="federated", display_name=identity.display_name)


def _log_notification(message: str) -> None:
    logger.warning({"event": "user_notification", "message": message})


class SessionCoordinator:
    """State machine merging federated and local identity.

    All methods run on the event-loop thread. register() and
    sign_in_local() are synchronous; sign_in_federated() and log_out()
    suspend while the provider works.

    Args:
        registry: Credential registry for local accounts.
        session_store: Storage for the active local session.
        federated: Federated adapter (configured or not).
        auth_logger: Audit logger (default: discards events).
        notifier: Shows non-fatal messages to the user
            (default: system logger warning).
    """

    def __init__(
        self,
        registry: CredentialRegistry,
        session_store: SessionStore,
        federated: FederatedAuthAdapter,
        *,
        auth_logger: AuthLogger | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._registry = registry
        self._store = session_store
        self._federated = federated
        self._auth_logger = auth_logger or create_auth_logger(None)
        self._notify = notifier or _log_notification

        self._federated_identity: FederatedIdentity | None = None
        self._local_session: LocalSession | None = None
        self._initializing = True

        self._started = False
        self._disposed = False
        self._ready: asyncio.Event | None = None
        self._unsubscribe_federated: Unsubscribe | None = None
        self._listeners: ListenerSet[MergedSession] = ListenerSet("merged_session")
        self._last_published: MergedSession | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Restore the local session and subscribe to the provider.

        Returns once the provider's initial state was delivered, after which
        initializing is False.

        Raises:
            RuntimeError: If called more than once.
            CoordinatorDisposedError: If called after dispose().
        """
        self._ensure_active()
        if self._started:
            raise RuntimeError("SessionCoordinator.start() called twice")
        self._started = True

        self._local_session = self._restore_local_session()
        self._ready = asyncio.Event()
        self._unsubscribe_federated = self._federated.subscribe(self._on_federated_identity)
        await self._ready.wait()

    def dispose(self) -> None:
        """Unsubscribe from the provider and drop merged-view listeners.

        Idempotent. No provider notification reaches the coordinator after
        this returns, including notifications already in flight.
        """
        if self._disposed:
            return
        self._disposed = True
        if self._unsubscribe_federated is not None:
            self._unsubscribe_federated()
            self._unsubscribe_federated = None
        self._listeners.clear()
        if self._ready is not None:
            # Unblock a start() still waiting for the initial state
            self._ready.set()

    def _ensure_active(self) -> None:
        if self._disposed:
            raise CoordinatorDisposedError()

    async def __aenter__(self) -> "SessionCoordinator":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    def _restore_local_session(self) -> LocalSession | None:
        session = self._store.load()
        if session is None:
            return None

        subject = _local_subject(session.email, session.display_name)
        if self._registry.find_by_email(session.email) is None:
            # Every local session must originate from a registry entry
            self._store.clear()
            logger.warning({"event": "local_session_discarded", "reason": "email_not_registered"})
            self._auth_logger.log_session_discarded(subject=subject, message="Email not in credential registry")
            return None

        self._auth_logger.log_session_restored(subject=subject)
        return session

    def _on_federated_identity(self, identity: FederatedIdentity | None) -> None:
        if self._disposed:
            return
        self._federated_identity = identity
        if self._initializing:
            self._initializing = False
            if self._ready is not None:
                self._ready.set()
        self._publish()

    # =========================================================================
    # Derived view
    # =========================================================================

    @property
    def initializing(self) -> bool:
        return self._initializing

    @property
    def federated_identity(self) -> FederatedIdentity | None:
        return self._federated_identity

    @property
    def local_session(self) -> LocalSession | None:
        return self._local_session

    @property
    def is_logged_in(self) -> bool:
        return self._federated_identity is not None or self._local_session is not None

    @property
    def user_name(self) -> str | None:
        """Federated display name if set, else the local display name."""
        if self._federated_identity is not None and self._federated_identity.display_name:
            return self._federated_identity.display_name
        if self._local_session is not None and self._local_session.display_name:
            return self._local_session.display_name
        return None

    def snapshot(self) -> MergedSession:
        """Return the current merged view."""
        name = self.user_name
        source: Literal["federated", "local"] | None = None
        if name is not None:
            federated_name = self._federated_identity.display_name if self._federated_identity else None
            source = "federated" if name == federated_name else "local"
        return MergedSession(
            is_logged_in=self.is_logged_in,
            display_name=name,
            source=source,
            initializing=self._initializing,
        )

    def subscribe(self, callback: Callable[[MergedSession], None]) -> Unsubscribe:
        """Listen for merged-view changes.

        Callbacks run synchronously after each change, and never while the
        coordinator is still initializing.

        Returns:
            Handle that stops further invocations.
        """
        return self._listeners.add(callback)

    def _publish(self) -> None:
        if self._initializing or self._disposed:
            return
        view = self.snapshot()
        if view == self._last_published:
            return
        self._last_published = view
        self._listeners.emit(view)

    def _set_local(self, session: LocalSession) -> None:
        self._store.save(session)
        self._local_session = session
        self._publish()

    def _clear_local(self) -> None:
        self._store.clear()
        self._local_session = None
        self._publish()

    # =========================================================================
    # Local operations
    # =========================================================================

    def register(self, name: str, email: str, secret: str) -> AuthResult:
        """Register a local account and sign it in.

        Returns:
            AuthResult; on a duplicate email, success is False and state is
            unchanged.
        """
        self._ensure_active()
        try:
            identity = self._registry.register(name, email, secret)
        except DuplicateEmailError as e:
            self._auth_logger.log_local_registered(
                subject=_local_subject(email, name),
                error_type=e.code,
                error_message=str(e),
            )
            return AuthResult.failure(e)

        self._set_local(LocalSession.from_identity(identity))
        self._auth_logger.log_local_registered(subject=_local_subject(identity.email, identity.name))
        return AuthResult.ok()

    def sign_in_local(self, email: str, secret: str) -> AuthResult:
        """Sign in with a registered email and secret.

        Returns:
            AuthResult; failures carry "no_such_account" or "wrong_secret".
        """
        self._ensure_active()
        try:
            identity = self._registry.authenticate(email, secret)
        except (NoSuchAccountError, WrongSecretError) as e:
            self._auth_logger.log_local_sign_in(
                subject=_local_subject(email),
                error_type=e.code,
                error_message=str(e),
            )
            return AuthResult.failure(e)

        self._set_local(LocalSession.from_identity(identity))
        self._auth_logger.log_local_sign_in(subject=_local_subject(identity.email, identity.name))
        return AuthResult.ok()

    # =========================================================================
    # Federated operations
    # =========================================================================

    async def sign_in_federated(self) -> AuthResult:
        """Sign in through the federated provider.

        On success any local session is cleared, in memory and in storage.
        On failure the error is logged and state is unchanged. Never raises
        for provider errors. If dispose() runs while the provider is still
        working, the outcome is dropped and a failed result is returned.

        Raises:
            CoordinatorDisposedError: If called after dispose().
        """
        self._ensure_active()
        if not self._federated.is_configured:
            self._notify(PROVIDER_NOT_CONFIGURED_MESSAGE)
            error = ProviderNotConfiguredError()
            self._auth_logger.log_federated_sign_in(error_type=error.code, error_message=str(error))
            return AuthResult.failure(error)

        try:
            identity = await self._federated.sign_in()
        except ProviderError as e:
            logger.error(
                {
                    "event": "federated_sign_in_failed",
                    "error_type": e.code,
                    "error_message": str(e),
                }
            )
            self._auth_logger.log_federated_sign_in(error_type=e.code, error_message=str(e))
            return AuthResult.failure(e)

        if self._disposed:
            logger.warning({"event": "federated_sign_in_dropped", "reason": "coordinator_disposed"})
            return AuthResult.failure(CoordinatorDisposedError())

        replaced_local = self._local_session is not None
        self._clear_local()
        self._auth_logger.log_federated_sign_in(
            subject=_federated_subject(identity),
            replaced_local=replaced_local,
        )
        return AuthResult.ok()

    async def log_out(self) -> None:
        """Log out of both sources.

        The local session is always cleared. If a federated identity is
        active, a federated sign-out is attempted; its failure is logged and
        the federated identity stays whatever the provider reports.
        """
        self._ensure_active()
        local = self._local_session
        federated = self._federated_identity

        self._clear_local()

        if federated is not None and self._federated.is_configured:
            try:
                await self._federated.sign_out()
            except ProviderError as e:
                logger.error(
                    {
                        "event": "federated_sign_out_failed",
                        "error_type": e.code,
                        "error_message": str(e),
                    }
                )
                self._auth_logger.log_federated_sign_out(
                    subject=_federated_subject(federated),
                    error_type=e.code,
                    error_message=str(e),
                )
            else:
                self._auth_logger.log_federated_sign_out(subject=_federated_subject(federated))

        if federated is not None:
            subject: SubjectIdentity | None = _federated_subject(federated)
        elif local is not None:
            subject = _local_subject(local.email, local.display_name)
        else:
            subject = None
        self._auth_logger.log_logged_out(subject=subject)


def create_session_coordinator(
    config: AppConfig,
    *,
    notifier: Notifier | None = None,
) -> SessionCoordinator:
    """Wire a coordinator from configuration.

    Selects collaborators based on configuration:
    - storage backend from config.storage (file or memory)
    - federated adapter from config.federated (unconfigured if absent)
    - audit/system log files from config.logging (if log_dir is set)

    The coordinator is returned unstarted.

    Args:
        config: Application configuration.
        notifier: Shows non-fatal messages to the user.

    Returns:
        SessionCoordinator ready for start().
    """
    configure_system_logger(get_system_log_path(config), config.logging.log_level)

    storage = create_storage(config.storage)
    return SessionCoordinator(
        CredentialRegistry(storage),
        SessionStore(storage),
        create_federated_adapter(config.federated),
        auth_logger=create_auth_logger(get_auth_log_path(config)),
        notifier=notifier,
    )
