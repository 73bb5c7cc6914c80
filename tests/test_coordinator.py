"""Tests for SessionCoordinator.

Tests cover:
- Local registration and sign-in (structured results)
- Federated sign-in/out and precedence over the local session
- Logout from either source
- Restore across restarts, initialization gating, disposal

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conftest import FakeProvider
from session_bridge.coordinator import AuthResult, MergedSession, SessionCoordinator
from session_bridge.exceptions import CoordinatorDisposedError
from session_bridge.federated.adapter import FederatedAuthAdapter
from session_bridge.federated.models import FederatedIdentity
from session_bridge.identity.models import LocalSession
from session_bridge.identity.registry import CredentialRegistry
from session_bridge.identity.session_store import SessionStore
from session_bridge.storage.kv import FileKeyValueStorage, KeyValueStorage, MemoryKeyValueStorage


class GatedProvider(FakeProvider):
    """Provider whose sign-in waits until the gate is set."""

    def __init__(self, gate: asyncio.Event, identity: FederatedIdentity) -> None:
        super().__init__(next_identity=identity)
        self._gate = gate

    async def sign_in(self) -> FederatedIdentity:
        await self._gate.wait()
        return await super().sign_in()


def _coordinator(storage: KeyValueStorage, adapter: FederatedAuthAdapter, **kwargs) -> SessionCoordinator:
    return SessionCoordinator(CredentialRegistry(storage), SessionStore(storage), adapter, **kwargs)


# ============================================================================
# Tests: Local accounts
# ============================================================================


class TestLocalAccounts:
    """Tests for register and sign_in_local."""

    async def test_register_duplicate_then_sign_in_scenario(self, coordinator: SessionCoordinator):
        # Act
        first = coordinator.register("Ann", "ann@x.com", "pw1")
        second = coordinator.register("Ann2", "ann@x.com", "pw2")
        signed_in = coordinator.sign_in_local("ann@x.com", "pw1")

        # Assert
        assert first.to_dict() == {"success": True}
        assert second.success is False
        assert "already exists" in second.error
        assert signed_in.success is True
        assert coordinator.user_name == "Ann"

    async def test_register_signs_in_and_persists(
        self,
        coordinator: SessionCoordinator,
        session_store: SessionStore,
    ):
        # Act
        result = coordinator.register("Ann", "Ann@X.com", "pw1")

        # Assert
        assert result.success is True
        assert coordinator.is_logged_in is True
        assert coordinator.local_session == LocalSession(display_name="Ann", email="ann@x.com")
        assert session_store.load() == coordinator.local_session

    async def test_duplicate_register_leaves_state_unchanged(self, coordinator: SessionCoordinator):
        # Arrange
        coordinator.register("Ann", "ann@x.com", "pw1")
        await coordinator.log_out()

        # Act
        result = coordinator.register("Ann2", "ANN@x.com", "pw2")

        # Assert
        assert result == AuthResult(
            success=False,
            error="An account with this email already exists. Please sign in.",
            code="duplicate_email",
        )
        assert coordinator.is_logged_in is False

    async def test_sign_in_unknown_email(self, coordinator: SessionCoordinator):
        # Act
        result = coordinator.sign_in_local("nobody@x.com", "pw")

        # Assert
        assert result.to_dict() == {
            "success": False,
            "error": "No account found with this email. Please sign up first.",
        }
        assert result.code == "no_such_account"
        assert coordinator.is_logged_in is False

    async def test_sign_in_wrong_secret(self, coordinator: SessionCoordinator):
        # Arrange
        coordinator.register("Ann", "ann@x.com", "pw1")
        await coordinator.log_out()

        # Act
        result = coordinator.sign_in_local("ann@x.com", "wrong")

        # Assert
        assert result.success is False
        assert result.code == "wrong_secret"
        assert result.error == "Incorrect password. Please try again."
        assert coordinator.is_logged_in is False

    async def test_sign_in_is_case_insensitive_on_email(self, coordinator: SessionCoordinator):
        coordinator.register("Ann", "ann@x.com", "pw1")
        await coordinator.log_out()

        result = coordinator.sign_in_local("ANN@X.COM", "pw1")

        assert result.success is True
        assert coordinator.local_session.email == "ann@x.com"


# ============================================================================
# Tests: Federated sign-in
# ============================================================================


class TestFederatedSignIn:
    """Tests for sign_in_federated."""

    async def test_success_sets_federated_identity(
        self,
        coordinator: SessionCoordinator,
        google_identity: FederatedIdentity,
    ):
        # Act
        result = await coordinator.sign_in_federated()

        # Assert
        assert result.success is True
        assert coordinator.federated_identity == google_identity
        assert coordinator.is_logged_in is True
        assert coordinator.user_name == "Grace Federated"

    async def test_clears_local_session_but_not_registry(
        self,
        coordinator: SessionCoordinator,
        session_store: SessionStore,
        registry: CredentialRegistry,
    ):
        # Arrange
        coordinator.register("Ann", "ann@x.com", "pw1")

        # Act
        await coordinator.sign_in_federated()

        # Assert
        assert coordinator.local_session is None
        assert session_store.load() is None
        assert registry.find_by_email("ann@x.com") is not None

    async def test_failure_leaves_state_unchanged(
        self,
        coordinator: SessionCoordinator,
        provider: FakeProvider,
        session_store: SessionStore,
    ):
        # Arrange
        coordinator.register("Ann", "ann@x.com", "pw1")
        provider.sign_in_error = RuntimeError("user closed the popup")

        # Act
        result = await coordinator.sign_in_federated()

        # Assert
        assert result.success is False
        assert result.code == "provider_operation_failed"
        assert coordinator.federated_identity is None
        assert coordinator.user_name == "Ann"
        assert session_store.load() is not None

    async def test_unconfigured_notifies_and_leaves_state(self, storage: MemoryKeyValueStorage):
        # Arrange
        notifier = MagicMock()
        coordinator = _coordinator(storage, FederatedAuthAdapter(None), notifier=notifier)
        await coordinator.start()
        coordinator.register("Ann", "ann@x.com", "pw1")

        # Act
        result = await coordinator.sign_in_federated()

        # Assert
        assert result.success is False
        assert result.code == "provider_not_configured"
        notifier.assert_called_once()
        assert "not configured" in notifier.call_args.args[0]
        assert coordinator.user_name == "Ann"
        coordinator.dispose()

    async def test_coordinator_usable_after_failure(
        self,
        coordinator: SessionCoordinator,
        provider: FakeProvider,
    ):
        # Arrange
        provider.sign_in_error = RuntimeError("network down")
        await coordinator.sign_in_federated()
        provider.sign_in_error = None

        # Act
        result = await coordinator.sign_in_federated()

        # Assert
        assert result.success is True
        assert coordinator.is_logged_in is True


class TestPrecedence:
    """Tests for the merged view when both sources are present."""

    async def test_federated_name_wins_over_local(
        self,
        coordinator: SessionCoordinator,
        adapter: FederatedAuthAdapter,
        google_identity: FederatedIdentity,
    ):
        # Arrange
        coordinator.register("Ann", "ann@x.com", "pw1")

        # Act
        adapter.publish(google_identity)
        await adapter.wait_idle()

        # Assert
        assert coordinator.snapshot() == MergedSession(
            is_logged_in=True,
            display_name="Grace Federated",
            source="federated",
        )

    async def test_local_name_used_when_federated_has_none(
        self,
        coordinator: SessionCoordinator,
        adapter: FederatedAuthAdapter,
    ):
        # Arrange
        coordinator.register("Ann", "ann@x.com", "pw1")

        # Act
        adapter.publish(FederatedIdentity(uid="nameless"))
        await adapter.wait_idle()

        # Assert
        assert coordinator.user_name == "Ann"
        assert coordinator.snapshot().source == "local"

    async def test_logged_out_view(self, coordinator: SessionCoordinator):
        assert coordinator.snapshot() == MergedSession(is_logged_in=False, display_name=None)


# ============================================================================
# Tests: Logout
# ============================================================================


class TestLogOut:
    """Tests for log_out."""

    async def test_after_local_session(self, coordinator: SessionCoordinator, session_store: SessionStore):
        # Arrange
        coordinator.register("Ann", "ann@x.com", "pw1")

        # Act
        await coordinator.log_out()

        # Assert
        assert coordinator.is_logged_in is False
        assert coordinator.user_name is None
        assert session_store.load() is None

    async def test_after_federated_session(self, coordinator: SessionCoordinator, provider: FakeProvider):
        # Arrange
        await coordinator.sign_in_federated()

        # Act
        await coordinator.log_out()

        # Assert
        assert provider.sign_out_calls == 1
        assert coordinator.is_logged_in is False
        assert coordinator.user_name is None

    async def test_skips_provider_when_no_federated_identity(
        self,
        coordinator: SessionCoordinator,
        provider: FakeProvider,
    ):
        coordinator.register("Ann", "ann@x.com", "pw1")

        await coordinator.log_out()

        assert provider.sign_out_calls == 0

    async def test_federated_sign_out_failure_is_best_effort(
        self,
        coordinator: SessionCoordinator,
        provider: FakeProvider,
        session_store: SessionStore,
        google_identity: FederatedIdentity,
    ):
        # Arrange
        await coordinator.sign_in_federated()
        provider.sign_out_error = ConnectionError("offline")

        # Act
        await coordinator.log_out()

        # Assert
        assert coordinator.local_session is None
        assert session_store.load() is None
        # Provider still reports the user, so the merged view keeps it
        assert coordinator.federated_identity == google_identity

    async def test_when_nobody_is_signed_in(self, coordinator: SessionCoordinator):
        await coordinator.log_out()

        assert coordinator.is_logged_in is False


# ============================================================================
# Tests: Lifecycle
# ============================================================================


class TestLifecycle:
    """Tests for start, restore and dispose."""

    async def test_initializing_until_started(self, storage: MemoryKeyValueStorage, adapter: FederatedAuthAdapter):
        # Arrange
        coordinator = _coordinator(storage, adapter)

        # Act
        before = coordinator.initializing
        await coordinator.start()

        # Assert
        assert before is True
        assert coordinator.initializing is False
        coordinator.dispose()

    async def test_restores_session_across_restart(self, storage: MemoryKeyValueStorage):
        # Arrange
        async with _coordinator(storage, FederatedAuthAdapter(None)) as first:
            first.register("Ann", "ann@x.com", "pw1")

        # Act
        async with _coordinator(storage, FederatedAuthAdapter(None)) as second:
            # Assert
            assert second.is_logged_in is True
            assert second.user_name == "Ann"

    async def test_discards_session_without_registry_entry(self, storage: MemoryKeyValueStorage):
        # Arrange
        SessionStore(storage).save(LocalSession(display_name="Ghost", email="ghost@x.com"))

        # Act
        async with _coordinator(storage, FederatedAuthAdapter(None)) as coordinator:
            # Assert
            assert coordinator.is_logged_in is False
        assert SessionStore(storage).load() is None

    async def test_initial_federated_state_applied(
        self,
        storage: MemoryKeyValueStorage,
        google_identity: FederatedIdentity,
    ):
        adapter = FederatedAuthAdapter(FakeProvider(current=google_identity))

        async with _coordinator(storage, adapter) as coordinator:
            assert coordinator.user_name == "Grace Federated"

    async def test_start_twice_raises(self, coordinator: SessionCoordinator):
        with pytest.raises(RuntimeError, match="called twice"):
            await coordinator.start()

    async def test_start_after_dispose_raises(self, storage: MemoryKeyValueStorage, adapter: FederatedAuthAdapter):
        coordinator = _coordinator(storage, adapter)
        coordinator.dispose()

        with pytest.raises(RuntimeError, match="disposed"):
            await coordinator.start()

    async def test_subscribes_exactly_once(self, coordinator: SessionCoordinator, adapter: FederatedAuthAdapter):
        assert adapter.subscriber_count == 1

    async def test_no_updates_after_dispose(
        self,
        storage: MemoryKeyValueStorage,
        adapter: FederatedAuthAdapter,
        google_identity: FederatedIdentity,
    ):
        # Arrange
        coordinator = _coordinator(storage, adapter)
        await coordinator.start()

        # Act
        adapter.publish(google_identity)  # scheduled, not yet delivered
        coordinator.dispose()
        await adapter.wait_idle()

        # Assert
        assert coordinator.federated_identity is None
        assert adapter.subscriber_count == 0

    async def test_dispose_is_idempotent(self, coordinator: SessionCoordinator):
        coordinator.dispose()
        coordinator.dispose()

    async def test_federated_outcome_dropped_when_disposed_mid_flight(
        self,
        storage: MemoryKeyValueStorage,
        google_identity: FederatedIdentity,
    ):
        # Arrange
        gate = asyncio.Event()
        provider = GatedProvider(gate, google_identity)
        coordinator = _coordinator(storage, FederatedAuthAdapter(provider))
        await coordinator.start()
        coordinator.register("Ann", "ann@x.com", "pw1")
        task = asyncio.create_task(coordinator.sign_in_federated())
        await asyncio.sleep(0)

        # Act
        coordinator.dispose()
        gate.set()
        result = await task

        # Assert
        assert result.success is False
        assert result.code == "coordinator_disposed"
        assert coordinator.federated_identity is None
        assert SessionStore(storage).load() == LocalSession(display_name="Ann", email="ann@x.com")

    async def test_operations_rejected_after_dispose(self, coordinator: SessionCoordinator):
        # Arrange
        coordinator.dispose()

        # Act & Assert
        with pytest.raises(CoordinatorDisposedError):
            coordinator.register("Ann", "ann@x.com", "pw1")
        with pytest.raises(CoordinatorDisposedError):
            coordinator.sign_in_local("ann@x.com", "pw1")
        with pytest.raises(CoordinatorDisposedError):
            await coordinator.sign_in_federated()
        with pytest.raises(CoordinatorDisposedError):
            await coordinator.log_out()

    async def test_start_with_undecodable_session_file(self, tmp_path: Path):
        # Arrange
        (tmp_path / "active_session.json").write_bytes(b"\xff\xfe{bad")
        storage = FileKeyValueStorage(tmp_path)

        # Act
        async with _coordinator(storage, FederatedAuthAdapter(None)) as coordinator:
            # Assert
            assert coordinator.is_logged_in is False
            assert coordinator.sign_in_local("ann@x.com", "pw1").code == "no_such_account"


class TestMergedViewListeners:
    """Tests for SessionCoordinator.subscribe."""

    async def test_not_notified_while_initializing(
        self,
        storage: MemoryKeyValueStorage,
        adapter: FederatedAuthAdapter,
    ):
        # Arrange
        coordinator = _coordinator(storage, adapter)
        views: list[MergedSession] = []
        coordinator.subscribe(views.append)

        # Act
        coordinator.register("Ann", "ann@x.com", "pw1")
        during_init = list(views)
        await coordinator.start()

        # Assert
        assert during_init == []
        assert views == [MergedSession(is_logged_in=True, display_name="Ann", source="local")]
        coordinator.dispose()

    async def test_notified_on_each_change(self, coordinator: SessionCoordinator):
        # Arrange
        views: list[MergedSession] = []
        unsubscribe = coordinator.subscribe(views.append)

        # Act
        coordinator.register("Ann", "ann@x.com", "pw1")
        await coordinator.sign_in_federated()
        await coordinator.log_out()
        unsubscribe()
        coordinator.sign_in_local("ann@x.com", "pw1")

        # Assert
        assert [(v.is_logged_in, v.display_name) for v in views] == [
            (True, "Ann"),
            (True, "Grace Federated"),
            (False, None),
        ]
