"""Shared fixtures for session-bridge tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from session_bridge.coordinator import SessionCoordinator
from session_bridge.federated.adapter import FederatedAuthAdapter
from session_bridge.federated.models import FederatedIdentity
from session_bridge.identity.registry import CredentialRegistry
from session_bridge.identity.session_store import SessionStore
from session_bridge.storage.kv import MemoryKeyValueStorage


class FakeProvider:
    """In-process stand-in for an external OAuth provider SDK."""

    def __init__(
        self,
        next_identity: FederatedIdentity | None = None,
        *,
        current: FederatedIdentity | None = None,
        sign_in_error: Exception | None = None,
        sign_out_error: Exception | None = None,
    ) -> None:
        self.next_identity = next_identity
        self.sign_in_error = sign_in_error
        self.sign_out_error = sign_out_error
        self.sign_in_calls = 0
        self.sign_out_calls = 0
        self._identity = current

    @property
    def current_identity(self) -> FederatedIdentity | None:
        return self._identity

    async def sign_in(self) -> FederatedIdentity:
        self.sign_in_calls += 1
        if self.sign_in_error is not None:
            raise self.sign_in_error
        assert self.next_identity is not None
        self._identity = self.next_identity
        return self.next_identity

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self._identity = None


@pytest.fixture
def storage() -> MemoryKeyValueStorage:
    return MemoryKeyValueStorage()


@pytest.fixture
def registry(storage: MemoryKeyValueStorage) -> CredentialRegistry:
    return CredentialRegistry(storage)


@pytest.fixture
def session_store(storage: MemoryKeyValueStorage) -> SessionStore:
    return SessionStore(storage)


@pytest.fixture
def google_identity() -> FederatedIdentity:
    return FederatedIdentity(
        uid="google-uid-1",
        display_name="Grace Federated",
        email="grace@gmail.com",
        avatar_url="https://example.com/grace.png",
        provider_id="google.com",
    )


@pytest.fixture
def provider(google_identity: FederatedIdentity) -> FakeProvider:
    return FakeProvider(next_identity=google_identity)


@pytest.fixture
def adapter(provider: FakeProvider) -> FederatedAuthAdapter:
    return FederatedAuthAdapter(provider)


@pytest.fixture
async def coordinator(
    registry: CredentialRegistry,
    session_store: SessionStore,
    adapter: FederatedAuthAdapter,
) -> AsyncIterator[SessionCoordinator]:
    """Started coordinator over in-memory storage and a configured provider."""
    coordinator = SessionCoordinator(registry, session_store, adapter)
    await coordinator.start()
    yield coordinator
    coordinator.dispose()
