"""Adapter over an optional federated identity provider.

FederatedAuthAdapter is either Configured (wraps a provider) or
Unconfigured (provider is None). Every operation checks is_configured first
and raises ProviderNotConfiguredError instead of dereferencing a missing
provider.

Identity changes are pushed to subscribers on the next event-loop turn:
- subscribe() delivers the current identity exactly once, then every change
- sign_in()/sign_out() notify after the provider call resolved, never before,
  and return only once those notifications ran
- publish() lets the provider integration push changes it learns about
  on its own (expiry, revocation)
"""

from __future__ import annotations

__all__ = [
    "FederatedAuthAdapter",
    "create_federated_adapter",
    "load_provider",
]

import importlib
from typing import TYPE_CHECKING, Callable

from session_bridge.exceptions import (
    ProviderError,
    ProviderNotConfiguredError,
    ProviderOperationFailedError,
)
from session_bridge.federated.models import FederatedIdentity, FederatedIdentityProvider
from session_bridge.telemetry.system.system_logger import get_system_logger
from session_bridge.utils.listeners import ListenerSet, Unsubscribe

if TYPE_CHECKING:
    from session_bridge.config import FederatedConfig

IdentityCallback = Callable[[FederatedIdentity | None], None]

logger = get_system_logger()


class FederatedAuthAdapter:
    """Wraps a FederatedIdentityProvider, or stands in for a missing one.

    Usage:
        adapter = FederatedAuthAdapter(provider)
        unsubscribe = adapter.subscribe(on_identity)
        identity = await adapter.sign_in()
        unsubscribe()
    """

    def __init__(self, provider: FederatedIdentityProvider | None = None) -> None:
        self._provider = provider
        self._identity: FederatedIdentity | None = provider.current_identity if provider else None
        self._listeners: ListenerSet[FederatedIdentity | None] = ListenerSet("federated_identity")

    @property
    def is_configured(self) -> bool:
        """Whether a provider is present."""
        return self._provider is not None

    @property
    def current_identity(self) -> FederatedIdentity | None:
        """Last identity published to subscribers."""
        return self._identity

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def _require_provider(self) -> FederatedIdentityProvider:
        if self._provider is None:
            raise ProviderNotConfiguredError()
        return self._provider

    async def sign_in(self) -> FederatedIdentity:
        """Run the provider's interactive sign-in.

        Returns:
            The signed-in identity.

        Raises:
            ProviderNotConfiguredError: If no provider is configured.
            ProviderOperationFailedError: If the flow failed or was cancelled.
        """
        provider = self._require_provider()
        try:
            identity = await provider.sign_in()
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderOperationFailedError("sign-in", str(e) or type(e).__name__) from e

        self.publish(identity)
        await self._listeners.wait_idle()
        return identity

    async def sign_out(self) -> None:
        """Sign out of the provider.

        Raises:
            ProviderNotConfiguredError: If no provider is configured.
            ProviderOperationFailedError: If the provider call failed.
        """
        provider = self._require_provider()
        try:
            await provider.sign_out()
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderOperationFailedError("sign-out", str(e) or type(e).__name__) from e

        self.publish(None)
        await self._listeners.wait_idle()

    def publish(self, identity: FederatedIdentity | None) -> None:
        """Record a provider identity change and notify subscribers.

        Repeating the current identity is a no-op.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        if identity == self._identity:
            return
        self._identity = identity
        logger.debug(
            {
                "event": "federated_identity_changed",
                "signed_in": identity is not None,
                "subscribers": len(self._listeners),
            }
        )
        self._listeners.emit_soon(identity)

    def subscribe(self, callback: IdentityCallback) -> Unsubscribe:
        """Subscribe to identity changes.

        The callback first receives the current identity (exactly once, on
        the next event-loop turn), then every subsequent change.

        Args:
            callback: Called with the new identity, or None when signed out.

        Returns:
            Handle that stops all further invocations when called, including
            deliveries already scheduled.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        return self._listeners.add_and_deliver_soon(callback, self._identity)

    async def wait_idle(self) -> None:
        """Wait until all scheduled subscriber notifications ran."""
        await self._listeners.wait_idle()


def load_provider(reference: str, **options: object) -> FederatedIdentityProvider:
    """Import and build a provider from "package.module:factory".

    Args:
        reference: Import reference to a callable returning a provider.
        **options: Keyword arguments for the factory.

    Returns:
        The provider instance.

    Raises:
        ValueError: If the reference is malformed or does not resolve to a
            FederatedIdentityProvider.
        ImportError: If the module cannot be imported.
    """
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Provider reference must look like 'package.module:factory', got {reference!r}")

    target: object = importlib.import_module(module_name)
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ValueError(f"'{attr_path}' not found in module '{module_name}'") from e

    if not callable(target):
        raise ValueError(f"Provider factory {reference!r} is not callable")

    provider = target(**options)
    if not isinstance(provider, FederatedIdentityProvider):
        raise ValueError(f"{reference!r} did not return a FederatedIdentityProvider")
    return provider


def create_federated_adapter(config: "FederatedConfig | None" = None) -> FederatedAuthAdapter:
    """Create the adapter for the configured provider.

    A missing provider yields an unconfigured adapter. A provider that fails
    to load is logged and also yields an unconfigured adapter, so the rest of
    the application keeps working with local accounts.

    Args:
        config: Federated configuration.

    Returns:
        FederatedAuthAdapter (configured or not).
    """
    if config is None or config.provider is None:
        return FederatedAuthAdapter(None)

    try:
        provider = load_provider(config.provider, **config.options)
    except Exception as e:
        logger.error(
            {
                "event": "federated_provider_load_failed",
                "provider": config.provider,
                "error_type": type(e).__name__,
                "error_message": str(e),
            }
        )
        return FederatedAuthAdapter(None)

    return FederatedAuthAdapter(provider)
