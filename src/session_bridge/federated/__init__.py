"""Federated identity: adapter over an external OAuth-style provider.

The OAuth handshake itself lives in the provider; this package only consumes
its contract (FederatedIdentityProvider) and adds the configured/unconfigured
split plus the change subscription.
"""

from session_bridge.federated.adapter import (
    FederatedAuthAdapter,
    create_federated_adapter,
    load_provider,
)
from session_bridge.federated.models import FederatedIdentity, FederatedIdentityProvider

__all__ = [
    "FederatedAuthAdapter",
    "FederatedIdentity",
    "FederatedIdentityProvider",
    "create_federated_adapter",
    "load_provider",
]
