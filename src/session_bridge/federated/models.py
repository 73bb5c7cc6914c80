"""Federated identity value and provider contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class FederatedIdentity(BaseModel):
    """Identity asserted by the external provider.

    Lifetime is controlled by the provider. session-bridge keeps a read-only
    reference and never persists it.

    Attributes:
        uid: Provider-assigned user id.
        display_name: Display name, if the provider shares one.
        email: Email, if the provider shares one.
        avatar_url: Avatar/photo URL, if any.
        provider_id: Provider name, e.g. "google.com".
    """

    model_config = ConfigDict(frozen=True)

    uid: str
    display_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    provider_id: str | None = None


@runtime_checkable
class FederatedIdentityProvider(Protocol):
    """Contract of the external provider SDK.

    sign_in() runs the interactive flow (popup, device code, ...) and may
    suspend indefinitely pending user interaction. Timeouts are the
    provider's concern. Any exception raised is treated as a failed or
    cancelled operation.
    """

    @property
    def current_identity(self) -> FederatedIdentity | None:
        """Identity the provider considers signed in right now."""
        ...

    async def sign_in(self) -> FederatedIdentity:
        """Run the interactive sign-in flow."""
        ...

    async def sign_out(self) -> None:
        """Sign the current identity out of the provider."""
        ...
