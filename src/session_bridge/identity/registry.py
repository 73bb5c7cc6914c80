"""Credential registry: durable mapping of email -> RegisteredIdentity.

Persisted under the "registered_users" key as a JSON array. The array is
read on every access (no in-memory cache), so several registries over the
same storage always agree.
"""

from __future__ import annotations

__all__ = ["CredentialRegistry"]

import hmac
import json
from typing import Any

from pydantic import ValidationError

from session_bridge.constants import REGISTERED_USERS_KEY
from session_bridge.exceptions import (
    CorruptPersistedStateError,
    DuplicateEmailError,
    NoSuchAccountError,
    WrongSecretError,
)
from session_bridge.identity.models import RegisteredIdentity
from session_bridge.storage.kv import KeyValueStorage
from session_bridge.telemetry.system.system_logger import get_system_logger
from session_bridge.utils.validation import emails_match, normalize_email

logger = get_system_logger()


def _decode_entries(key: str, raw: str) -> list[Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptPersistedStateError(key, f"invalid JSON ({e.msg})") from e
    if not isinstance(data, list):
        raise CorruptPersistedStateError(key, f"expected a JSON array, got {type(data).__name__}")
    return data


class CredentialRegistry:
    """Registry of locally registered accounts.

    Invariant: at most one RegisteredIdentity per normalized email.

    Usage:
        registry = CredentialRegistry(storage)
        registry.register("Ann", "ann@x.com", "pw1")
        identity = registry.authenticate("ANN@x.com", "pw1")
    """

    def __init__(self, storage: KeyValueStorage, key: str = REGISTERED_USERS_KEY) -> None:
        self._storage = storage
        self._key = key

    def _load(self) -> list[RegisteredIdentity]:
        """Read all identities from storage.

        A corrupt payload is logged and read as an empty registry.
        Individually malformed entries are skipped.
        """
        try:
            raw = self._storage.get(self._key)
            if raw is None:
                return []
            entries = _decode_entries(self._key, raw)
        except CorruptPersistedStateError as e:
            logger.warning(
                {
                    "event": "registry_corrupt",
                    "key": e.key,
                    "error_type": e.code,
                    "error_message": e.reason,
                }
            )
            return []

        identities: list[RegisteredIdentity] = []
        for index, entry in enumerate(entries):
            try:
                identities.append(RegisteredIdentity.model_validate(entry))
            except ValidationError as e:
                logger.warning(
                    {
                        "event": "registry_entry_skipped",
                        "key": self._key,
                        "index": index,
                        "error_count": e.error_count(),
                    }
                )
        return identities

    def _save(self, identities: list[RegisteredIdentity]) -> None:
        payload = [identity.model_dump() for identity in identities]
        self._storage.set(self._key, json.dumps(payload))

    def list_identities(self) -> list[RegisteredIdentity]:
        """Return all registered identities in registration order."""
        return self._load()

    def find_by_email(self, email: str) -> RegisteredIdentity | None:
        """Find an identity by case-insensitive email match.

        Args:
            email: Email in any case.

        Returns:
            The matching identity, or None.
        """
        for identity in self._load():
            if emails_match(identity.email, email):
                return identity
        return None

    def register(self, name: str, email: str, secret: str) -> RegisteredIdentity:
        """Add a new identity if its email is not registered yet.

        Args:
            name: Display name.
            email: Email (stored normalized).
            secret: Secret, stored as given.

        Returns:
            The new identity.

        Raises:
            DuplicateEmailError: If the normalized email is already registered.
        """
        identities = self._load()
        normalized = normalize_email(email)
        if any(emails_match(existing.email, normalized) for existing in identities):
            raise DuplicateEmailError(normalized)

        identity = RegisteredIdentity(name=name, email=normalized, secret=secret)
        identities.append(identity)
        self._save(identities)
        logger.debug({"event": "registry_identity_added", "email": normalized, "count": len(identities)})
        return identity

    def authenticate(self, email: str, secret: str) -> RegisteredIdentity:
        """Verify a secret against the registered identity for email.

        Comparison is an exact match on the stored secret.

        Returns:
            The matching identity.

        Raises:
            NoSuchAccountError: If email is not registered.
            WrongSecretError: If the secret does not match.
        """
        identity = self.find_by_email(email)
        if identity is None:
            raise NoSuchAccountError(normalize_email(email))
        if not hmac.compare_digest(identity.secret.encode("utf-8"), secret.encode("utf-8")):
            raise WrongSecretError(identity.email)
        return identity
