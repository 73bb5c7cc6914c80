"""Single-slot storage of the active local session.

Persisted under the "active_session" key, independent of the registry.
A missing or corrupt entry loads as None; corruption is logged, never raised.
"""

from __future__ import annotations

__all__ = ["SessionStore"]

from pydantic import ValidationError

from session_bridge.constants import ACTIVE_SESSION_KEY
from session_bridge.exceptions import CorruptPersistedStateError
from session_bridge.identity.models import LocalSession
from session_bridge.storage.kv import KeyValueStorage
from session_bridge.telemetry.system.system_logger import get_system_logger

logger = get_system_logger()


class SessionStore:
    """Write-through store for at most one LocalSession."""

    def __init__(self, storage: KeyValueStorage, key: str = ACTIVE_SESSION_KEY) -> None:
        self._storage = storage
        self._key = key

    def load(self) -> LocalSession | None:
        """Load the persisted session.

        Returns:
            The session, or None if none is stored or the entry is corrupt.
        """
        try:
            raw = self._storage.get(self._key)
            if raw is None:
                return None
            return self._decode(raw)
        except CorruptPersistedStateError as e:
            logger.warning(
                {
                    "event": "session_corrupt",
                    "key": e.key,
                    "error_type": e.code,
                    "error_message": e.reason,
                }
            )
            return None

    def _decode(self, raw: str) -> LocalSession:
        try:
            return LocalSession.from_json(raw)
        except ValidationError as e:
            raise CorruptPersistedStateError(self._key, f"{e.error_count()} validation error(s)") from e

    def save(self, session: LocalSession) -> None:
        """Persist session, replacing any previous one."""
        self._storage.set(self._key, session.to_json())

    def clear(self) -> None:
        """Remove the persisted session, if any."""
        self._storage.delete(self._key)
