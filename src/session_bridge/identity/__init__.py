"""Local identity: credential registry and the persisted active session.

- CredentialRegistry: email -> RegisteredIdentity, add-if-absent
- SessionStore: single-slot storage of the active LocalSession
"""

from session_bridge.identity.models import LocalSession, RegisteredIdentity
from session_bridge.identity.registry import CredentialRegistry
from session_bridge.identity.session_store import SessionStore

__all__ = [
    "CredentialRegistry",
    "LocalSession",
    "RegisteredIdentity",
    "SessionStore",
]
