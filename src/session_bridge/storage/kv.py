"""Key/value storage for persisted session state.

Stores raw strings (JSON documents) under short keys, the way a browser's
local storage does. Encoding and decoding belong to the callers
(CredentialRegistry, SessionStore), so a backend never interprets values.

Backends:
- FileKeyValueStorage: one <key>.json file per key, atomic writes, 0o600
- MemoryKeyValueStorage: process-local dict (tests, ephemeral runs)
"""

from __future__ import annotations

__all__ = [
    "FileKeyValueStorage",
    "KeyValueStorage",
    "MemoryKeyValueStorage",
    "create_storage",
    "get_storage_info",
]

import re
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from session_bridge.constants import STORAGE_FILE_SUFFIX
from session_bridge.exceptions import CorruptPersistedStateError
from session_bridge.utils.file_helpers import atomic_write_text

if TYPE_CHECKING:
    from session_bridge.config import StorageConfig

# Keys map directly to file names
_VALID_KEY = re.compile(r"^[a-z][a-z0-9_]*$")


def _check_key(key: str) -> str:
    if not _VALID_KEY.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


@runtime_checkable
class KeyValueStorage(Protocol):
    """Protocol for durable string storage.

    Writes are synchronous: once set() or delete() returns, a new process
    reading the same backend observes the change.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent.

        Raises:
            CorruptPersistedStateError: If the stored bytes cannot be read as text.
        """
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is a no-op."""
        ...


class FileKeyValueStorage:
    """File-per-key storage under a private directory.

    Directory is created with 0o700 on first write; files are written
    atomically with 0o600 permissions.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{_check_key(key)}{STORAGE_FILE_SUFFIX}"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise CorruptPersistedStateError(key, "invalid UTF-8") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._directory.mkdir(parents=True)
        except FileExistsError:
            pass
        else:
            # Only a directory created here is made private
            self._directory.chmod(0o700)
        atomic_write_text(path, value)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryKeyValueStorage:
    """In-memory storage. State is lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(_check_key(key))

    def set(self, key: str, value: str) -> None:
        self._data[_check_key(key)] = value

    def delete(self, key: str) -> None:
        self._data.pop(_check_key(key), None)


def create_storage(config: "StorageConfig") -> KeyValueStorage:
    """Create the storage backend selected by config.

    Args:
        config: Storage configuration.

    Returns:
        KeyValueStorage implementation.
    """
    if config.backend == "memory":
        return MemoryKeyValueStorage()
    return FileKeyValueStorage(Path(config.directory).expanduser())


def get_storage_info(storage: KeyValueStorage) -> dict[str, str]:
    """Describe a storage backend for status output.

    Returns:
        Dict with "backend" and, for the file backend, "location".
    """
    if isinstance(storage, FileKeyValueStorage):
        return {"backend": "file", "location": str(storage.directory)}
    if isinstance(storage, MemoryKeyValueStorage):
        return {"backend": "memory"}
    return {"backend": type(storage).__name__}
