"""Durable key/value storage backends."""

from session_bridge.storage.kv import (
    FileKeyValueStorage,
    KeyValueStorage,
    MemoryKeyValueStorage,
    create_storage,
    get_storage_info,
)

__all__ = [
    "FileKeyValueStorage",
    "KeyValueStorage",
    "MemoryKeyValueStorage",
    "create_storage",
    "get_storage_info",
]
