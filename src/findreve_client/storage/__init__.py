"""
Local storage for findreve-client.

This module provides:
- Key/value storage backends (in-memory and SQLite)
- The bearer credential store
- ObjectCache, the versioned TTL cache of fetched objects
"""

from findreve_client.storage.backends import (
    KeyValueStorage,
    MemoryStorage,
    SQLiteStorage,
    StorageError,
)
from findreve_client.storage.credentials import CredentialStore
from findreve_client.storage.object_cache import (
    CURRENT_CACHE_VERSION,
    DEFAULT_TTL_MS,
    SWEEP_INTERVAL_MS,
    CacheEntry,
    CacheSweeper,
    ObjectCache,
)

__all__ = [
    # Backends
    "KeyValueStorage",
    "MemoryStorage",
    "SQLiteStorage",
    "StorageError",
    # Credentials
    "CredentialStore",
    # Object cache
    "CacheEntry",
    "CacheSweeper",
    "ObjectCache",
    "CURRENT_CACHE_VERSION",
    "DEFAULT_TTL_MS",
    "SWEEP_INTERVAL_MS",
]
