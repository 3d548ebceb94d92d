"""
ObjectCache: versioned, TTL-scoped cache of fetched objects.

Entries are kept as one JSON mapping under a single storage key, next to
a plain version tag. A version mismatch at construction wipes the whole
mapping so a reader never sees entries written in an older shape.

The cache is advisory: storage faults (corrupt JSON, unserialisable
payloads, unavailable storage) are logged and downgraded to a miss or a
no-op. Nothing in this module raises to its callers.

Every load-modify-save of the entry mapping runs under one re-entrant
lock, so a background sweep cannot overwrite a concurrent write.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from findreve_client.storage.backends import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)

ITEMS_CACHE_KEY = "findreve-items-cache"
CACHE_VERSION_KEY = "findreve-cache-version"

# Bump when the persisted entry shape changes
CURRENT_CACHE_VERSION = "1.0"

DEFAULT_TTL_MS = 24 * 60 * 60 * 1000
SWEEP_INTERVAL_MS = 30 * 60 * 1000

# RecursionError comes from json.dumps on deeply nested payloads
_CACHE_FAULTS = (StorageError, ValueError, TypeError, KeyError, RecursionError)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CacheEntry:
    """A cached object payload with its expiry bookkeeping.

    Attributes:
        key: Caller-supplied identifier (e.g. an item code).
        data: JSON-serialisable payload.
        stored_at: Write time in milliseconds since epoch.
        ttl_ms: Lifetime in milliseconds.
    """

    key: str
    data: Any
    stored_at: int
    ttl_ms: int = DEFAULT_TTL_MS

    def is_expired(self, now: int) -> bool:
        """Check whether the entry has outlived its TTL at time `now`."""
        return now - self.stored_at > self.ttl_ms

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialisation."""
        return {
            "data": self.data,
            "timestamp": self.stored_at,
            "expiry": self.ttl_ms,
        }

    @classmethod
    def from_dict(cls, key: str, raw: Any) -> CacheEntry:
        """Create from a persisted dictionary.

        Raises:
            ValueError: If the persisted shape is not a valid entry.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Cache entry {key!r} is not an object")
        stored_at = raw["timestamp"]
        ttl_ms = raw["expiry"]
        for name, value in (("timestamp", stored_at), ("expiry", ttl_ms)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Cache entry {key!r} has invalid {name}")
        return cls(
            key=key,
            data=raw.get("data"),
            stored_at=int(stored_at),
            ttl_ms=int(ttl_ms),
        )


class ObjectCache:
    """Versioned TTL cache persisted in a KeyValueStorage.

    Create one instance per process and pass it to its consumers.

    Attributes:
        storage: Backing key/value storage.
        version: Schema version tag this reader understands.

    Example:
        >>> cache = ObjectCache(MemoryStorage())
        >>> cache.write("item-1", {"name": "wallet"})
        >>> cache.read("item-1")
        {'name': 'wallet'}
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        version: str = CURRENT_CACHE_VERSION,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        """Initialise the cache and validate the stored version.

        Args:
            storage: Backing key/value storage.
            version: Current schema version tag.
            clock: Returns "now" in milliseconds since epoch. Defaults to
                wall-clock time.
        """
        self.storage = storage
        self.version = version
        self._clock = clock or _wall_clock_ms
        self._lock = threading.RLock()
        self.initialize_cache()

    def now(self) -> int:
        """Current time in milliseconds, as seen by this cache."""
        return self._clock()

    # ========================================================================
    # Persistence helpers
    # ========================================================================

    def _load_items(self) -> dict[str, Any]:
        """Load the raw entry mapping.

        Corrupt JSON, or JSON that is not an object, reads as an empty
        mapping. Storage faults propagate to the calling operation.
        """
        raw = self.storage.get_item(ITEMS_CACHE_KEY)
        if not raw:
            return {}
        try:
            items = json.loads(raw)
        except ValueError as e:
            logger.error(f"Error reading cached items: {e}")
            return {}
        if not isinstance(items, dict):
            logger.error("Cached items are not a mapping, ignoring")
            return {}
        return items

    def _save_items(self, items: dict[str, Any]) -> None:
        self.storage.set_item(ITEMS_CACHE_KEY, json.dumps(items))

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def initialize_cache(self) -> None:
        """Wipe every entry if the stored version differs from ours.

        An absent version counts as a mismatch. On a storage fault the
        cache is cleared as a best effort.
        """
        with self._lock:
            try:
                stored_version = self.storage.get_item(CACHE_VERSION_KEY)
                if stored_version != self.version:
                    logger.info(
                        f"Cache version mismatch ({stored_version!r} != "
                        f"{self.version!r}), clearing cache"
                    )
                    self.clear_all()
                    self.storage.set_item(CACHE_VERSION_KEY, self.version)
            except _CACHE_FAULTS as e:
                logger.error(f"Error initialising cache: {e}")
                self.clear_all()

    def clear_all(self) -> None:
        """Remove every cached entry."""
        with self._lock:
            try:
                self.storage.remove_item(ITEMS_CACHE_KEY)
                logger.debug("All cache cleared")
            except _CACHE_FAULTS as e:
                logger.error(f"Error clearing cache: {e}")

    # ========================================================================
    # Entry operations
    # ========================================================================

    def write(self, key: str, data: Any, ttl_ms: int = DEFAULT_TTL_MS) -> None:
        """Store `data` under `key`, stamped with the current time.

        Args:
            key: Object identifier.
            data: JSON-serialisable payload.
            ttl_ms: Lifetime in milliseconds (default 24 hours).
        """
        with self._lock:
            try:
                items = self._load_items()
                entry = CacheEntry(
                    key=key, data=data, stored_at=self.now(), ttl_ms=ttl_ms
                )
                items[key] = entry.to_dict()
                self._save_items(items)
                logger.debug(f"Item cached: {key}")
            except _CACHE_FAULTS as e:
                logger.error(f"Error saving item {key!r} to cache: {e}")

    def read(self, key: str) -> Any:
        """Return the cached payload for `key`, or None on a miss.

        An expired or malformed entry is purged and reads as a miss.
        """
        with self._lock:
            try:
                items = self._load_items()
                if key not in items:
                    return None
                try:
                    entry = CacheEntry.from_dict(key, items[key])
                except (ValueError, TypeError, KeyError) as e:
                    logger.error(f"Discarding malformed cache entry: {e}")
                    self.delete(key)
                    return None

                if entry.is_expired(self.now()):
                    logger.debug(f"Cache expired for item: {key}")
                    self.delete(key)
                    return None

                logger.debug(f"Cache hit for item: {key}")
                return entry.data
            except _CACHE_FAULTS as e:
                logger.error(f"Error retrieving item {key!r} from cache: {e}")
                return None

    def timestamp_of(self, key: str) -> Optional[int]:
        """Return when `key` was stored, without checking expiry."""
        try:
            raw = self._load_items().get(key)
            if isinstance(raw, dict) and raw.get("timestamp") is not None:
                return int(raw["timestamp"])
            return None
        except _CACHE_FAULTS as e:
            logger.error(f"Error getting cache timestamp for {key!r}: {e}")
            return None

    def delete(self, key: str) -> None:
        """Remove `key` from the cache. Absent keys are ignored."""
        with self._lock:
            try:
                items = self._load_items()
                if key in items:
                    del items[key]
                    self._save_items(items)
                    logger.debug(f"Removed item from cache: {key}")
            except _CACHE_FAULTS as e:
                logger.error(f"Error removing item {key!r} from cache: {e}")

    def sweep_expired(self) -> int:
        """Remove every expired or malformed entry.

        The mapping is written back once, and only if something was
        removed.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            try:
                now = self.now()
                items = self._load_items()
                removed = 0
                for key in list(items):
                    try:
                        entry = CacheEntry.from_dict(key, items[key])
                        expired = entry.is_expired(now)
                    except (ValueError, TypeError, KeyError):
                        expired = True
                    if expired:
                        del items[key]
                        removed += 1
                        logger.debug(f"Expired cache removed: {key}")

                if removed:
                    self._save_items(items)
                return removed
            except _CACHE_FAULTS as e:
                logger.error(f"Error cleaning expired cache: {e}")
                return 0

    def entries(self) -> dict[str, CacheEntry]:
        """Return a snapshot of all well-formed entries, expired or not."""
        try:
            result = {}
            for key, raw in self._load_items().items():
                try:
                    result[key] = CacheEntry.from_dict(key, raw)
                except (ValueError, TypeError, KeyError):
                    continue
            return result
        except _CACHE_FAULTS as e:
            logger.error(f"Error listing cached items: {e}")
            return {}


class CacheSweeper:
    """Runs ObjectCache.sweep_expired on a fixed interval.

    The sweep runs in a daemon thread; stopping it is optional.

    Example:
        >>> sweeper = CacheSweeper(cache).start()
        >>> sweeper.stop()
    """

    def __init__(
        self, cache: ObjectCache, interval_ms: int = SWEEP_INTERVAL_MS
    ) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.cache = cache
        self.interval_ms = interval_ms
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Check if the sweep thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """Sweep immediately and return the number of entries removed."""
        return self.cache.sweep_expired()

    def start(self) -> CacheSweeper:
        """Start sweeping in the background.

        Returns:
            self for method chaining.

        Raises:
            RuntimeError: If already running.
        """
        if self.is_running:
            raise RuntimeError("CacheSweeper already running.")
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="findreve-cache-sweeper", daemon=True
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        """Stop the background sweep."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_ms / 1000):
            self.run_once()
