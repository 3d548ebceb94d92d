"""
Durable key/value storage backends.

Provides the string key/value capability the cache and credential store
persist into:
- MemoryStorage for tests and throwaway sessions
- SQLiteStorage for durable on-disk storage, or in-memory via :memory:

All backend faults surface as StorageError so consumers can treat
storage failures uniformly.
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator


class StorageError(Exception):
    """Raised when the backing storage cannot complete an operation."""


class KeyValueStorage(ABC):
    """Abstract string key/value storage.

    Example:
        >>> storage = MemoryStorage()
        >>> storage.set_item("user-token", "abc")
        >>> storage.get_item("user-token")
        'abc'
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any existing one."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        ...


class MemoryStorage(KeyValueStorage):
    """Dict-backed storage that lives only as long as the process."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for {key!r} must be a string")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        """Return stored keys in sorted order."""
        return sorted(self._items)


class SQLiteStorage(KeyValueStorage):
    """SQLite-backed key/value storage.

    Attributes:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
        conn: SQLite connection (None until open() called or context entered).

    Example:
        >>> with SQLiteStorage(":memory:") as storage:
        ...     storage.set_item("findreve-cache-version", "1.0")
        ...     version = storage.get_item("findreve-cache-version")
    """

    _SCHEMA_SQL = """
        CREATE TABLE IF NOT EXISTS kv_items (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialise SQLiteStorage.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for
                in-memory database (fast, non-persistent).
        """
        self.db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Get the database connection, raising if not connected."""
        if self._conn is None:
            raise RuntimeError(
                "SQLiteStorage not connected. Use 'with storage:' or "
                "call open()."
            )
        return self._conn

    @property
    def is_open(self) -> bool:
        """Check if the storage connection is open."""
        return self._conn is not None

    @property
    def is_memory(self) -> bool:
        """Check if this is an in-memory database."""
        return self.db_path == ":memory:"

    def open(self) -> SQLiteStorage:
        """Open the database connection and initialise schema.

        Returns:
            self for method chaining.

        Raises:
            RuntimeError: If already connected.
            StorageError: If the database cannot be opened.
        """
        if self._conn is not None:
            raise RuntimeError("SQLiteStorage already connected.")

        try:
            if not self.is_memory:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,  # sweeper thread shares it
            )
            if not self.is_memory:
                self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.executescript(self._SCHEMA_SQL)
            self._conn.commit()
        except (sqlite3.Error, OSError) as e:
            self.close()
            raise StorageError(f"Cannot open storage {self.db_path}: {e}")
        return self

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SQLiteStorage:
        """Context manager entry - opens connection."""
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit - closes connection."""
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Context manager for a database transaction.

        Commits on success, rolls back on exception. SQLite errors, and
        use of a closed storage, are raised as StorageError.

        Yields:
            SQLite cursor for executing statements.
        """
        if self._conn is None:
            raise StorageError(f"Storage {self.db_path} is not open")
        cursor = self.conn.cursor()
        try:
            yield cursor
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cursor.close()

    def _utcnow_iso(self) -> str:
        """Get current UTC time as ISO 8601 string."""
        return datetime.now(timezone.utc).isoformat()

    def get_item(self, key: str) -> str | None:
        with self.transaction() as cursor:
            cursor.execute("SELECT value FROM kv_items WHERE key = ?", (key,))
            row = cursor.fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for {key!r} must be a string")
        with self.transaction() as cursor:
            cursor.execute(
                "INSERT OR REPLACE INTO kv_items (key, value, updated_at) "
                "VALUES (?, ?, ?)",
                (key, value, self._utcnow_iso()),
            )

    def remove_item(self, key: str) -> None:
        with self.transaction() as cursor:
            cursor.execute("DELETE FROM kv_items WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        """Return stored keys in sorted order."""
        with self.transaction() as cursor:
            cursor.execute("SELECT key FROM kv_items ORDER BY key")
            rows = cursor.fetchall()
        return [row[0] for row in rows]

    def item_count(self) -> int:
        """Count stored items.

        Returns:
            Number of keys held in the storage.
        """
        with self.transaction() as cursor:
            cursor.execute("SELECT COUNT(*) FROM kv_items")
            row = cursor.fetchone()
        return int(row[0]) if row else 0
