"""
Key-value blob storage backends for the suggestion state store.

The store only needs to read one key at startup and rewrite it whole on
every update, so a backend is just get/set over text values.
"""

import sqlite3
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_ts TEXT NOT NULL
);
"""


class StorageError(Exception):
    """A storage backend failed to read or write."""


class KeyValueStore(ABC):
    """Base class for blob storage backends."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process storage, for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SqliteKeyValueStore(KeyValueStore):
    """SQLite-backed storage, one connection per call."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        if not self._schema_ready:
            try:
                conn.executescript(SCHEMA)
            except sqlite3.Error:
                conn.close()
                raise
            self._schema_ready = True
        return conn

    def get(self, key: str) -> str | None:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.db_path}: {e}") from e
        try:
            cursor = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {key!r}: {e}") from e
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        now = datetime.now(UTC).isoformat()
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.db_path}: {e}") from e
        try:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_ts) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_ts = excluded.updated_ts
                """,
                (key, value, now),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write {key!r}: {e}") from e
        finally:
            conn.close()
