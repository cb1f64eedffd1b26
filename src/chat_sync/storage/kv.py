"""Key/value persistence for settings, fingerprints and the offline queue."""

from __future__ import annotations

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable

from chat_sync.storage.base import Database, utcnow
from chat_sync.storage.exceptions import DatabaseError, StorageError
from chat_sync.storage.migrations import get_all_migrations

LOGGER = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
FINGERPRINTS_KEY = "fingerprints"
OFFLINE_QUEUE_KEY = "offline_queue"


class KeyValueStore(ABC):
    """Opaque string key/value store provided by the host."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw stored value, or None if absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a raw value, replacing any previous one."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...

    def close(self) -> None:
        """Release any underlying resources."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for hosts that manage persistence themselves."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.records: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.records.get(key)

    def set(self, key: str, value: str) -> None:
        self.records[key] = value

    def delete(self, key: str) -> None:
        self.records.pop(key, None)


class SqliteKeyValueStore(KeyValueStore):
    """SQLite-backed key/value store."""

    def __init__(self, db_path: Path | str) -> None:
        """Connect to or create the state db. Runs migrations if needed."""
        self._db = Database(db_path)
        self._db.run_migrations(get_all_migrations())

    @property
    def conn(self) -> sqlite3.Connection:
        """Access underlying connection."""
        return self._db.conn

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def get(self, key: str) -> str | None:
        try:
            cursor = self.conn.execute("SELECT value FROM kv_record WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row["value"] if row is not None else None
        except sqlite3.Error as e:
            raise DatabaseError(f"Get {key} failed: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_record (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, utcnow()),
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Set {key} failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._db.transaction() as conn:
                conn.execute("DELETE FROM kv_record WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise DatabaseError(f"Delete {key} failed: {e}") from e


def load_json(
    store: KeyValueStore,
    key: str,
    default: Callable[[], Any],
    expected_type: type = object,
) -> Any:
    """Decode a JSON record, falling back to ``default()`` if missing or corrupt.

    A record that fails to parse, or parses to the wrong top-level type, is
    treated as absent: the caller starts over with a fresh default rather than
    failing startup.
    """
    try:
        raw = store.get(key)
    except StorageError as exc:
        LOGGER.warning("Could not read %s, using default: %s", key, exc)
        return default()
    if raw is None:
        return default()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Corrupt %s record reset to default: %s", key, exc)
        return default()
    if not isinstance(value, expected_type):
        LOGGER.warning(
            "Unexpected %s record type %s reset to default",
            key,
            type(value).__name__,
        )
        return default()
    return value


def save_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Best-effort JSON write. Returns False when the store rejected it."""
    try:
        store.set(key, json.dumps(value))
        return True
    except StorageError as exc:
        LOGGER.warning("Could not persist %s: %s", key, exc)
        return False
