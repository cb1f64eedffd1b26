"""Local persistence for sync state."""

from chat_sync.storage.base import Database, utcnow
from chat_sync.storage.exceptions import (
    DatabaseError,
    MigrationError,
    StorageError,
)
from chat_sync.storage.kv import (
    FINGERPRINTS_KEY,
    OFFLINE_QUEUE_KEY,
    SETTINGS_KEY,
    InMemoryKeyValueStore,
    KeyValueStore,
    SqliteKeyValueStore,
    load_json,
    save_json,
)
from chat_sync.storage.migrations import Migration, get_all_migrations

__all__ = [
    # Base
    "Database",
    "utcnow",
    # Exceptions
    "DatabaseError",
    "MigrationError",
    "StorageError",
    # Key/value
    "FINGERPRINTS_KEY",
    "OFFLINE_QUEUE_KEY",
    "SETTINGS_KEY",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqliteKeyValueStore",
    "load_json",
    "save_json",
    # Migrations
    "Migration",
    "get_all_migrations",
]
