"""Schema migrations for the sync state database."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Migration:
    """A single schema migration."""

    version: int
    name: str
    statements: list[str]


# Migration 001: version tracking and the key/value record table
MIGRATION_001_INITIAL = Migration(
    version=1,
    name="initial_schema",
    statements=[
        """
        CREATE TABLE schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE kv_record (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
    ],
)


# All migrations in order
ALL_MIGRATIONS: list[Migration] = [
    MIGRATION_001_INITIAL,
]


def get_all_migrations() -> list[Migration]:
    """Return all migrations in version order."""
    return ALL_MIGRATIONS
