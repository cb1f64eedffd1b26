"""Storage-specific exceptions."""

from chat_sync.exceptions import SyncError


class StorageError(SyncError):
    """Base exception for storage operations."""


class DatabaseError(StorageError):
    """Database connection or query failure."""


class MigrationError(StorageError):
    """Schema migration failure."""
