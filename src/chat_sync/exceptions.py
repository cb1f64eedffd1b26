"""Exceptions shared across the sync layer."""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for chat-sync."""


class TransportError(SyncError):
    """The sync endpoint could not be reached or answered abnormally."""


class EndpointUnreachableError(TransportError):
    """DNS, connect or timeout failure before any HTTP status was received."""


class PayloadError(SyncError):
    """A persisted or inbound payload could not be interpreted."""


class HostUnavailableError(SyncError):
    """The host application never became ready to accept hooks."""
