"""Shared mutable sync state."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from chat_sync.dedup import FingerprintSet
from chat_sync.offline_queue import OfflineQueue
from chat_sync.scheduler import TimerHandle
from chat_sync.settings import SettingsStore, SyncSettings
from chat_sync.storage import KeyValueStore


@dataclass
class SyncState:
    """Settings, fingerprint set, offline queue and idle timer handle.

    Every component receives the same instance; ``lock`` guards the
    fingerprint set and queue against the idle timer thread.
    """

    store: KeyValueStore
    settings_store: SettingsStore
    fingerprints: FingerprintSet
    queue: OfflineQueue
    idle_timer: TimerHandle | None = None
    lock: threading.RLock = field(default_factory=threading.RLock)

    @property
    def settings(self) -> SyncSettings:
        return self.settings_store.settings

    @classmethod
    def load(cls, store: KeyValueStore) -> "SyncState":
        """Read all three persisted records, resetting any that are corrupt."""
        settings_store = SettingsStore(store)
        state = cls(
            store=store,
            settings_store=settings_store,
            fingerprints=FingerprintSet(store),
            queue=OfflineQueue(store, capacity=lambda: settings_store.settings.max_buffer_size),
        )
        settings_store.add_listener(state._on_settings_changed)
        return state

    def _on_settings_changed(self, settings: SyncSettings) -> None:
        # A lowered max_buffer_size applies to what is already queued
        with self.lock:
            self.queue.trim()
