"""Wires the sync components to a host application."""

from __future__ import annotations

import logging
from pathlib import Path

from chat_sync.adapter import EventAdapter
from chat_sync.aggregator import IdleAggregator
from chat_sync.dedup import DedupFilter
from chat_sync.delivery import DeliveryEngine, DeliveryResult, FlushResult
from chat_sync.host import HostContext, wait_for_host
from chat_sync.notifications import Notifier
from chat_sync.scheduler import Scheduler
from chat_sync.state import SyncState
from chat_sync.storage import KeyValueStore, SqliteKeyValueStore
from chat_sync.transport import SyncClient

LOGGER = logging.getLogger(__name__)


class SyncHook:
    """Owns the sync state and the components that share it."""

    def __init__(
        self,
        host: HostContext,
        store: KeyValueStore,
        client: SyncClient | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.host = host
        self.store = store
        self.state = SyncState.load(store)
        self.notifier = Notifier(self.state, host)
        self.dedup = DedupFilter(self.state)
        self.delivery = DeliveryEngine(self.state, self.dedup, client=client, notifier=self.notifier)
        self.aggregator = IdleAggregator(
            self.state, host, self.delivery, self.dedup, scheduler=scheduler
        )
        self.adapter = EventAdapter(self.state, host, self.delivery, self.aggregator)
        self._started = False

    @classmethod
    def from_path(cls, host: HostContext, db_path: Path | str, **kwargs) -> "SyncHook":
        return cls(host, SqliteKeyValueStore(db_path), **kwargs)

    def start(self, poll_interval: float = 0.5, timeout: float | None = None) -> None:
        """Wait for the host, then register event handlers once."""
        if self._started:
            return
        LOGGER.info("Loading memory sync...")
        wait_for_host(self.host, poll_interval=poll_interval, timeout=timeout)
        self.adapter.register()
        self._started = True
        LOGGER.info("Memory sync loaded, endpoint %s", self.state.settings.endpoint_url)

    def stop(self) -> None:
        self.aggregator.disarm()
        self.delivery.close()
        self.store.close()

    def flush(self) -> FlushResult:
        """Manual flush of the offline queue."""
        return self.delivery.flush()

    def test_connection(self) -> DeliveryResult:
        return self.delivery.test_connection()

    def status(self) -> dict:
        settings = self.state.settings
        return {
            "enabled": settings.enabled,
            "endpointUrl": settings.endpoint_url,
            "queued": len(self.state.queue),
            "maxBufferSize": settings.max_buffer_size,
            "fingerprints": len(self.state.fingerprints),
            "lastSyncTime": settings.last_sync_time,
            "idleTimer": self.aggregator.status.value,
        }
