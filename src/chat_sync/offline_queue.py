"""Bounded durable FIFO for payloads that failed delivery."""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from chat_sync.exceptions import PayloadError
from chat_sync.models import SyncPayload, payload_from_dict
from chat_sync.storage import OFFLINE_QUEUE_KEY, KeyValueStore, load_json, save_json

LOGGER = logging.getLogger(__name__)


class OfflineQueue:
    """Oldest-first queue persisted as a list of payload dicts.

    Overflow drops the oldest entry: the newest carries the most relevant
    context.
    """

    def __init__(self, store: KeyValueStore, capacity: Callable[[], int] | int = 100) -> None:
        self._store = store
        self._capacity = capacity
        self._items: list[dict] = []
        self.load()

    @property
    def capacity(self) -> int:
        value = self._capacity() if callable(self._capacity) else self._capacity
        return max(1, int(value))

    def load(self) -> None:
        stored = load_json(self._store, OFFLINE_QUEUE_KEY, list, expected_type=list)
        self._items = [item for item in stored if isinstance(item, dict)]
        if len(self._items) != len(stored):
            LOGGER.warning("Dropped %d malformed queued entries", len(stored) - len(self._items))
        self.trim()

    def trim(self) -> int:
        """Drop the oldest entries beyond capacity. Returns the number dropped."""
        dropped = len(self._items) - self.capacity
        if dropped <= 0:
            return 0
        del self._items[:dropped]
        self.save()
        LOGGER.info("Offline queue over capacity, dropped %d oldest", dropped)
        return dropped

    def save(self) -> None:
        save_json(self._store, OFFLINE_QUEUE_KEY, self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[dict]:
        return iter(list(self._items))

    def push(self, payload: SyncPayload | dict) -> int:
        """Append and persist. Returns the number of entries dropped."""
        item = payload if isinstance(payload, dict) else payload.to_dict()
        self._items.append(item)
        dropped = self.trim()
        if not dropped:
            self.save()
        LOGGER.info("Buffered offline (%d queued)", len(self._items))
        return dropped

    def snapshot(self) -> list[dict]:
        return list(self._items)

    def payloads(self) -> list[SyncPayload]:
        """Decode queued entries, skipping any that no longer parse."""
        decoded: list[SyncPayload] = []
        for item in self._items:
            try:
                decoded.append(payload_from_dict(item))
            except PayloadError as exc:
                LOGGER.warning("Skipping undecodable queued payload: %s", exc)
        return decoded

    def replace(self, items: list[dict]) -> None:
        """Overwrite the queue contents, keeping order and the capacity bound."""
        self._items = list(items)[-self.capacity:]
        self.save()

    def clear(self) -> None:
        self._items = []
        self.save()
