"""Tests for the bounded offline queue."""

import json

import pytest

from chat_sync.models import MessagePayload
from chat_sync.offline_queue import OfflineQueue
from chat_sync.storage import OFFLINE_QUEUE_KEY, InMemoryKeyValueStore


def _payload(n: int) -> MessagePayload:
    return MessagePayload(character="Aria", user_message=f"u{n}", assistant_message=f"a{n}", chat_id="c")


class TestOfflineQueue:
    """Tests for OfflineQueue."""

    @pytest.mark.parametrize("pushes,capacity", [(0, 3), (2, 3), (3, 3), (7, 3), (5, 1)])
    def test_length_is_min_of_pushes_and_capacity(self, pushes, capacity):
        """The newest entries survive overflow, oldest first."""
        queue = OfflineQueue(InMemoryKeyValueStore(), capacity=capacity)
        for n in range(pushes):
            queue.push(_payload(n))
        assert len(queue) == min(pushes, capacity)
        expected = [f"u{n}" for n in range(max(0, pushes - capacity), pushes)]
        assert [item["userMessage"] for item in queue] == expected

    def test_push_reports_dropped(self):
        queue = OfflineQueue(InMemoryKeyValueStore(), capacity=1)
        assert queue.push(_payload(1)) == 0
        assert queue.push(_payload(2)) == 1

    def test_capacity_follows_callable(self):
        limit = {"value": 5}
        queue = OfflineQueue(InMemoryKeyValueStore(), capacity=lambda: limit["value"])
        for n in range(4):
            queue.push(_payload(n))
        limit["value"] = 2
        queue.push(_payload(4))
        assert [item["userMessage"] for item in queue] == ["u3", "u4"]

    def test_persisted_oldest_first(self):
        store = InMemoryKeyValueStore()
        queue = OfflineQueue(store)
        queue.push(_payload(1))
        queue.push(_payload(2))
        stored = json.loads(store.get(OFFLINE_QUEUE_KEY))
        assert [item["userMessage"] for item in stored] == ["u1", "u2"]
        assert stored[0]["type"] == "message"

    def test_reload(self):
        store = InMemoryKeyValueStore()
        OfflineQueue(store).push(_payload(1))
        assert len(OfflineQueue(store)) == 1

    def test_corrupt_record_resets(self):
        """An unparseable record starts an empty queue."""
        store = InMemoryKeyValueStore({OFFLINE_QUEUE_KEY: "{not a list"})
        assert len(OfflineQueue(store)) == 0

    def test_non_object_entries_dropped(self):
        store = InMemoryKeyValueStore({OFFLINE_QUEUE_KEY: json.dumps([1, {"type": "message"}])})
        assert len(OfflineQueue(store)) == 1

    def test_payloads_decodes_and_skips_unknown(self):
        store = InMemoryKeyValueStore()
        queue = OfflineQueue(store)
        queue.push(_payload(1))
        queue.push({"type": "mystery"})
        payloads = queue.payloads()
        assert len(payloads) == 1
        assert payloads[0].user_message == "u1"

    def test_replace_and_clear(self):
        queue = OfflineQueue(InMemoryKeyValueStore())
        queue.push(_payload(1))
        queue.push(_payload(2))
        queue.replace(queue.snapshot()[1:])
        assert [item["userMessage"] for item in queue] == ["u2"]
        queue.clear()
        assert len(queue) == 0

    def test_load_trims_to_capacity(self):
        """A stored queue longer than the limit keeps only its newest entries."""
        store = InMemoryKeyValueStore()
        OfflineQueue(store, capacity=5).replace([_payload(n).to_dict() for n in range(5)])

        queue = OfflineQueue(store, capacity=2)

        assert [item["userMessage"] for item in queue] == ["u3", "u4"]
        stored = json.loads(store.get(OFFLINE_QUEUE_KEY))
        assert [item["userMessage"] for item in stored] == ["u3", "u4"]

    def test_trim_after_capacity_lowered(self):
        limit = {"value": 5}
        queue = OfflineQueue(InMemoryKeyValueStore(), capacity=lambda: limit["value"])
        for n in range(5):
            queue.push(_payload(n))
        limit["value"] = 2

        assert queue.trim() == 3
        assert [item["userMessage"] for item in queue] == ["u3", "u4"]
        assert queue.trim() == 0
