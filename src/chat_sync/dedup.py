"""Content fingerprints and duplicate suppression."""

from __future__ import annotations

import logging
import string

from chat_sync.models import FullConversationPayload, MessagePayload, SyncPayload
from chat_sync.storage import FINGERPRINTS_KEY, KeyValueStore, load_json, save_json

LOGGER = logging.getLogger(__name__)

FINGERPRINT_CAPACITY = 500
PREFIX_LENGTH = 200
FULL_CONVERSATION_NAMESPACE = "full_"

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return sign + "".join(reversed(digits))


def rolling_hash(text: str) -> str:
    """32-bit signed rolling hash (h * 31 + c) in base 36.

    Lossy on purpose: it only has to recognise exact re-delivery.
    Code units are UTF-16 so that fingerprints persisted by earlier clients
    stay comparable.
    """
    h = 0
    encoded = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(h)


def message_fingerprint(user_message: str, assistant_message: str) -> str:
    text = (user_message or "")[:PREFIX_LENGTH] + "|" + (assistant_message or "")[:PREFIX_LENGTH]
    return rolling_hash(text)


def fingerprint(payload: SyncPayload) -> str:
    """Deterministic suppression key for a payload."""
    if isinstance(payload, FullConversationPayload):
        # Count + last text only, so edits to older messages do not retrigger
        digest = message_fingerprint(str(payload.message_count), payload.last_text)
        return FULL_CONVERSATION_NAMESPACE + digest
    if isinstance(payload, MessagePayload):
        return message_fingerprint(payload.user_message, payload.assistant_message)
    raise TypeError(f"Cannot fingerprint {type(payload).__name__}")


class FingerprintSet:
    """Bounded, insertion-ordered set of recently synced fingerprints."""

    def __init__(self, store: KeyValueStore, capacity: int = FINGERPRINT_CAPACITY) -> None:
        self._store = store
        self.capacity = capacity
        # dict preserves insertion order; values unused
        self._items: dict[str, None] = {}
        self.load()

    def load(self) -> None:
        stored = load_json(self._store, FINGERPRINTS_KEY, list, expected_type=list)
        self._items = {}
        for item in stored[-self.capacity:]:
            if isinstance(item, str):
                self._items[item] = None

    def save(self) -> None:
        save_json(self._store, FINGERPRINTS_KEY, list(self._items))

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def add(self, item: str) -> bool:
        """Insert and persist; returns False if already present."""
        if item in self._items:
            return False
        self._items[item] = None
        while len(self._items) > self.capacity:
            oldest = next(iter(self._items))
            del self._items[oldest]
        self.save()
        return True

    def clear(self) -> None:
        self._items.clear()
        self.save()


class DedupFilter:
    """Suppresses payloads whose fingerprint was already recorded."""

    def __init__(self, state) -> None:
        self.state = state

    @property
    def enabled(self) -> bool:
        return self.state.settings.dedup_enabled

    def should_suppress(self, payload: SyncPayload) -> bool:
        """Check-and-record in one step. Never mutates when dedup is disabled."""
        if not self.enabled:
            return False
        key = fingerprint(payload)
        with self.state.lock:
            if key in self.state.fingerprints:
                LOGGER.debug("Skipped duplicate: %s", key)
                return True
            self.state.fingerprints.add(key)
        return False

    def contains(self, payload: SyncPayload) -> bool:
        if not self.enabled:
            return False
        return fingerprint(payload) in self.state.fingerprints

    def remember(self, payload: SyncPayload) -> None:
        if not self.enabled:
            return
        with self.state.lock:
            self.state.fingerprints.add(fingerprint(payload))
