"""Forward chat turns to a memory-ingestion endpoint with offline resilience."""

from chat_sync.adapter import EventAdapter, extract_turn
from chat_sync.aggregator import AggregatorState, ConversationSnapshot, IdleAggregator
from chat_sync.dedup import DedupFilter, FingerprintSet, fingerprint
from chat_sync.delivery import (
    DeliveryEngine,
    DeliveryError,
    DeliveryResult,
    DeliveryStatus,
    FlushResult,
)
from chat_sync.hook import SyncHook
from chat_sync.host import HostContext, TranscriptHost, wait_for_host
from chat_sync.models import (
    ConversationMessage,
    FullConversationPayload,
    HistoryMessage,
    MessagePayload,
    Turn,
    payload_from_dict,
)
from chat_sync.offline_queue import OfflineQueue
from chat_sync.settings import SettingsStore, SyncSettings
from chat_sync.state import SyncState

__all__ = [
    "AggregatorState",
    "ConversationMessage",
    "ConversationSnapshot",
    "DedupFilter",
    "DeliveryEngine",
    "DeliveryError",
    "DeliveryResult",
    "DeliveryStatus",
    "EventAdapter",
    "FingerprintSet",
    "FlushResult",
    "FullConversationPayload",
    "HistoryMessage",
    "HostContext",
    "IdleAggregator",
    "MessagePayload",
    "OfflineQueue",
    "SettingsStore",
    "SyncHook",
    "SyncSettings",
    "SyncState",
    "TranscriptHost",
    "Turn",
    "extract_turn",
    "fingerprint",
    "payload_from_dict",
    "wait_for_host",
]
