"""Full-conversation sync after a quiet period."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from chat_sync.dedup import DedupFilter
from chat_sync.delivery import DeliveryEngine, DeliveryResult, DeliveryStatus
from chat_sync.host import HostContext
from chat_sync.models import ConversationMessage, FullConversationPayload, HistoryMessage
from chat_sync.scheduler import Scheduler, ThreadingScheduler

LOGGER = logging.getLogger(__name__)


class AggregatorState(str, Enum):
    IDLE_WAITING = "idle_waiting"
    QUIESCENT = "quiescent"


@dataclass
class ConversationSnapshot:
    """A conversation's transcript as last seen, with its identity."""

    history: list[HistoryMessage]
    character_name: str
    conversation_id: str

    @classmethod
    def capture(cls, host: HostContext) -> "ConversationSnapshot":
        return cls(
            history=list(host.get_conversation_history()),
            character_name=host.get_active_character_name() or "Unknown",
            conversation_id=host.get_active_conversation_id() or "",
        )


def build_full_conversation(
    history: list[HistoryMessage],
    character_name: str,
    chat_id: str,
    user_display_name: str = "User",
) -> FullConversationPayload:
    """Snapshot the transcript, leaving out system entries."""
    messages = [
        ConversationMessage(
            role="user" if entry.is_user else "assistant",
            name=user_display_name if entry.is_user else character_name,
            content=entry.text or "",
            timestamp=entry.timestamp or "",
        )
        for entry in history
        if not entry.is_system
    ]
    return FullConversationPayload(character=character_name, chat_id=chat_id, messages=messages)


class IdleAggregator:
    """Debounced timer that sends the whole conversation once activity stops."""

    def __init__(
        self,
        state,
        host: HostContext,
        delivery: DeliveryEngine,
        dedup: DedupFilter,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.state = state
        self.host = host
        self.delivery = delivery
        self.dedup = dedup
        self.scheduler = scheduler or ThreadingScheduler()
        # Told about every transcript captured from the host for a full sync
        self.on_capture: Callable[[ConversationSnapshot], None] | None = None
        # Bumped on every rearm/disarm so a timer that fired late can tell it is stale
        self._generation = 0

    @property
    def status(self) -> AggregatorState:
        timer = self.state.idle_timer
        if timer is not None and timer.active:
            return AggregatorState.IDLE_WAITING
        return AggregatorState.QUIESCENT

    def rearm(self) -> None:
        """Cancel any pending countdown and start a fresh one."""
        with self.state.lock:
            self.disarm()
            settings = self.state.settings
            if not settings.enabled or not settings.full_conversation_sync:
                return
            generation = self._generation
            self.state.idle_timer = self.scheduler.call_later(
                settings.idle_timeout_seconds, lambda: self._on_idle(generation)
            )

    def disarm(self) -> None:
        with self.state.lock:
            self._generation += 1
            if self.state.idle_timer is not None:
                self.state.idle_timer.cancel()
                self.state.idle_timer = None

    def _on_idle(self, generation: int) -> None:
        try:
            with self.state.lock:
                if generation != self._generation:
                    return
                LOGGER.info("Idle timeout, syncing full conversation")
                self.state.idle_timer = None
                self.sync_full_conversation()
        except Exception as exc:  # timer thread: nothing above us to report to
            LOGGER.error("Full sync error: %s", exc)

    def sync_full_conversation(
        self, snapshot: ConversationSnapshot | None = None
    ) -> DeliveryResult | None:
        """Send a transcript unless it was already synced.

        Uses the host's active conversation when no snapshot is given.
        Returns None when there was nothing to send.
        """
        settings = self.state.settings
        if not settings.enabled or not settings.full_conversation_sync:
            return None

        if snapshot is None:
            snapshot = ConversationSnapshot.capture(self.host)
            if self.on_capture is not None:
                self.on_capture(snapshot)
        if len(snapshot.history) < 2:
            return None

        payload = build_full_conversation(
            snapshot.history,
            snapshot.character_name,
            snapshot.conversation_id,
            settings.user_display_name,
        )
        with self.state.lock:
            if self.dedup.contains(payload):
                LOGGER.debug("Full conversation already synced")
                return DeliveryResult(status=DeliveryStatus.SUPPRESSED)

            result = self.delivery.deliver(payload)
            if result.status in (DeliveryStatus.DELIVERED, DeliveryStatus.BUFFERED):
                self.dedup.remember(payload)
            return result
