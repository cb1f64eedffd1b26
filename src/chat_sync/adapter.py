"""Translates host notifications into sync work."""

from __future__ import annotations

import logging

from chat_sync.aggregator import ConversationSnapshot, IdleAggregator
from chat_sync.delivery import DeliveryEngine, DeliveryResult
from chat_sync.host import HostContext
from chat_sync.models import HistoryMessage, MessagePayload, Turn, now_iso

LOGGER = logging.getLogger(__name__)


def extract_turn(
    history: list[HistoryMessage],
    turn_index: int,
    conversation_id: str,
    character_name: str,
) -> tuple[Turn, Turn] | None:
    """Pair the reply at ``turn_index`` with the nearest earlier user message.

    Returns None when there is nothing to send: short history, an index out of
    range, or an index pointing at a user message.
    """
    if len(history) < 2 or not 0 <= turn_index < len(history):
        return None
    reply = history[turn_index]
    if reply.is_user:
        return None

    user_text = ""
    for index in range(turn_index - 1, -1, -1):
        if history[index].is_user:
            user_text = history[index].text or ""
            break

    timestamp = now_iso()
    user = Turn("user", user_text, conversation_id, character_name, timestamp)
    assistant = Turn("assistant", reply.text or "", conversation_id, character_name, timestamp)
    return user, assistant


class EventAdapter:
    """Handlers for the host's turn-completed and conversation-switched events."""

    def __init__(
        self,
        state,
        host: HostContext,
        delivery: DeliveryEngine,
        aggregator: IdleAggregator,
    ) -> None:
        self.state = state
        self.host = host
        self.delivery = delivery
        self.aggregator = aggregator
        self.tracked_conversation_id: str | None = None
        # Latest transcript of the tracked conversation, kept so it can still
        # be sent after the host has already switched to another one
        self.tracked_snapshot: ConversationSnapshot | None = None
        aggregator.on_capture = self._on_full_sync_capture

    def register(self) -> None:
        self.host.on_turn_completed(self.on_turn_completed)
        LOGGER.info("Hooked turn-completed events")
        self.host.on_conversation_switched(self.on_conversation_switched)
        LOGGER.info("Hooked conversation-switch events")

    def on_turn_completed(self, turn_index: int) -> DeliveryResult | None:
        if not self.state.settings.enabled:
            return None
        try:
            with self.state.lock:
                return self._handle_turn(turn_index)
        except Exception as exc:  # host callback boundary
            LOGGER.error("Event error: %s", exc)
            return None

    def _handle_turn(self, turn_index: int) -> DeliveryResult | None:
        snapshot = ConversationSnapshot.capture(self.host)
        turn = extract_turn(
            snapshot.history,
            turn_index,
            snapshot.conversation_id,
            snapshot.character_name,
        )
        if turn is None:
            return None

        if self.tracked_conversation_id is None:
            self.tracked_conversation_id = snapshot.conversation_id
        if snapshot.conversation_id == self.tracked_conversation_id:
            self.tracked_snapshot = snapshot

        result = None
        if self.state.settings.realtime_sync:
            result = self.delivery.deliver(MessagePayload.from_turns(*turn))
        self.aggregator.rearm()
        return result

    def _on_full_sync_capture(self, snapshot: ConversationSnapshot) -> None:
        with self.state.lock:
            if snapshot.conversation_id == self.tracked_conversation_id:
                self.tracked_snapshot = snapshot

    def on_conversation_switched(self) -> None:
        try:
            with self.state.lock:
                if self.tracked_conversation_id:
                    LOGGER.info("Conversation changed, syncing previous conversation")
                    self.aggregator.sync_full_conversation(self.tracked_snapshot)
                current = ConversationSnapshot.capture(self.host)
                self.tracked_conversation_id = current.conversation_id
                self.tracked_snapshot = current
                self.aggregator.rearm()
        except Exception as exc:  # host callback boundary
            LOGGER.error("Event error: %s", exc)
