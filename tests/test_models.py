"""Tests for payload models."""

import json

import pytest

from chat_sync.exceptions import PayloadError
from chat_sync.models import (
    ConversationMessage,
    FullConversationPayload,
    HistoryMessage,
    MessagePayload,
    Turn,
    payload_from_dict,
)


class TestMessagePayload:
    def test_wire_shape(self):
        payload = MessagePayload("Aria", "hi", "hello", "chat-a", timestamp="2026-01-01T00:00:00.000Z")
        assert payload.to_dict() == {
            "type": "message",
            "character": "Aria",
            "userMessage": "hi",
            "assistantMessage": "hello",
            "chatId": "chat-a",
            "timestamp": "2026-01-01T00:00:00.000Z",
        }

    def test_from_turns(self):
        user = Turn("user", "hi", "chat-a", "Aria", "t")
        assistant = Turn("assistant", "hello", "chat-a", "Aria", "t")
        payload = MessagePayload.from_turns(user, assistant)
        assert payload.user_message == "hi"
        assert payload.assistant_message == "hello"
        assert payload.chat_id == "chat-a"

    def test_default_timestamp_is_utc_iso(self):
        assert MessagePayload("A", "", "", "").timestamp.endswith("Z")


class TestFullConversationPayload:
    def test_json_serializable(self):
        payload = FullConversationPayload(
            "Aria", "chat-a", [ConversationMessage("user", "User", "hi", "t1")]
        )
        data = json.loads(json.dumps(payload.to_dict()))
        assert data["messageCount"] == 1
        assert data["messages"][0]["content"] == "hi"

    def test_last_text_empty_when_no_messages(self):
        assert FullConversationPayload("Aria", "c", []).last_text == ""


class TestPayloadFromDict:
    """Tests for decoding stored payloads."""

    def test_message(self):
        payload = payload_from_dict({"type": "message", "userMessage": "hi", "chatId": "c"})
        assert isinstance(payload, MessagePayload)
        assert payload.user_message == "hi"
        assert payload.assistant_message == ""

    def test_full_conversation(self):
        payload = payload_from_dict(
            {"type": "full_conversation", "chatId": "c", "messages": [{"role": "user", "content": "hi"}]}
        )
        assert isinstance(payload, FullConversationPayload)
        assert payload.message_count == 1

    def test_accepts_kind_tag(self):
        """Records tagged with kind instead of type still decode."""
        assert isinstance(payload_from_dict({"kind": "message"}), MessagePayload)

    @pytest.mark.parametrize("data", [{"type": "other"}, {}, ["message"]])
    def test_rejects_unknown(self, data):
        with pytest.raises(PayloadError):
            payload_from_dict(data)


class TestHistoryMessage:
    def test_from_dict_accepts_content_key(self):
        message = HistoryMessage.from_dict({"role": "user", "content": "hi"})
        assert message.text == "hi"
        assert message.is_user

    def test_unknown_role_rejected(self):
        with pytest.raises(PayloadError):
            HistoryMessage.from_dict({"role": "narrator", "text": "x"})
