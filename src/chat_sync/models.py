"""Data models for turns and sync payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Union

from chat_sync.exceptions import PayloadError

MESSAGE_KIND = "message"
FULL_CONVERSATION_KIND = "full_conversation"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class HistoryMessage:
    """One entry of the host's in-memory transcript."""

    role: Literal["user", "assistant", "system"]
    text: str
    timestamp: str = ""
    name: str | None = None

    @property
    def is_user(self) -> bool:
        return self.role == "user"

    @property
    def is_system(self) -> bool:
        return self.role == "system"

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryMessage":
        role = data.get("role") or "assistant"
        if role not in ("user", "assistant", "system"):
            raise PayloadError(f"Unknown history role: {role!r}")
        return cls(
            role=role,
            text=data.get("text") or data.get("content") or "",
            timestamp=data.get("timestamp") or "",
            name=data.get("name"),
        )


@dataclass
class Turn:
    """A single side of a completed exchange."""

    speaker_role: Literal["user", "assistant"]
    text: str
    conversation_id: str
    character_name: str
    timestamp: str


@dataclass
class MessagePayload:
    """Real-time payload for one user/assistant exchange."""

    character: str
    user_message: str
    assistant_message: str
    chat_id: str
    timestamp: str = field(default_factory=now_iso)

    kind = MESSAGE_KIND

    @classmethod
    def from_turns(cls, user: Turn, assistant: Turn) -> "MessagePayload":
        return cls(
            character=assistant.character_name,
            user_message=user.text or "",
            assistant_message=assistant.text or "",
            chat_id=assistant.conversation_id or "",
            timestamp=assistant.timestamp,
        )

    def to_dict(self) -> dict:
        return {
            "type": self.kind,
            "character": self.character,
            "userMessage": self.user_message,
            "assistantMessage": self.assistant_message,
            "chatId": self.chat_id,
            "timestamp": self.timestamp,
        }


@dataclass
class ConversationMessage:
    """A message inside a full-conversation payload."""

    role: Literal["user", "assistant"]
    name: str
    content: str
    timestamp: str = ""

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "name": self.name,
            "content": self.content,
            "timestamp": self.timestamp,
        }


@dataclass
class FullConversationPayload:
    """Snapshot of an entire conversation, sent after an idle period."""

    character: str
    chat_id: str
    messages: list[ConversationMessage]
    timestamp: str = field(default_factory=now_iso)

    kind = FULL_CONVERSATION_KIND

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def last_text(self) -> str:
        return self.messages[-1].content if self.messages else ""

    def to_dict(self) -> dict:
        return {
            "type": self.kind,
            "character": self.character,
            "chatId": self.chat_id,
            "messageCount": self.message_count,
            "messages": [message.to_dict() for message in self.messages],
            "timestamp": self.timestamp,
        }


SyncPayload = Union[MessagePayload, FullConversationPayload]


def payload_from_dict(data: dict) -> SyncPayload:
    """Rebuild a payload from its wire/persisted dict form."""
    if not isinstance(data, dict):
        raise PayloadError(f"Payload must be an object, got {type(data).__name__}")

    kind = data.get("type") or data.get("kind")
    if kind == MESSAGE_KIND:
        return MessagePayload(
            character=data.get("character") or "",
            user_message=data.get("userMessage") or "",
            assistant_message=data.get("assistantMessage") or "",
            chat_id=data.get("chatId") or "",
            timestamp=data.get("timestamp") or "",
        )
    if kind == FULL_CONVERSATION_KIND:
        messages = [
            ConversationMessage(
                role=item.get("role") or "assistant",
                name=item.get("name") or "",
                content=item.get("content") or "",
                timestamp=item.get("timestamp") or "",
            )
            for item in data.get("messages") or []
        ]
        return FullConversationPayload(
            character=data.get("character") or "",
            chat_id=data.get("chatId") or "",
            messages=messages,
            timestamp=data.get("timestamp") or "",
        )
    raise PayloadError(f"Unknown payload kind: {kind!r}")
