"""Interface to the host chat application."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Literal

from chat_sync.exceptions import HostUnavailableError
from chat_sync.models import HistoryMessage

LOGGER = logging.getLogger(__name__)

NotificationKind = Literal["success", "info", "warning", "error"]


class HostContext(ABC):
    """What the sync layer needs from the host application."""

    @abstractmethod
    def on_turn_completed(self, handler: Callable[[int], None]) -> None:
        """Register a handler called with the index of each completed reply."""
        ...

    @abstractmethod
    def on_conversation_switched(self, handler: Callable[[], None]) -> None:
        """Register a handler called when the active conversation changes."""
        ...

    @abstractmethod
    def get_conversation_history(self) -> list[HistoryMessage]:
        ...

    @abstractmethod
    def get_active_character_name(self) -> str:
        ...

    @abstractmethod
    def get_active_conversation_id(self) -> str:
        ...

    def notify(self, kind: NotificationKind, message: str, **opts: object) -> None:
        """Show an ephemeral notification. Hosts without a UI just log."""
        LOGGER.info("[%s] %s", kind, message)

    def is_ready(self) -> bool:
        return True


class TranscriptHost(HostContext):
    """Host binding over a static transcript, for replaying exported chats."""

    def __init__(
        self,
        history: list[HistoryMessage],
        character_name: str = "Unknown",
        conversation_id: str = "",
    ) -> None:
        self.history = list(history)
        self.character_name = character_name
        self.conversation_id = conversation_id
        self.turn_handlers: list[Callable[[int], None]] = []
        self.switch_handlers: list[Callable[[], None]] = []
        self.notifications: list[tuple[str, str]] = []

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptHost":
        messages = [HistoryMessage.from_dict(item) for item in data.get("messages") or []]
        return cls(
            history=messages,
            character_name=data.get("character") or "Unknown",
            conversation_id=data.get("chatId") or data.get("chat_id") or "",
        )

    def on_turn_completed(self, handler: Callable[[int], None]) -> None:
        self.turn_handlers.append(handler)

    def on_conversation_switched(self, handler: Callable[[], None]) -> None:
        self.switch_handlers.append(handler)

    def get_conversation_history(self) -> list[HistoryMessage]:
        return list(self.history)

    def get_active_character_name(self) -> str:
        return self.character_name

    def get_active_conversation_id(self) -> str:
        return self.conversation_id

    def notify(self, kind: NotificationKind, message: str, **opts: object) -> None:
        self.notifications.append((kind, message))
        super().notify(kind, message, **opts)

    def replay(self) -> int:
        """Fire a turn-completed event for every non-user, non-system entry."""
        fired = 0
        for index, message in enumerate(self.history):
            if message.is_user or message.is_system:
                continue
            for handler in self.turn_handlers:
                handler(index)
            fired += 1
        return fired


def wait_for_host(
    host: HostContext,
    poll_interval: float = 0.5,
    timeout: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Block until ``host.is_ready()``; raise HostUnavailableError past ``timeout``."""
    waited = 0.0
    while not host.is_ready():
        if timeout is not None and waited >= timeout:
            raise HostUnavailableError(f"Host not ready after {waited:.1f}s")
        if waited == 0.0:
            LOGGER.info("Waiting for host application to initialise")
        sleep(poll_interval)
        waited += poll_interval
