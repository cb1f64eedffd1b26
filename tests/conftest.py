"""Shared pytest fixtures for chat-sync tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from chat_sync.exceptions import EndpointUnreachableError
from chat_sync.hook import SyncHook
from chat_sync.host import HostContext
from chat_sync.models import HistoryMessage
from chat_sync.scheduler import Scheduler, TimerHandle
from chat_sync.state import SyncState
from chat_sync.storage import InMemoryKeyValueStore
from chat_sync.transport import TransportResponse


class FakeHost(HostContext):
    """In-memory host whose transcript tests mutate directly."""

    def __init__(self, conversation_id: str = "chat-a", character: str = "Aria") -> None:
        self.history: list[HistoryMessage] = []
        self.conversation_id = conversation_id
        self.character = character
        self.turn_handlers: list[Callable[[int], None]] = []
        self.switch_handlers: list[Callable[[], None]] = []
        self.notifications: list[tuple[str, str]] = []
        self.ready = True

    def on_turn_completed(self, handler: Callable[[int], None]) -> None:
        self.turn_handlers.append(handler)

    def on_conversation_switched(self, handler: Callable[[], None]) -> None:
        self.switch_handlers.append(handler)

    def get_conversation_history(self) -> list[HistoryMessage]:
        return list(self.history)

    def get_active_character_name(self) -> str:
        return self.character

    def get_active_conversation_id(self) -> str:
        return self.conversation_id

    def notify(self, kind, message, **opts) -> None:
        self.notifications.append((kind, message))

    def is_ready(self) -> bool:
        return self.ready

    def exchange(self, user_text: str, reply_text: str) -> int:
        """Append a user message and a reply; return the reply's index."""
        self.history.append(HistoryMessage("user", user_text, "2026-01-01T00:00:00Z"))
        self.history.append(HistoryMessage("assistant", reply_text, "2026-01-01T00:00:01Z"))
        return len(self.history) - 1

    def complete_turn(self, user_text: str, reply_text: str) -> None:
        index = self.exchange(user_text, reply_text)
        for handler in self.turn_handlers:
            handler(index)

    def switch_to(self, conversation_id: str, history: list[HistoryMessage] | None = None) -> None:
        self.conversation_id = conversation_id
        self.history = list(history or [])
        for handler in self.switch_handlers:
            handler()


class ManualTimerHandle(TimerHandle):
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired


class ManualScheduler(Scheduler):
    """Virtual clock; callbacks fire only when ``advance`` passes their due time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[ManualTimerHandle] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        handle = ManualTimerHandle(self.now + delay_seconds, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualTimerHandle]:
        return [h for h in self.handles if h.active]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for handle in sorted(self.pending, key=lambda h: h.due):
            if handle.active and handle.due <= self.now:
                handle.fired = True
                handle.callback()


class ScriptedClient:
    """Stands in for SyncClient; answers from a script of statuses or errors."""

    def __init__(self, script: list | None = None, default: int | Exception = 200) -> None:
        self.script = list(script or [])
        self.default = default
        self.sent: list[dict] = []
        self.attempts: list[dict] = []
        self.endpoint_url = ""
        self.timeout = None
        self.closed = False

    def post(self, body: dict) -> TransportResponse:
        self.attempts.append(body)
        outcome = self.script.pop(0) if self.script else self.default
        if isinstance(outcome, Exception):
            raise outcome
        if 200 <= outcome < 300:
            self.sent.append(body)
        return TransportResponse(status_code=outcome)

    def close(self) -> None:
        self.closed = True

    def go_offline(self) -> None:
        self.default = EndpointUnreachableError("Cannot connect")

    def go_online(self) -> None:
        self.default = 200


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def state(store: InMemoryKeyValueStore) -> SyncState:
    return SyncState.load(store)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def client() -> ScriptedClient:
    return ScriptedClient()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def hook(host: FakeHost, store: InMemoryKeyValueStore, client: ScriptedClient, scheduler: ManualScheduler) -> SyncHook:
    sync_hook = SyncHook(host, store, client=client, scheduler=scheduler)
    sync_hook.start()
    return sync_hook


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    return tmp_path / "chat_sync.db"
