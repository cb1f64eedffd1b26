"""Cancellable one-shot timers."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable


class TimerHandle(ABC):
    """A scheduled callback that can be cancelled before it fires."""

    @abstractmethod
    def cancel(self) -> None:
        ...

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while the callback is still pending."""
        ...


class Scheduler(ABC):
    """Schedules one-shot callbacks."""

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class _ThreadingTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()

    @property
    def active(self) -> bool:
        return self._timer.is_alive() and not self._timer.finished.is_set()


class ThreadingScheduler(Scheduler):
    """Runs callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_seconds, callback)
        timer.name = "chat-sync-idle"
        timer.daemon = True
        timer.start()
        return _ThreadingTimerHandle(timer)
