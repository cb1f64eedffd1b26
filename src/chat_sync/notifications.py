"""Opt-in user-visible notifications."""

from __future__ import annotations

import logging

from chat_sync.host import HostContext, NotificationKind

LOGGER = logging.getLogger(__name__)

TITLE = "Memory Sync"


class Notifier:
    """Routes notifications to the host, gated by the user's settings.

    Delivery of a notification is never required for sync to proceed.
    """

    def __init__(self, state, host: HostContext | None = None) -> None:
        self.state = state
        self.host = host

    def success(self, message: str, timeout_ms: int = 1500) -> None:
        if self.state.settings.notify_on_success:
            self._send("success", message, timeout_ms)

    def info(self, message: str, timeout_ms: int = 2000) -> None:
        if self.state.settings.notify_on_success:
            self._send("info", message, timeout_ms)

    def error(self, message: str, timeout_ms: int = 2000) -> None:
        if self.state.settings.notify_on_error:
            self._send("warning", message, timeout_ms)

    def _send(self, kind: NotificationKind, message: str, timeout_ms: int) -> None:
        if self.host is None:
            LOGGER.debug("Notification (%s): %s", kind, message)
            return
        try:
            self.host.notify(kind, message, title=TITLE, timeout_ms=timeout_ms)
        except Exception as exc:  # host UI failures must not reach sync
            LOGGER.debug("Notification failed: %s", exc)
