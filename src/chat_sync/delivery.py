"""Delivery of payloads to the sync endpoint, with offline buffering."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from chat_sync.dedup import DedupFilter
from chat_sync.exceptions import EndpointUnreachableError
from chat_sync.models import FullConversationPayload, MessagePayload, SyncPayload, now_iso
from chat_sync.notifications import Notifier
from chat_sync.transport import SyncClient

LOGGER = logging.getLogger(__name__)

PROBE_PAYLOAD = MessagePayload(
    character="Test",
    user_message="[connection test]",
    assistant_message="[OK]",
    chat_id="test",
    timestamp="",
)


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    SUPPRESSED = "suppressed"
    BUFFERED = "buffered"
    FAILED = "failed"  # not delivered and buffering is off


@dataclass
class DeliveryError:
    """Why a delivery attempt did not succeed."""

    kind: Literal["unreachable", "rejected"]
    message: str
    status_code: int | None = None


@dataclass
class FlushResult:
    flushed_count: int
    remaining_count: int


@dataclass
class DeliveryResult:
    """Outcome of a single ``deliver`` call."""

    status: DeliveryStatus
    error: DeliveryError | None = None
    flush: FlushResult | None = None

    @property
    def ok(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED


class DeliveryEngine:
    """POSTs payloads once; failures go to the offline queue, never inline retries."""

    def __init__(
        self,
        state,
        dedup: DedupFilter,
        client: SyncClient | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.state = state
        self.dedup = dedup
        self._owns_client = client is None
        self.client = client or SyncClient(state.settings.endpoint_url)
        self.notifier = notifier or Notifier(state)

    def close(self) -> None:
        """Close the HTTP session if this engine created it."""
        if self._owns_client:
            self.client.close()

    def _post(self, body: dict):
        settings = self.state.settings
        # Settings may change at runtime; the client follows them
        self.client.endpoint_url = settings.endpoint_url
        self.client.timeout = settings.request_timeout_seconds
        return self.client.post(body)

    def deliver(self, payload: SyncPayload) -> DeliveryResult:
        """Attempt one delivery. Never raises for network or HTTP failures."""
        with self.state.lock:
            if isinstance(payload, MessagePayload) and self.dedup.should_suppress(payload):
                return DeliveryResult(status=DeliveryStatus.SUPPRESSED)

            try:
                response = self._post(payload.to_dict())
            except EndpointUnreachableError as exc:
                return self._handle_failure(payload, DeliveryError("unreachable", str(exc)))

            if not response.ok:
                error = DeliveryError(
                    "rejected", f"HTTP {response.status_code}", response.status_code
                )
                return self._handle_failure(payload, error)

            self.state.settings_store.record_sync(now_iso())
            self._log_success(payload)
            flush = self.flush()
            return DeliveryResult(status=DeliveryStatus.DELIVERED, flush=flush)

    def _log_success(self, payload: SyncPayload) -> None:
        if isinstance(payload, FullConversationPayload):
            LOGGER.info(
                "Full conversation synced: %s (%d messages)",
                payload.character,
                payload.message_count,
            )
            self.notifier.info(f"Full conversation synced ({payload.message_count} messages)")
        else:
            LOGGER.info(
                "Synced message: %s | %s...", payload.character, payload.user_message[:40]
            )
            self.notifier.success("Synced")

    def _handle_failure(self, payload: SyncPayload, error: DeliveryError) -> DeliveryResult:
        LOGGER.warning("Offline or error: %s", error.message)
        status = DeliveryStatus.FAILED
        if self.state.settings.offline_buffer_enabled:
            self.state.queue.push(payload)
            status = DeliveryStatus.BUFFERED
        self.notifier.error("Offline, saved to buffer" if status is DeliveryStatus.BUFFERED else "Sync failed")
        return DeliveryResult(status=status, error=error)

    def flush(self) -> FlushResult:
        """Re-send queued payloads oldest first.

        A transport failure stops the flush and keeps the rest in order; an
        HTTP rejection keeps that item and moves on to the next.
        """
        with self.state.lock:
            items = self.state.queue.snapshot()
            if not items:
                return FlushResult(flushed_count=0, remaining_count=0)

            LOGGER.info("Flushing %d buffered payloads...", len(items))
            remaining: list[dict] = []
            flushed = 0
            for index, item in enumerate(items):
                try:
                    response = self._post(item)
                except EndpointUnreachableError as exc:
                    LOGGER.info("Still offline, stopping flush: %s", exc)
                    remaining.extend(items[index:])
                    break
                if response.ok:
                    flushed += 1
                else:
                    remaining.append(item)

            self.state.queue.replace(remaining)
            if not remaining:
                LOGGER.info("Buffer flushed completely")
                self.notifier.success(f"Re-synced {flushed} offline payloads", timeout_ms=3000)
            else:
                LOGGER.warning("%d payloads still buffered", len(remaining))
            return FlushResult(flushed_count=flushed, remaining_count=len(remaining))

    def test_connection(self) -> DeliveryResult:
        """Send a probe payload straight to the endpoint; nothing is buffered."""
        try:
            response = self._post(PROBE_PAYLOAD.to_dict())
        except EndpointUnreachableError as exc:
            return DeliveryResult(
                status=DeliveryStatus.FAILED, error=DeliveryError("unreachable", str(exc))
            )
        if not response.ok:
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                error=DeliveryError("rejected", f"HTTP {response.status_code}", response.status_code),
            )
        self.notifier.success("Connection OK")
        return DeliveryResult(status=DeliveryStatus.DELIVERED)
