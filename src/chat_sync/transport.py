"""HTTP client for the memory-ingestion endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from requests import Response
from requests.exceptions import ConnectionError, RequestException, Timeout

from chat_sync.exceptions import EndpointUnreachableError

LOGGER = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status and (diagnostic) body of a completed POST."""

    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class SyncClient:
    """Small wrapper around the sync endpoint's single POST route."""

    def __init__(
        self,
        endpoint_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self._session = session or requests.Session()

    def post(self, body: dict) -> TransportResponse:
        """POST one JSON payload. No retries; the offline queue owns those.

        Raises EndpointUnreachableError when no HTTP status was received.
        """
        try:
            response: Response = self._session.post(
                self.endpoint_url,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except Timeout:
            raise EndpointUnreachableError(f"Request to {self.endpoint_url} timed out")
        except ConnectionError:
            raise EndpointUnreachableError(f"Cannot connect to {self.endpoint_url}")
        except RequestException as exc:
            raise EndpointUnreachableError(f"Request failed: {exc}")

        text = response.text or ""
        if not response.ok:
            LOGGER.debug("Endpoint answered %s: %s", response.status_code, text[:200])
        return TransportResponse(status_code=response.status_code, body=text)

    def close(self) -> None:
        self._session.close()
