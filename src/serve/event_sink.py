"""Dashboard event sinks.

Events are fire-and-forget: a sink reports delivery problems in the log
and never raises into the job that published the event.
"""

from __future__ import annotations

from typing import Mapping, Protocol

import httpx

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class EventSink(Protocol):
    """One-way publisher of named dashboard events."""

    def publish(self, event_name: str, payload: Mapping[str, object]) -> None:
        ...


class DashboardEventSink:
    """Push events to a Dashing-style ``/widgets/<event>`` endpoint."""

    def __init__(
        self,
        dashboard_url: str,
        auth_token: str,
        timeout_seconds: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._auth_token = auth_token
        self._client = httpx.Client(
            base_url=dashboard_url.rstrip("/") + "/",
            timeout=timeout_seconds,
            transport=transport,
        )

    def publish(self, event_name: str, payload: Mapping[str, object]) -> None:
        body = {"auth_token": self._auth_token, **payload}
        try:
            response = self._client.post(f"widgets/{event_name}", json=body)
        except httpx.HTTPError as error:
            _LOGGER.warning("event_publish_failed", event_name=event_name, error=str(error))
            return
        if response.is_error:
            _LOGGER.warning(
                "event_publish_rejected",
                event_name=event_name,
                status_code=response.status_code,
            )

    def close(self) -> None:
        self._client.close()


class LoggingEventSink:
    """Write events to the structured log; used when no dashboard is configured."""

    def publish(self, event_name: str, payload: Mapping[str, object]) -> None:
        _LOGGER.info("event_published", event_name=event_name, payload=dict(payload))
