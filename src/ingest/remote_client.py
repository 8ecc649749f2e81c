"""HTTP client for the Wufoo form API.

This module wraps httpx with basic auth and a bounded timeout and
converts every non-success outcome into ``RemoteFetchError``.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.config import FarmoreConfig
from core.constants import ENTRIES_ENDPOINT, FIELDS_ENDPOINT, HTTP_OK, WUFOO_API_PATH_TEMPLATE
from core.errors import RemoteFetchError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class FormApiClient:
    """Read-only client for one form's entries and fields."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create the client.

        Args:
            base_url: Form URL ending in ``/``; endpoints resolve against it.
            api_key: Basic-auth username; the password is always empty.
            timeout_seconds: Timeout applied to connect, read, and write.
            transport: Optional httpx transport, used by tests.
        """
        self._client = httpx.Client(
            base_url=base_url,
            auth=(api_key, ""),
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: FarmoreConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> "FormApiClient":
        """Build a client for the configured account and form.

        Raises:
            FarmoreConfigError: If no API key is configured.
        """
        base_url = WUFOO_API_PATH_TEMPLATE.format(
            subdomain=config.wufoo_subdomain,
            form=config.wufoo_form,
        )
        return cls(
            base_url=base_url,
            api_key=config.require_api_key(),
            timeout_seconds=config.http_timeout_seconds,
            transport=transport,
        )

    def fetch_entries(self, page_start: int, page_size: int) -> list[dict[str, str]]:
        """Fetch one window of entries in ascending id order.

        Args:
            page_start: Zero-based offset of the first entry.
            page_size: Number of entries requested.

        Returns:
            Entry field mappings; empty when the response has no ``Entries``.

        Raises:
            RemoteFetchError: If the API does not answer with HTTP 200 JSON.
        """
        payload = self._get_json(
            ENTRIES_ENDPOINT,
            params={"pageSize": page_size, "pageStart": page_start},
        )
        raw_entries = payload.get("Entries") or []
        if not isinstance(raw_entries, list):
            raise RemoteFetchError(
                f"Wufoo response error: 'Entries' is {type(raw_entries).__name__}, expected list."
            )
        return [_stringify_entry(entry) for entry in raw_entries if isinstance(entry, dict)]

    def fetch_fields(self) -> list[dict[str, Any]]:
        """Fetch the form's field definitions.

        Raises:
            RemoteFetchError: If the API does not answer with HTTP 200 JSON.
        """
        payload = self._get_json(FIELDS_ENDPOINT)
        raw_fields = payload.get("Fields") or []
        if not isinstance(raw_fields, list):
            raise RemoteFetchError(
                f"Wufoo response error: 'Fields' is {type(raw_fields).__name__}, expected list."
            )
        return [field for field in raw_fields if isinstance(field, dict)]

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "FormApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get_json(
        self,
        endpoint: str,
        params: dict[str, int] | None = None,
    ) -> dict[str, Any]:
        try:
            response = self._client.get(endpoint, params=params)
        except httpx.HTTPError as error:
            raise RemoteFetchError(
                f"Wufoo request to {endpoint} failed: {error}. Will retry on the next cycle."
            ) from error
        if response.status_code != HTTP_OK:
            _LOGGER.warning(
                "remote_fetch_rejected",
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise RemoteFetchError(f"Wufoo response error: {response.status_code}")
        try:
            payload = response.json()
        except ValueError as error:
            raise RemoteFetchError(
                f"Wufoo response error: {endpoint} returned a non-JSON body."
            ) from error
        if not isinstance(payload, dict):
            raise RemoteFetchError(
                f"Wufoo response error: {endpoint} returned {type(payload).__name__}, expected object."
            )
        return payload


def _stringify_entry(entry: dict[Any, Any]) -> dict[str, str]:
    """Coerce an entry into plain string keys and values."""
    return {
        str(key): "" if value is None else str(value)
        for key, value in entry.items()
    }
