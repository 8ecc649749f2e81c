"""Cache-through pagination over form entries.

This module owns the page TTL policy. Full pages are cached for hours;
the partial tail page is cached only briefly so new signups show up soon
while repeated polling stays under the remote API's daily call budget.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from core.constants import (
    ENTRIES_CACHE_KEY_PREFIX,
    FIELDS_CACHE_KEY_PREFIX,
    FIELDS_CACHE_TIME,
    FULL_PAGE_CACHE_TIME,
    PAGE_SIZE,
    PARTIAL_PAGE_CACHE_TIME,
)
from core.logging_config import get_logger
from core.types import FormField, RawRecord
from ingest.cache_store import CacheStore
from ingest.compression import compress_payload, decompress_payload

_LOGGER = get_logger(__name__)


class EntrySource(Protocol):
    """Remote side of the fetcher."""

    def fetch_entries(self, page_start: int, page_size: int) -> list[dict[str, str]]:
        ...

    def fetch_fields(self) -> list[dict[str, Any]]:
        ...


class PageCacheFetcher:
    """Fetch fixed-size entry pages through an expiring cache."""

    def __init__(
        self,
        source: EntrySource,
        cache: CacheStore,
        form_identifier: str,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._source = source
        self._cache = cache
        self._form_identifier = form_identifier
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    def get_page(self, page_number: int) -> list[RawRecord]:
        """Return one page of entries, from cache when possible.

        Args:
            page_number: Zero-based page index.

        Returns:
            Up to ``page_size`` records in ascending id order.

        Raises:
            RemoteFetchError: If the page is not cached and the API call fails.
        """
        key = self.page_cache_key(page_number)
        cached_entries = self._read_cached_page(key)
        if cached_entries is not None:
            _LOGGER.debug("page_cache_hit", page_number=page_number, size=len(cached_entries))
            return _to_records(cached_entries, page_number)
        entries = self._source.fetch_entries(
            page_start=page_number * self._page_size,
            page_size=self._page_size,
        )
        ttl_seconds = self.ttl_for_page(len(entries))
        data = json.dumps(entries).encode("utf-8")
        self._cache.set_with_expiry(key, compress_payload(data), ttl_seconds)
        _LOGGER.info(
            "page_fetched",
            page_number=page_number,
            size=len(entries),
            ttl_seconds=ttl_seconds,
        )
        return _to_records(entries, page_number)

    def get_all_entries(self) -> list[RawRecord]:
        """Return every known entry by walking pages until a partial one.

        Raises:
            RemoteFetchError: If any uncached page cannot be fetched.
        """
        records: list[RawRecord] = []
        page_number = 0
        while True:
            page_records = self.get_page(page_number)
            records.extend(page_records)
            if len(page_records) < self._page_size:
                break
            page_number += 1
        return records

    def get_fields(self) -> list[FormField]:
        """Return the form field definitions, cached for a few hours.

        Raises:
            RemoteFetchError: If not cached and the API call fails.
        """
        key = f"{FIELDS_CACHE_KEY_PREFIX}{self._form_identifier}"
        cached_value = self._cache.get(key)
        raw_fields = _parse_cached_fields(key, cached_value)
        if raw_fields is None:
            raw_fields = self._source.fetch_fields()
            data = json.dumps(raw_fields).encode("utf-8")
            self._cache.set_with_expiry(key, data, FIELDS_CACHE_TIME)
        return [_to_form_field(raw_field) for raw_field in raw_fields]

    def page_cache_key(self, page_number: int) -> str:
        return f"{ENTRIES_CACHE_KEY_PREFIX}{self._form_identifier}_{page_number}"

    def ttl_for_page(self, record_count: int) -> int:
        """Return the cache lifetime for a page holding ``record_count`` entries."""
        if record_count < self._page_size:
            return PARTIAL_PAGE_CACHE_TIME
        return FULL_PAGE_CACHE_TIME

    def _read_cached_page(self, key: str) -> list[dict[str, str]] | None:
        cached_value = self._cache.get(key)
        if cached_value is None:
            return None
        try:
            payload = json.loads(decompress_payload(cached_value).decode("utf-8"))
        except (OSError, EOFError, UnicodeDecodeError, ValueError) as error:
            _LOGGER.warning("page_cache_corrupt", cache_key=key, error=str(error))
            return None
        if not isinstance(payload, list):
            _LOGGER.warning("page_cache_corrupt", cache_key=key, error="expected JSON array")
            return None
        return [entry for entry in payload if isinstance(entry, dict)]


def _parse_cached_fields(key: str, cached_value: bytes | None) -> list[dict[str, Any]] | None:
    if cached_value is None:
        return None
    try:
        payload = json.loads(cached_value.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as error:
        _LOGGER.warning("fields_cache_corrupt", cache_key=key, error=str(error))
        return None
    if not isinstance(payload, list):
        return None
    return payload


def _to_records(entries: list[dict[str, str]], page_number: int) -> list[RawRecord]:
    return [
        RawRecord(fields=entry, page_number=page_number, ordinal=ordinal)
        for ordinal, entry in enumerate(entries)
    ]


def _to_form_field(raw_field: dict[str, Any]) -> FormField:
    return FormField(
        field_id=str(raw_field.get("ID", "")),
        title=str(raw_field.get("Title", "")),
        field_type=str(raw_field.get("Type", "")),
    )
