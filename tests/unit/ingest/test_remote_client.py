"""Unit tests for the Wufoo HTTP client."""

from __future__ import annotations

import base64

import httpx
import pytest

from core.errors import RemoteFetchError
from ingest.remote_client import FormApiClient
from tests.entry_factories import raw_entry, wufoo_transport

_BASE_URL = "https://example.wufoo.com/api/v3/forms/far-more-involve/"


def _client(transport: httpx.BaseTransport) -> FormApiClient:
    return FormApiClient(_BASE_URL, api_key="KEY-123", timeout_seconds=5.0, transport=transport)


def test_fetch_entries_requests_window_with_basic_auth() -> None:
    """Entries should be requested by pageStart/pageSize with key-only basic auth."""
    requests: list[httpx.Request] = []
    entries = [raw_entry(first_name=f"n{index}") for index in range(5)]
    client = _client(wufoo_transport(entries, requests))

    fetched = client.fetch_entries(page_start=2, page_size=2)
    request = requests[0]
    expected_auth = "Basic " + base64.b64encode(b"KEY-123:").decode("ascii")

    assert (
        [entry["Field1"] for entry in fetched] == ["n2", "n3"]
        and request.url.path.endswith("/far-more-involve/entries.json")
        and request.url.params["pageStart"] == "2"
        and request.url.params["pageSize"] == "2"
        and request.headers["Authorization"] == expected_auth
    )


def test_fetch_entries_treats_missing_entries_as_empty() -> None:
    """A success body without Entries should yield an empty page."""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))

    assert _client(transport).fetch_entries(page_start=0, page_size=100) == []


def test_fetch_entries_stringifies_values() -> None:
    """Non-string values should be coerced to strings, nulls to empty."""
    body = {"Entries": [{"EntryId": 7, "Field2": None}]}
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

    assert _client(transport).fetch_entries(0, 100) == [{"EntryId": "7", "Field2": ""}]


def test_fetch_entries_raises_on_non_success_status() -> None:
    """Any status other than 200 should raise RemoteFetchError."""
    requests: list[httpx.Request] = []
    client = _client(wufoo_transport([], requests, status_code=429))

    with pytest.raises(RemoteFetchError, match="429"):
        client.fetch_entries(0, 100)


def test_fetch_entries_raises_on_transport_failure() -> None:
    """Timeouts and connection errors should surface as RemoteFetchError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(RemoteFetchError):
        _client(httpx.MockTransport(handler)).fetch_entries(0, 100)


def test_fetch_entries_raises_on_non_json_body() -> None:
    """A 200 response that is not JSON should not be trusted."""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(RemoteFetchError):
        _client(transport).fetch_entries(0, 100)


def test_fetch_fields_returns_field_definitions() -> None:
    """Fields endpoint should return the Fields array."""
    requests: list[httpx.Request] = []
    client = _client(wufoo_transport([], requests))

    fields = client.fetch_fields()

    assert fields == [{"ID": "Field1", "Title": "Name"}]
