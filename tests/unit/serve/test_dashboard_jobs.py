"""Unit tests for dashboard statistics and feed jobs."""

from __future__ import annotations

import pytest

from core.constants import (
    EVENT_ACTIVITY_FEED,
    EVENT_CAMPUS_LEADERBOARD,
    EVENT_INVOLVEMENT_TOTAL,
    EVENT_NEXT_STEP,
    EVENT_SERVE_COMMIT_OWN,
    EVENT_SIGNUP_TOTAL,
    EVENT_WEEKLY,
)
from core.errors import RemoteFetchError
from ingest.cache_store import InMemoryCacheStore
from ingest.page_cache import PageCacheFetcher
from serve.dashboard_jobs import ActivityFeedJob, StatisticsJob
from tests.entry_factories import FIXED_NOW, FakeEntryApi, RecordingSink, raw_entry
from tests.fixture_paths import fixture_path
from transforms.field_schema import build_field_schema, load_field_schema

REGISTRY = load_field_schema(fixture_path("site_schema/two_sites.yaml"))


class _BrokenApi(FakeEntryApi):
    def fetch_entries(self, page_start: int, page_size: int) -> list[dict[str, str]]:
        raise RemoteFetchError("Wufoo response error: 503")


def _fetcher(api: FakeEntryApi) -> PageCacheFetcher:
    return PageCacheFetcher(source=api, cache=InMemoryCacheStore(), form_identifier="form")


def _signups() -> list[dict[str, str]]:
    return [
        raw_entry(site="Alpha", step="Serve", Field13="Parking"),
        raw_entry(site="Alpha", step="Attend"),
        raw_entry(site="Beta", step="Commit", Field22="Connect Class 9/21-10/12"),
    ]


def _run_statistics(registry=REGISTRY) -> RecordingSink:
    sink = RecordingSink()
    StatisticsJob(_fetcher(FakeEntryApi(_signups())), registry, sink, clock=lambda: FIXED_NOW).run()
    return sink


def test_statistics_job_publishes_events_in_order() -> None:
    """Widgets are refreshed in a fixed order ending with the total."""
    sink = _run_statistics()

    assert [name for name, _ in sink.events] == [
        EVENT_NEXT_STEP,
        EVENT_SERVE_COMMIT_OWN,
        EVENT_CAMPUS_LEADERBOARD,
        EVENT_SIGNUP_TOTAL,
        EVENT_WEEKLY,
        "involvement-alpha",
        "involvement-beta",
        EVENT_INVOLVEMENT_TOTAL,
    ]


def test_statistics_job_leaderboard_payload() -> None:
    """Leaderboard items carry count and involvement percent."""
    sink = _run_statistics()

    assert sink.payload(EVENT_CAMPUS_LEADERBOARD) == {
        "items": [
            {"label": "Alpha", "value": 2, "involvement": 20},
            {"label": "Beta", "value": 1, "involvement": 3},
        ]
    }


def test_statistics_job_involvement_payloads() -> None:
    """Per-campus and total involvement are published as values."""
    sink = _run_statistics()

    assert (
        sink.payload("involvement-alpha"),
        sink.payload(EVENT_INVOLVEMENT_TOTAL),
        sink.payload(EVENT_SIGNUP_TOTAL),
    ) == ({"value": 20}, {"value": 8}, {"value": 3})


def test_statistics_job_weekly_points() -> None:
    """Weekly points are x/y pairs with the current week last."""
    sink = _run_statistics()

    points = sink.payload(EVENT_WEEKLY)["points"]

    assert (len(points), points[-1]) == (7, {"x": 6, "y": 3})


def test_involvement_event_for_unknown_site_reports_zero() -> None:
    """A widget mapped to an unknown campus publishes 0."""
    registry = build_field_schema(
        {
            "version": 1,
            "identity_fields": {
                "first_name": "Field1",
                "last_name": "Field2",
                "email": "Field3",
                "phone": "Field4",
                "site": "Field106",
                "step": "Field228",
            },
            "step_labels": {"Attend": "attend"},
            "sites": {"Alpha": {"population": 10}},
            "labels": {},
            "involvement_events": {"involvement-west": "West AM"},
        }
    )

    sink = _run_statistics(registry)

    assert sink.payload("involvement-west") == {"value": 0}


def test_statistics_job_publishes_nothing_when_fetch_fails() -> None:
    """A failed fetch should raise before any event is published."""
    sink = RecordingSink()
    job = StatisticsJob(_fetcher(_BrokenApi([])), REGISTRY, sink, clock=lambda: FIXED_NOW)

    with pytest.raises(RemoteFetchError):
        job.run()

    assert sink.events == []


def test_activity_feed_job_publishes_texts_and_count() -> None:
    """Feed event holds the narrated texts and the total count."""
    sink = RecordingSink()

    feed = ActivityFeedJob(_fetcher(FakeEntryApi(_signups())), REGISTRY, sink, feed_size=2).run()

    assert sink.events == [
        (EVENT_ACTIVITY_FEED, {"texts": list(feed.texts), "count": 3})
    ] and feed.texts[-1] == (
        "From our BETA campus: J.D.'s next step is to COMMIT to a Connect Class."
    )
