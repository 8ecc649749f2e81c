"""Periodic dashboard jobs.

The statistics job refreshes every chart widget from one aggregate
snapshot; the activity feed job refreshes the real-time feed widget.
Both re-read every entry each cycle through the page cache.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from core.constants import (
    ACTIVITY_FEED_SIZE,
    EVENT_ACTIVITY_FEED,
    EVENT_CAMPUS_LEADERBOARD,
    EVENT_INVOLVEMENT_TOTAL,
    EVENT_NEXT_STEP,
    EVENT_SERVE_COMMIT_OWN,
    EVENT_SIGNUP_TOTAL,
    EVENT_WEEKLY,
)
from core.logging_config import get_logger
from core.types import ActivityFeed, AggregateSnapshot
from ingest.page_cache import PageCacheFetcher
from serve.event_sink import EventSink
from transforms.activity_feed import narrate_recent_activity
from transforms.aggregation import aggregate_entries
from transforms.entry_normalizer import normalize_entries
from transforms.field_schema import FieldSchemaRegistry

_LOGGER = get_logger(__name__)

DashboardEvent = tuple[str, dict[str, object]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StatisticsJob:
    """Recompute and publish the statistics widgets."""

    def __init__(
        self,
        fetcher: PageCacheFetcher,
        registry: FieldSchemaRegistry,
        sink: EventSink,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetcher = fetcher
        self._registry = registry
        self._sink = sink
        self._clock = clock

    def run(self) -> AggregateSnapshot:
        """Run one cycle and return the published snapshot.

        Raises:
            RemoteFetchError: If entries cannot be fetched; nothing is published.
        """
        raw_records = self._fetcher.get_all_entries()
        entries = normalize_entries(raw_records, self._registry)
        snapshot = aggregate_entries(entries, self._registry, self._clock())
        events = build_statistics_events(snapshot, self._registry)
        for event_name, payload in events:
            self._sink.publish(event_name, payload)
        _LOGGER.info(
            "statistics_published",
            entry_count=snapshot.entry_count,
            event_count=len(events),
            involvement_total=snapshot.involvement_total,
        )
        return snapshot


class ActivityFeedJob:
    """Render and publish the real-time activity feed."""

    def __init__(
        self,
        fetcher: PageCacheFetcher,
        registry: FieldSchemaRegistry,
        sink: EventSink,
        feed_size: int = ACTIVITY_FEED_SIZE,
    ) -> None:
        self._fetcher = fetcher
        self._registry = registry
        self._sink = sink
        self._feed_size = feed_size

    def run(self) -> ActivityFeed:
        """Run one cycle and return the published feed.

        Raises:
            RemoteFetchError: If entries cannot be fetched; nothing is published.
        """
        raw_records = self._fetcher.get_all_entries()
        entries = normalize_entries(raw_records, self._registry)
        feed = narrate_recent_activity(entries, self._feed_size)
        event_name, payload = build_activity_feed_event(feed)
        self._sink.publish(event_name, payload)
        _LOGGER.info("activity_feed_published", text_count=len(feed.texts), entry_count=feed.count)
        return feed


def build_statistics_events(
    snapshot: AggregateSnapshot,
    registry: FieldSchemaRegistry,
) -> list[DashboardEvent]:
    """Translate a snapshot into the ordered statistics widget events.

    Args:
        snapshot: Aggregate statistics for this cycle.
        registry: Site schema holding the involvement widget map.

    Returns:
        ``(event_name, payload)`` pairs in publish order.
    """
    events: list[DashboardEvent] = [
        (
            EVENT_NEXT_STEP,
            {"value": [{"label": stat.step_label, "value": stat.count} for stat in snapshot.step_stats]},
        ),
        (
            EVENT_SERVE_COMMIT_OWN,
            {
                "items": [
                    {"label": stat.label, "value": stat.count}
                    for stat in snapshot.serve_commit_own_stats
                ]
            },
        ),
        (
            EVENT_CAMPUS_LEADERBOARD,
            {
                "items": [
                    {
                        "label": stat.site,
                        "value": stat.count,
                        "involvement": stat.involvement_percent,
                    }
                    for stat in snapshot.campus_stats
                ]
            },
        ),
        (EVENT_SIGNUP_TOTAL, {"value": snapshot.entry_count}),
        (
            EVENT_WEEKLY,
            {"points": [{"x": point.week_index, "y": point.count} for point in snapshot.weekly_points]},
        ),
    ]
    for event_name, site_key in registry.involvement_events.items():
        if registry.site(site_key) is None:
            _LOGGER.warning("involvement_site_unknown", event_name=event_name, site=site_key)
        events.append((event_name, {"value": snapshot.involvement_for(site_key)}))
    events.append((EVENT_INVOLVEMENT_TOTAL, {"value": snapshot.involvement_total}))
    return events


def build_activity_feed_event(feed: ActivityFeed) -> DashboardEvent:
    """Translate a feed into the real-time feed widget event."""
    return EVENT_ACTIVITY_FEED, {"texts": list(feed.texts), "count": feed.count}
