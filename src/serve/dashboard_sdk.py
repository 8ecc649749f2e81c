"""Python SDK for the signup dashboard feed.

This module wires configuration into the cache, remote client, schema
registry, event sink, and periodic jobs used by the CLI.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import httpx

from core.config import FarmoreConfig
from core.constants import ACTIVITY_FEED_JOB_INTERVAL_SECONDS, STATISTICS_JOB_INTERVAL_SECONDS
from core.logging_config import get_logger
from core.types import ActivityFeed, AggregateSnapshot, FormField
from ingest.cache_store import CacheStore, InMemoryCacheStore, RedisCacheStore
from ingest.page_cache import PageCacheFetcher
from ingest.remote_client import FormApiClient
from serve.dashboard_jobs import ActivityFeedJob, StatisticsJob, utc_now
from serve.event_sink import DashboardEventSink, EventSink, LoggingEventSink
from serve.scheduler import PeriodicScheduler, PeriodicTask
from transforms.field_schema import FieldSchemaRegistry, load_field_schema

_LOGGER = get_logger(__name__)


class FarmoreClient:
    """Primary SDK entry point for dashboard workflows."""

    def __init__(
        self,
        config: FarmoreConfig | None = None,
        cache: CacheStore | None = None,
        sink: EventSink | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            cache: Optional cache; Redis when configured, else in-memory.
            sink: Optional event sink; dashboard when configured, else log.
            transport: Optional httpx transport for the form API.
            clock: UTC clock deciding the current week of the signup chart.

        Raises:
            FarmoreConfigError: If no Wufoo API key is configured.
            FarmoreSchemaError: If the site schema document is invalid.
        """
        self._config = config or FarmoreConfig.from_env()
        self._registry = load_field_schema(self._config.site_schema_path)
        self._api_client = FormApiClient.from_config(self._config, transport=transport)
        self._fetcher = PageCacheFetcher(
            source=self._api_client,
            cache=cache or _build_cache(self._config),
            form_identifier=self._config.wufoo_form,
        )
        self._sink = sink or _build_sink(self._config)
        self._clock = clock

    @property
    def registry(self) -> FieldSchemaRegistry:
        return self._registry

    @property
    def fetcher(self) -> PageCacheFetcher:
        return self._fetcher

    def statistics_job(self) -> StatisticsJob:
        return StatisticsJob(self._fetcher, self._registry, self._sink, clock=self._clock)

    def activity_feed_job(self) -> ActivityFeedJob:
        return ActivityFeedJob(self._fetcher, self._registry, self._sink)

    def publish_statistics(self) -> AggregateSnapshot:
        """Run the statistics job once."""
        return self.statistics_job().run()

    def publish_activity_feed(self) -> ActivityFeed:
        """Run the activity feed job once."""
        return self.activity_feed_job().run()

    def fields(self) -> list[FormField]:
        """Return the form's field definitions."""
        return self._fetcher.get_fields()

    def build_scheduler(self) -> PeriodicScheduler:
        """Build the scheduler running both dashboard jobs from t=0.

        Both jobs draw on the same daily API quota, so they share one
        thread and neither ever runs concurrently with itself.
        """
        return PeriodicScheduler(
            [
                PeriodicTask(
                    name="statistics",
                    interval_seconds=STATISTICS_JOB_INTERVAL_SECONDS,
                    action=self.statistics_job().run,
                ),
                PeriodicTask(
                    name="activity_feed",
                    interval_seconds=ACTIVITY_FEED_JOB_INTERVAL_SECONDS,
                    action=self.activity_feed_job().run,
                ),
            ]
        )

    def close(self) -> None:
        self._api_client.close()
        if isinstance(self._sink, DashboardEventSink):
            self._sink.close()


def _build_cache(config: FarmoreConfig) -> CacheStore:
    if config.redis_url:
        return RedisCacheStore.from_url(config.redis_url)
    _LOGGER.warning("redis_not_configured", detail="using in-memory page cache")
    return InMemoryCacheStore()


def _build_sink(config: FarmoreConfig) -> EventSink:
    if config.dashboard_url:
        return DashboardEventSink(
            dashboard_url=config.dashboard_url,
            auth_token=config.dashboard_auth_token,
            timeout_seconds=config.http_timeout_seconds,
        )
    return LoggingEventSink()
