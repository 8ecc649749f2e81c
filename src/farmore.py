"""Public SDK surface for Farmore.

Import from here when embedding the dashboard feed in another process.
"""

from __future__ import annotations

from core.config import FarmoreConfig
from core.errors import FarmoreConfigError, FarmoreError, FarmoreSchemaError, RemoteFetchError
from core.types import ActivityFeed, AggregateSnapshot, CanonicalEntry, RawRecord
from ingest.cache_store import InMemoryCacheStore, RedisCacheStore
from ingest.page_cache import PageCacheFetcher
from serve.dashboard_sdk import FarmoreClient
from transforms.activity_feed import narrate_recent_activity
from transforms.aggregation import aggregate_entries
from transforms.entry_normalizer import normalize_entry
from transforms.field_schema import FieldSchemaRegistry, load_field_schema

__all__ = [
    "ActivityFeed",
    "AggregateSnapshot",
    "CanonicalEntry",
    "FarmoreClient",
    "FarmoreConfig",
    "FarmoreConfigError",
    "FarmoreError",
    "FarmoreSchemaError",
    "FieldSchemaRegistry",
    "InMemoryCacheStore",
    "PageCacheFetcher",
    "RawRecord",
    "RedisCacheStore",
    "RemoteFetchError",
    "aggregate_entries",
    "load_field_schema",
    "narrate_recent_activity",
    "normalize_entry",
]
