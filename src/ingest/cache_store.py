"""Key-value cache adapters.

This module defines the small cache surface the page fetcher relies on
and provides Redis-backed and in-process implementations of it.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Protocol

import redis

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class CacheStore(Protocol):
    """Byte cache whose writes always carry an expiry."""

    def get(self, key: str) -> bytes | None:
        """Return the cached value, or None on a miss."""
        ...

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store a value and its expiry as one atomic unit."""
        ...


class RedisCacheStore:
    """Redis cache where value and TTL are written in one MULTI/EXEC."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCacheStore":
        """Create a store connected to the given Redis URL."""
        _LOGGER.info("redis_cache_configured", redis_host=redis_url.rsplit("@", 1)[-1])
        return cls(redis.Redis.from_url(redis_url))

    def get(self, key: str) -> bytes | None:
        value = self._client.get(key)
        if value is None:
            return None
        return bytes(value)

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        with self._client.pipeline(transaction=True) as pipeline:
            pipeline.set(key, value)
            pipeline.expire(key, ttl_seconds)
            pipeline.execute()


class InMemoryCacheStore:
    """Process-local cache used when no Redis URL is configured."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}

    def get(self, key: str) -> bytes | None:
        cached = self._entries.get(key)
        if cached is None:
            return None
        value, expires_at = cached
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    def ttl(self, key: str) -> float | None:
        """Return remaining seconds for a live key, else None."""
        cached = self._entries.get(key)
        if cached is None:
            return None
        remaining = cached[1] - self._clock()
        return remaining if remaining > 0 else None
