"""Optional Redis read-through cache for redirect destinations.

Only ``id → destination`` is cached; visit counters always live in the
store. The cache is an accelerator, never a source of truth: every Redis
error is logged and treated as a miss, so a broken cache cannot fail a
redirect.

Flow Diagram: Redirect Lookup
==============================
::
    ┌─────────────┐
    │ get(id)     │
    └──────┬──────┘
    HIT?  │   (deleted marker counts as a miss)
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Store   │  │ Return  │
│ get()   │  │ cached  │
└────┬────┘  │ dest    │
     ▼       └─────────┘
┌─────────┐
│ fill()  │
│ SET NX  │
│ (TTL)   │
└─────────┘

Deletion
========
``invalidate()`` overwrites the key with a deleted marker for one TTL
instead of removing it. ``fill()`` only writes an empty slot, so a lookup
that read the store before a concurrent delete cannot put the deleted
destination back. Any fill that lands before the marker is overwritten by
it.

Functions:
    create_redis():  Builds the shared client from settings, or None.
"""

import logging

import redis.asyncio as redis

from qrlocal.config import Settings
from qrlocal.metrics import CACHE_LOOKUPS_TOTAL

__all__ = ["RedirectCache", "create_redis", "DELETED_MARKER"]

logger = logging.getLogger("qrlocal.cache")

KEY_PREFIX = "redirect"

# Never a valid destination: destinations are absolute URLs
DELETED_MARKER = "!deleted"


def create_redis(settings: Settings) -> redis.Redis | None:
    if not settings.REDIS_URL:
        return None
    return redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)


class RedirectCache:
    def __init__(self, client: redis.Redis | None, ttl_seconds: int):
        self._client = client
        self._ttl = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @staticmethod
    def _key(identifier: str) -> str:
        return f"{KEY_PREFIX}:{identifier}"

    async def get(self, identifier: str) -> str | None:
        if self._client is None:
            return None
        try:
            destination = await self._client.get(self._key(identifier))
        except redis.RedisError as exc:
            logger.warning(f"Cache read failed for {identifier}: {exc}")
            CACHE_LOOKUPS_TOTAL.labels(result="error").inc()
            return None
        if not destination or destination == DELETED_MARKER:
            CACHE_LOOKUPS_TOTAL.labels(result="miss").inc()
            return None
        CACHE_LOOKUPS_TOTAL.labels(result="hit").inc()
        return destination

    async def fill(self, identifier: str, destination: str) -> None:
        """Cache ``destination`` unless the key already holds a value or a deleted marker."""
        if self._client is None:
            return
        try:
            await self._client.set(self._key(identifier), destination, ex=self._ttl, nx=True)
        except redis.RedisError as exc:
            logger.warning(f"Cache write failed for {identifier}: {exc}")

    async def invalidate(self, identifier: str) -> None:
        if self._client is None:
            return
        try:
            await self._client.setex(self._key(identifier), self._ttl, DELETED_MARKER)
        except redis.RedisError as exc:
            logger.warning(f"Cache invalidation failed for {identifier}: {exc}")

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.ping()
        except redis.RedisError as exc:
            logger.error(f"Cache health check failed: {exc}")
            return False
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
