"""Application cache backed by Redis."""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from src.config import settings
from src.modules.organization.constants import CACHE_PREFIX

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AppCache:
    """Redis-backed JSON cache with a shared key prefix.

    Values must be JSON-serializable; they come back as plain JSON types
    (lists, dicts, strings, numbers).
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self._redis = redis_client

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{CACHE_PREFIX}:{key}"

    async def get(self, key: str) -> Any | None:
        client = await self._get_redis()
        raw = await client.get(self._make_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Set a cached value with a TTL (in seconds)."""
        client = await self._get_redis()
        await client.set(self._make_key(key), json.dumps(value, default=str), ex=ttl)

    async def forget(self, key: str) -> None:
        client = await self._get_redis()
        await client.delete(self._make_key(key))

    async def remember(
        self,
        key: str,
        ttl: int,
        factory: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached value if present, otherwise compute, cache, and return it.

        Args:
            key: Cache key (the shared prefix is added here).
            ttl: Time-to-live in seconds.
            factory: Async callable that produces the value on a miss.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        await self.set(key, value, ttl=ttl)
        logger.debug("Cached %s for %ds", key, ttl)
        return value
