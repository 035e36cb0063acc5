import json
import logging
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import settings

logger = logging.getLogger(__name__)


class QueryCache(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl_ms: int) -> None: ...

    async def close(self) -> None: ...


class RedisQueryCache:
    """Query results as JSON in redis. Outages degrade to cache misses."""

    def __init__(self, url: str):
        self._client = redis.from_url(url)

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._client.get(key)
        except RedisError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Discarding undecodable cache entry %s: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        try:
            await self._client.psetex(key, ttl_ms, json.dumps(value))
        except RedisError as e:
            logger.warning("Cache write failed for %s: %s", key, e)

    async def close(self) -> None:
        await self._client.aclose()


class MemoryQueryCache:
    """Per-process cache with the same JSON round-trip as redis."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, raw = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        self._entries[key] = (self._clock() + ttl_ms / 1000.0, json.dumps(value))

    async def close(self) -> None:
        self._entries.clear()


@lru_cache
def get_query_cache() -> QueryCache:
    driver = settings.CACHE_DRIVER.strip().lower()
    if driver == "redis":
        return RedisQueryCache(settings.REDIS_URL)
    elif driver == "memory":
        return MemoryQueryCache()
    raise RuntimeError('Invalid CACHE_DRIVER configuration value: expected "redis" or "memory".')
