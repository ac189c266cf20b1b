"""
Response cache for source clients.

Redis-backed when reachable, otherwise an in-process TTL map. Cache errors
are never fatal: a failed read is a miss and a failed write is dropped.
"""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

from bioevidence.settings import PipelineSettings

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Abstract cache backend interface."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get value from cache. Returns None if not found or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set value in cache with optional TTL (seconds)."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key from cache."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""


class RedisCache(CacheBackend):
    """Redis-based cache backend."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client = None

    async def connect(self) -> None:
        """Open the connection and ping; raises if Redis is unreachable."""
        import redis.asyncio as redis

        self._client = redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        await self._client.ping()
        logger.info(f"Redis cache connected: {self.redis_url}")

    async def get(self, key: str) -> Any | None:
        if self._client is None:
            return None
        try:
            value = await self._client.get(key)
        except Exception as e:
            logger.warning(f"Redis GET error for {key}: {e}")
            return None
        return json.loads(value) if value is not None else None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._client is None:
            return
        try:
            serialized = json.dumps(value, default=str)
            if ttl:
                await self._client.setex(key, ttl, serialized)
            else:
                await self._client.set(key, serialized)
        except Exception as e:
            logger.warning(f"Redis SET error for {key}: {e}")

    async def delete(self, key: str) -> None:
        if self._client is None:
            return
        try:
            await self._client.delete(key)
        except Exception as e:
            logger.warning(f"Redis DELETE error for {key}: {e}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class MemoryCache(CacheBackend):
    """
    In-memory cache with TTL support.

    Not shared across processes; entries are evicted oldest-first once
    ``max_size`` is reached.
    """

    def __init__(self, max_size: int = 10000):
        self._cache: dict[str, tuple[Any, float | None]] = {}
        self._max_size = max_size

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() > expires_at:
            del self._cache[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if key not in self._cache and len(self._cache) >= self._max_size:
            # Remove oldest 10%
            for k in list(self._cache)[: max(1, self._max_size // 10)]:
                del self._cache[k]
        expires_at = time.monotonic() + ttl if ttl else None
        self._cache[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def close(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


async def build_cache(settings: PipelineSettings) -> CacheBackend:
    """
    Create the configured cache backend.

    Returns a connected RedisCache when configured and reachable, otherwise
    a MemoryCache.
    """
    if settings.cache_backend == "redis":
        cache = RedisCache(settings.redis_url)
        try:
            await cache.connect()
            return cache
        except Exception as e:
            logger.warning(f"Redis unavailable, falling back to memory cache: {e}")
    return MemoryCache()


def make_cache_key(connector: str, endpoint: str, params: dict | None = None) -> str:
    """
    Build a cache key from connector name, endpoint and query parameters.

    Format: connector:md5(endpoint|sorted params)
    """
    key_data = f"{endpoint}|{json.dumps(params or {}, sort_keys=True, default=str)}"
    return f"{connector}:{hashlib.md5(key_data.encode()).hexdigest()}"
