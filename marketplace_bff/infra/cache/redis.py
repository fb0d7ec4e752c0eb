"""Redis cache client with connection pooling.

Values are stored as JSON strings. This client raises on every backend
failure; ``ResponseCache`` is the layer that turns failures into misses.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, cast

from redis.asyncio import ConnectionPool, Redis

from marketplace_bff.core.settings import get_redis_settings
from marketplace_bff.infra.metrics.tracking import track_cache_duration

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from marketplace_bff.core.settings import RedisSettings

logger = logging.getLogger(__name__)

CACHE_NAME = "redis"


class RedisCache:
    """Redis cache client.

    Example:
        cache = RedisCache()
        await cache.connect()
        await cache.set("key", {"data": "value"}, ttl=3600)
        value = await cache.get("key")
        await cache.disconnect()
    """

    def __init__(self, settings: RedisSettings | None = None) -> None:
        self.settings = settings or get_redis_settings()
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Open the connection pool and ping the server.

        Raises:
            redis.exceptions.ConnectionError: If Redis is unreachable.
        """
        logger.info(
            "Connecting to Redis",
            extra={"max_connections": self.settings.max_connections},
        )
        self._pool = ConnectionPool.from_url(
            self.settings.url,
            **self.settings.connection_pool_kwargs(),
        )
        self._client = Redis(connection_pool=self._pool)
        try:
            await cast("Awaitable[bool]", self._client.ping())
        except Exception:
            await self.disconnect()
            raise
        logger.info("Redis connection established successfully")

    async def disconnect(self) -> None:
        """Close the client and its pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None
        logger.info("Redis connection closed")

    @property
    def client(self) -> Redis:
        if self._client is None:
            msg = "Redis client not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    async def get(self, key: str) -> Any | None:
        """Get a JSON value; ``None`` when the key is absent."""
        start = time.perf_counter()
        raw = await self.client.get(key)
        track_cache_duration(CACHE_NAME, "get", time.perf_counter() - start)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store ``value`` as JSON, expiring after ``ttl`` seconds when given."""
        start = time.perf_counter()
        result = await self.client.set(key, json.dumps(value), ex=ttl)
        track_cache_duration(CACHE_NAME, "set", time.perf_counter() - start)
        return bool(result)

    async def delete(self, key: str) -> bool:
        start = time.perf_counter()
        result = await self.client.delete(key)
        track_cache_duration(CACHE_NAME, "delete", time.perf_counter() - start)
        return bool(result)

    async def exists(self, key: str) -> bool:
        return bool(await self.client.exists(key))

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern."""
        keys = [key async for key in self.client.scan_iter(match=pattern)]
        if not keys:
            return 0
        return int(await self.client.delete(*keys))

    async def health_check(self) -> bool:
        try:
            return bool(await cast("Awaitable[bool]", self.client.ping()))
        except Exception:
            logger.warning("Redis health check failed", exc_info=True)
            return False
