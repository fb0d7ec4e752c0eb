"""Best-effort response cache.

The cache is never authoritative: every backend failure (refused connection,
timeout, undecodable payload) is logged, counted and reported as a miss, so a
broken or absent Redis costs latency, never correctness. Without a backend
the cache runs in degraded mode and every call is a no-op miss.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from marketplace_bff.infra.metrics.prometheus import cache_degraded
from marketplace_bff.infra.metrics.tracking import track_cache_error, track_cache_lookup

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .redis import RedisCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_NAME = "response"


class ResponseCache:
    """Namespaced, failure-absorbing wrapper around ``RedisCache``.

    Example:
        cache = ResponseCache(redis_cache, prefix="marketplace", default_ttl=60)
        page = await cache.get_or_load("products:abc", load_page, ttl=30)
    """

    def __init__(
        self,
        backend: RedisCache | None,
        prefix: str = "",
        default_ttl: int = 3600,
    ) -> None:
        self._backend = backend
        self._prefix = f"{prefix}:" if prefix else ""
        self.default_ttl = default_ttl
        cache_degraded.set(0 if backend is not None else 1)
        if backend is None:
            logger.warning("Response cache running in degraded mode (no backend)")

    @property
    def degraded(self) -> bool:
        return self._backend is None

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _absorb(self, operation: str, key: str) -> None:
        track_cache_error(CACHE_NAME, operation)
        logger.warning(
            "Cache %s failed, treating as miss",
            operation,
            extra={"key": key},
            exc_info=True,
        )

    async def get(self, key: str) -> Any | None:
        """Cached value or ``None`` on miss, backend error or degraded mode."""
        if self._backend is None:
            return None
        try:
            value = await self._backend.get(self._key(key))
        except Exception:
            self._absorb("get", key)
            return None
        track_cache_lookup(CACHE_NAME, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a JSON-serialisable value; ``False`` when it was not stored."""
        if self._backend is None:
            return False
        try:
            return await self._backend.set(self._key(key), value, ttl=ttl or self.default_ttl)
        except Exception:
            self._absorb("set", key)
            return False

    async def invalidate(self, key: str) -> bool:
        if self._backend is None:
            return False
        try:
            return await self._backend.delete(self._key(key))
        except Exception:
            self._absorb("delete", key)
            return False

    async def invalidate_pattern(self, pattern: str) -> int:
        """Drop every key matching a glob pattern within the namespace."""
        if self._backend is None:
            return 0
        try:
            return await self._backend.delete_pattern(self._key(pattern))
        except Exception:
            self._absorb("delete_pattern", pattern)
            return 0

    async def exists(self, key: str) -> bool:
        if self._backend is None:
            return False
        try:
            return await self._backend.exists(self._key(key))
        except Exception:
            self._absorb("exists", key)
            return False

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl: int | None = None,
        *,
        dump: Callable[[T], Any] | None = None,
        load: Callable[[Any], T] | None = None,
    ) -> T:
        """Return the cached value, or run ``loader`` and cache its result.

        Args:
            key: Cache key within the namespace.
            loader: Coroutine factory producing the authoritative value.
            ttl: Expiry in seconds, defaults to ``default_ttl``.
            dump: Converts the loaded value to JSON-compatible data.
            load: Rebuilds the value from cached data. A payload ``load``
                rejects is treated as a miss.

        Errors raised by ``loader`` propagate; cache errors never do.
        """
        cached = await self.get(key)
        if cached is not None:
            if load is None:
                return cached
            try:
                return load(cached)
            except (KeyError, TypeError, ValueError):
                self._absorb("decode", key)

        value = await loader()
        await self.set(key, dump(value) if dump else value, ttl)
        return value


__all__ = ["ResponseCache"]
