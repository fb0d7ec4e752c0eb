"""Unit tests for the failure-absorbing response cache."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from marketplace_bff.infra.cache import ResponseCache

from tests.fakes import FakeRedisBackend


def _failing_backend() -> AsyncMock:
    backend = AsyncMock()
    for operation in ("get", "set", "delete", "exists", "delete_pattern"):
        getattr(backend, operation).side_effect = ConnectionError("redis down")
    return backend


class TestDegradedMode:
    async def test_every_call_is_a_miss(self):
        cache = ResponseCache(None)

        assert cache.degraded is True
        assert await cache.get("k") is None
        assert await cache.set("k", {"a": 1}) is False
        assert await cache.invalidate("k") is False
        assert await cache.invalidate_pattern("k*") == 0
        assert await cache.exists("k") is False

    async def test_get_or_load_always_loads(self):
        cache = ResponseCache(None)
        loader = AsyncMock(return_value={"rows": []})

        assert await cache.get_or_load("k", loader) == {"rows": []}
        assert await cache.get_or_load("k", loader) == {"rows": []}
        assert loader.await_count == 2


class TestBackendFailures:
    """A broken backend costs latency, never correctness."""

    async def test_errors_are_misses(self):
        cache = ResponseCache(_failing_backend())

        assert cache.degraded is False
        assert await cache.get("k") is None
        assert await cache.set("k", 1) is False
        assert await cache.invalidate("k") is False
        assert await cache.invalidate_pattern("k*") == 0
        assert await cache.exists("k") is False

    async def test_get_or_load_falls_back_to_loader(self):
        cache = ResponseCache(_failing_backend())
        loader = AsyncMock(return_value=42)

        assert await cache.get_or_load("k", loader) == 42
        loader.assert_awaited_once()

    async def test_loader_errors_propagate(self):
        cache = ResponseCache(FakeRedisBackend())
        loader = AsyncMock(side_effect=RuntimeError("store down"))

        with pytest.raises(RuntimeError, match="store down"):
            await cache.get_or_load("k", loader)


class TestWithBackend:
    async def test_keys_are_namespaced(self):
        backend = FakeRedisBackend()
        cache = ResponseCache(backend, prefix="marketplace")

        await cache.set("products:abc", {"x": 1})

        assert backend.data == {"marketplace:products:abc": {"x": 1}}
        assert await cache.get("products:abc") == {"x": 1}

    async def test_get_or_load_caches_result(self):
        cache = ResponseCache(FakeRedisBackend())
        loader = AsyncMock(return_value={"n": 1})

        await cache.get_or_load("k", loader)
        assert await cache.get_or_load("k", loader) == {"n": 1}
        loader.assert_awaited_once()

    async def test_dump_and_load_hooks(self):
        backend = FakeRedisBackend()
        cache = ResponseCache(backend)
        loader = AsyncMock(return_value=(1, 2))

        first = await cache.get_or_load("k", loader, dump=list, load=tuple)
        second = await cache.get_or_load("k", loader, dump=list, load=tuple)

        assert backend.data["k"] == [1, 2]
        assert first == second == (1, 2)
        loader.assert_awaited_once()

    async def test_undecodable_payload_is_a_miss(self):
        backend = FakeRedisBackend()
        backend.data["k"] = {"unexpected": True}
        cache = ResponseCache(backend)
        loader = AsyncMock(return_value={"rows": [], "total_count": 0})

        def load(payload):
            return payload["rows"]

        result = await cache.get_or_load("k", loader, load=load)

        assert result == {"rows": [], "total_count": 0}
        loader.assert_awaited_once()

    async def test_invalidate_pattern(self):
        backend = FakeRedisBackend()
        cache = ResponseCache(backend, prefix="m")
        await cache.set("products:a", 1)
        await cache.set("products:search:b", 2)
        await cache.set("persisted_query:c", 3)

        assert await cache.invalidate_pattern("products:*") == 2
        assert list(backend.data) == ["m:persisted_query:c"]
