"""Application lifespan management.

Startup order:
1. Logging
2. Cache (Redis) - optional; the response cache runs degraded without it
3. Database (PostgreSQL) - builds the entity stores unless they were injected

Shutdown runs in reverse order.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from marketplace_bff.core.settings import (
    get_app_settings,
    get_db_settings,
    get_logging_settings,
    get_redis_settings,
)
from marketplace_bff.features.graphql.persisted_queries import PersistedQueryStore
from marketplace_bff.features.stores import create_sql_stores
from marketplace_bff.infra.cache import RedisCache, ResponseCache
from marketplace_bff.infra.database import close_database, init_database
from marketplace_bff.infra.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


async def _startup_cache(app: FastAPI) -> RedisCache | None:
    """Connect Redis and swap the degraded response cache for a live one."""
    if not app.state.response_cache.degraded:
        # Injected by the caller
        return None

    settings = get_redis_settings()
    if not settings.enabled:
        logger.info("Redis disabled, response cache stays degraded")
        return None

    redis_cache = RedisCache(settings)
    try:
        await redis_cache.connect()
    except (RedisError, OSError) as e:
        logger.warning(
            "Redis unreachable, response cache stays degraded",
            extra={"error": str(e)},
        )
        return None

    install_cache(
        app,
        ResponseCache(redis_cache, prefix=settings.key_prefix, default_ttl=settings.default_ttl),
    )
    return redis_cache


def _startup_database(app: FastAPI) -> bool:
    """Build SQL-backed entity stores unless stores were injected."""
    if app.state.stores is not None:
        return False

    settings = get_db_settings()
    if not settings.enabled:
        msg = "No entity stores configured: enable the database (DB_ENABLED) or inject stores"
        raise RuntimeError(msg)

    app.state.stores = create_sql_stores(init_database(settings))
    return True


def install_cache(app: FastAPI, cache: ResponseCache) -> None:
    """Make ``cache`` the response cache and the persisted query shared tier."""
    settings = app.state.graphql_settings
    app.state.response_cache = cache
    app.state.persisted_queries = (
        PersistedQueryStore(
            cache,
            capacity=settings.persisted_query_local_capacity,
            ttl=settings.persisted_query_ttl,
            verify_hash=settings.persisted_query_verify_hash,
        )
        if settings.persisted_queries_enabled
        else None
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start and stop the services the GraphQL pipeline depends on."""
    app_settings = get_app_settings()
    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={"service": app_settings.title, "environment": app_settings.environment},
    )

    redis_cache = await _startup_cache(app)
    owns_database = _startup_database(app)
    logger.info(
        "Application started",
        extra={
            "cache_degraded": app.state.response_cache.degraded,
            "persisted_queries": app.state.persisted_queries is not None,
        },
    )

    try:
        yield
    finally:
        if owns_database:
            await close_database()
        if redis_cache is not None:
            await redis_cache.disconnect()
        logger.info("Application stopped")


__all__ = ["install_cache", "lifespan"]
