"""Persisted query management commands.

Registering ahead of deployment lets clients send hash-only requests from
their first call instead of paying the not-found round trip.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from redis.exceptions import RedisError

from marketplace_bff.cli.utils import coro, error, success
from marketplace_bff.core.settings import get_graphql_settings, get_redis_settings
from marketplace_bff.features.graphql.persisted_queries import PersistedQueryStore, compute_hash
from marketplace_bff.infra.cache import RedisCache, ResponseCache


async def _connect() -> tuple[RedisCache, PersistedQueryStore]:
    settings = get_redis_settings()
    graphql_settings = get_graphql_settings()
    redis_cache = RedisCache(settings)
    try:
        await redis_cache.connect()
    except (RedisError, OSError) as e:
        error(f"Redis unreachable at {settings.url}: {e}")
        sys.exit(1)
    cache = ResponseCache(redis_cache, prefix=settings.key_prefix, default_ttl=settings.default_ttl)
    store = PersistedQueryStore(
        cache,
        capacity=graphql_settings.persisted_query_local_capacity,
        ttl=graphql_settings.persisted_query_ttl,
    )
    return redis_cache, store


@click.group(name="queries")
def queries() -> None:
    """Persisted query management commands."""


@queries.command(name="hash")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def hash_cmd(file: Path) -> None:
    """Print the persisted query hash of FILE."""
    click.echo(compute_hash(file.read_text(encoding="utf-8")))


@queries.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@coro
async def register(file: Path) -> None:
    """Register the query in FILE in the shared persisted query tier."""
    body = file.read_text(encoding="utf-8")
    query_hash = compute_hash(body)
    redis_cache, store = await _connect()
    try:
        entry = await store.register(query_hash, body)
    finally:
        await redis_cache.disconnect()
    if not entry.shared:
        error(f"Shared tier rejected {file.name}; nothing was stored")
        sys.exit(1)
    success(f"Registered {file.name}")
    click.echo(query_hash)


@queries.command()
@click.argument("query_hash")
@coro
async def evict(query_hash: str) -> None:
    """Remove QUERY_HASH from the shared persisted query tier."""
    redis_cache, store = await _connect()
    try:
        removed = await store.evict(query_hash)
    finally:
        await redis_cache.disconnect()
    if not removed:
        error(f"No persisted query {query_hash}")
        sys.exit(1)
    success(f"Evicted {query_hash}")
