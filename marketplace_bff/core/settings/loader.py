"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process. In tests, clear the cache to force a reload:

    get_graphql_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .auth import AuthSettings
from .graphql import GraphQLSettings
from .logs import LoggingSettings
from .postgres import PostgresSettings
from .redis import RedisSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Get cached access token settings."""
    return AuthSettings()


@lru_cache(maxsize=1)
def get_graphql_settings() -> GraphQLSettings:
    """Get cached GraphQL settings."""
    return GraphQLSettings()


@lru_cache(maxsize=1)
def get_redis_settings() -> RedisSettings:
    """Get cached Redis settings."""
    return RedisSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> PostgresSettings:
    """Get cached database settings."""
    return PostgresSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear every cached settings instance."""
    for loader in (
        get_app_settings,
        get_auth_settings,
        get_graphql_settings,
        get_redis_settings,
        get_db_settings,
        get_logging_settings,
    ):
        loader.cache_clear()
