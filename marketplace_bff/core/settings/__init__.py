"""Modular Pydantic Settings v2 configuration.

One frozen settings class per domain, each with its own environment prefix,
loaded through LRU-cached getters:

    from marketplace_bff.core.settings import get_graphql_settings

    settings = get_graphql_settings()
    print(settings.max_query_depth)
"""

from __future__ import annotations

from .app import AppSettings
from .auth import AuthSettings
from .graphql import GraphQLSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_auth_settings,
    get_db_settings,
    get_graphql_settings,
    get_logging_settings,
    get_redis_settings,
)
from .logs import LoggingSettings
from .postgres import PostgresSettings
from .redis import RedisSettings

__all__ = [
    "AppSettings",
    "AuthSettings",
    "GraphQLSettings",
    "LoggingSettings",
    "PostgresSettings",
    "RedisSettings",
    "clear_all_caches",
    "get_app_settings",
    "get_auth_settings",
    "get_db_settings",
    "get_graphql_settings",
    "get_logging_settings",
    "get_redis_settings",
]
