"""FastAPI application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from marketplace_bff.app.lifespan import install_cache, lifespan
from marketplace_bff.app.middleware import CorrelationIDMiddleware
from marketplace_bff.app.router import setup_routers
from marketplace_bff.core.settings import (
    get_app_settings,
    get_graphql_settings,
    get_redis_settings,
)
from marketplace_bff.features.graphql.schema import create_schema
from marketplace_bff.infra.auth import TokenService
from marketplace_bff.infra.cache import ResponseCache

if TYPE_CHECKING:
    from marketplace_bff.core.settings import AppSettings, GraphQLSettings
    from marketplace_bff.features.stores import EntityStores


def create_app(
    *,
    app_settings: AppSettings | None = None,
    graphql_settings: GraphQLSettings | None = None,
    stores: EntityStores | None = None,
    cache: ResponseCache | None = None,
    token_service: TokenService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Services that need I/O (Redis, PostgreSQL) are connected in the lifespan.
    Passing ``stores`` or ``cache`` skips the corresponding startup step,
    which is how tests run the app against in-memory fakes.

    Returns:
        Configured FastAPI application instance.
    """
    app_settings = app_settings or get_app_settings()
    graphql_settings = graphql_settings or get_graphql_settings()

    app = FastAPI(
        title=app_settings.title,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    app.state.app_settings = app_settings
    app.state.graphql_settings = graphql_settings
    app.state.schema = create_schema(graphql_settings)
    app.state.token_service = token_service or TokenService()
    app.state.stores = stores
    if cache is None:
        redis_settings = get_redis_settings()
        cache = ResponseCache(None, prefix=redis_settings.key_prefix, default_ttl=redis_settings.default_ttl)
    install_cache(app, cache)

    app.add_middleware(CorrelationIDMiddleware, header_name=app_settings.request_id_header)
    setup_routers(app, graphql_settings)
    return app


__all__ = ["create_app"]
