"""Router registry and setup.

Operational routes live at the root:
    GET /health  - liveness plus cache and database status
    GET /metrics - Prometheus scrape endpoint
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from marketplace_bff.features.graphql.router import create_graphql_router
from marketplace_bff.infra.database import check_database
from marketplace_bff.infra.metrics import REGISTRY

if TYPE_CHECKING:
    from fastapi import FastAPI

    from marketplace_bff.core.settings import GraphQLSettings

logger = logging.getLogger(__name__)

operations_router = APIRouter(tags=["observability"])


@operations_router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Health status.

    The service stays healthy with a degraded cache; only the stores are
    required to answer queries.
    """
    state = request.app.state
    database = await check_database()
    persisted_queries = state.persisted_queries
    return {
        "status": "ok" if state.stores is not None else "starting",
        "cache": "degraded" if state.response_cache.degraded else "connected",
        "database": "connected" if database else "unavailable",
        "persisted_queries": persisted_queries.stats() if persisted_queries else None,
    }


@operations_router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def setup_routers(app: FastAPI, graphql_settings: GraphQLSettings) -> None:
    """Register all routers with the application."""
    app.include_router(operations_router)
    app.include_router(create_graphql_router(graphql_settings))
    logger.debug("Routers registered", extra={"graphql_path": graphql_settings.path})


__all__ = ["setup_routers"]
