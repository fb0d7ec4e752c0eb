"""GraphQL router for FastAPI integration.

Provides the GraphQL endpoint (``GRAPHQL_PATH``, default ``/graphql``):

- ``POST`` with a JSON body ``{query, variables, operationName, extensions}``
- ``GET`` with the same members as query parameters (queries only), which
  lets persisted-query requests be served from HTTP caches

Each request resolves its persisted query, establishes the identity from the
``Authorization`` header and executes against a freshly built context.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse, Response
from graphql import GraphQLError, OperationType, get_operation_ast, parse

from marketplace_bff.core.exceptions import (
    AppException,
    MalformedRequestError,
    PersistedQueryNotFoundError,
)
# Runtime import: FastAPI resolves dependency annotations
from marketplace_bff.core.schemas.auth import Identity
from marketplace_bff.features.graphql.context import build_context
from marketplace_bff.features.graphql.error_handler import format_errors
from marketplace_bff.features.graphql.persisted_queries import resolve_operation
from marketplace_bff.infra.logging.context import set_log_context
from marketplace_bff.infra.metrics.tracking import (
    track_disconnected_request,
    track_graphql_request,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from marketplace_bff.core.settings import GraphQLSettings

logger = logging.getLogger(__name__)

# Conventional status for "client closed request"
CLIENT_CLOSED_REQUEST = 499


@dataclass(frozen=True, slots=True)
class GraphQLRequest:
    """Members of one GraphQL-over-HTTP request."""

    query: str | None
    variables: dict[str, Any] | None
    operation_name: str | None
    extensions: dict[str, Any] | None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> GraphQLRequest:
        """Validate member types.

        Raises:
            MalformedRequestError: If a member has the wrong type.
        """
        query = payload.get("query")
        variables = payload.get("variables")
        operation_name = payload.get("operationName")
        extensions = payload.get("extensions")
        if query is not None and not isinstance(query, str):
            raise MalformedRequestError("'query' must be a string")
        if variables is not None and not isinstance(variables, dict):
            raise MalformedRequestError("'variables' must be an object")
        if operation_name is not None and not isinstance(operation_name, str):
            raise MalformedRequestError("'operationName' must be a string")
        if extensions is not None and not isinstance(extensions, dict):
            raise MalformedRequestError("'extensions' must be an object")
        return cls(query, variables, operation_name, extensions)


def _decode_json_param(name: str, raw: str | None) -> Any:
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise MalformedRequestError(f"'{name}' is not valid JSON") from e


def _error_response(exc: AppException, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"errors": [{"message": exc.detail, "extensions": exc.extensions}]},
        status_code=status_code,
    )


def _is_mutation(query: str, operation_name: str | None) -> bool:
    try:
        document = parse(query)
    except GraphQLError:
        # Reported properly by execution
        return False
    operation = get_operation_ast(document, operation_name)
    return operation is not None and operation.operation == OperationType.MUTATION


def get_identity(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Identity | None:
    """Resolve the caller's identity; ``None`` when anonymous or invalid."""
    return request.app.state.token_service.resolve_identity(authorization)


async def execute_request(
    request: Request,
    gql_request: GraphQLRequest,
    identity: Identity | None,
    *,
    allow_mutations: bool = True,
) -> Response:
    """Run one GraphQL request through the resolution pipeline.

    Args:
        request: Inbound HTTP request (its app state holds the shared services)
        gql_request: Parsed GraphQL members
        identity: Caller identity, ``None`` for anonymous requests
        allow_mutations: ``False`` for GET requests

    Returns:
        JSON response with ``data`` and, if any, ``errors``
    """
    state = request.app.state
    started = time.perf_counter()
    operation_name = gql_request.operation_name
    set_log_context(
        operation_name=operation_name,
        subject_id=identity.subject_id if identity else None,
    )

    try:
        query, query_hash = await resolve_operation(
            state.persisted_queries,
            gql_request.query,
            gql_request.extensions,
        )
    except PersistedQueryNotFoundError as e:
        # Regular GraphQL error; Apollo clients retry with the full body
        track_graphql_request(operation_name, "rejected", time.perf_counter() - started)
        return _error_response(e, 200)
    except MalformedRequestError as e:
        logger.info("Malformed GraphQL request", extra={"detail": e.detail, "error_code": e.code})
        track_graphql_request(operation_name, "rejected", time.perf_counter() - started)
        return _error_response(e, e.status_code)

    if not allow_mutations and _is_mutation(query, operation_name):
        track_graphql_request(operation_name, "rejected", time.perf_counter() - started)
        return JSONResponse(
            {"errors": [{"message": "Mutations are not allowed over GET", "extensions": {"code": "BAD_REQUEST"}}]},
            status_code=405,
            headers={"Allow": "POST"},
        )

    context = build_context(
        state.stores,
        state.response_cache,
        identity,
        settings=state.graphql_settings,
        correlation_id=getattr(request.state, "correlation_id", None),
        request=request,
    )
    result = await state.schema.execute(
        query,
        variable_values=gql_request.variables,
        context_value=context,
        operation_name=operation_name,
    )
    duration = time.perf_counter() - started

    if await request.is_disconnected():
        # Issued store calls are not cancelled; only the result is dropped
        logger.info(
            "Client disconnected, discarding GraphQL result",
            extra={"operation_name": operation_name, "persisted_query": query_hash},
        )
        track_disconnected_request()
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    body: dict[str, Any] = {"data": result.data}
    if result.errors:
        body["errors"] = format_errors(result.errors, mask_internal=state.app_settings.is_production)
    track_graphql_request(operation_name, "error" if result.errors else "ok", duration)
    logger.debug(
        "GraphQL request completed",
        extra={
            "operation_name": operation_name,
            "persisted_query": query_hash,
            "duration_ms": round(duration * 1000, 2),
            "errors": len(result.errors or ()),
        },
    )
    return JSONResponse(body)


def create_graphql_router(settings: GraphQLSettings) -> APIRouter:
    """Create the router serving the GraphQL endpoint at ``settings.path``."""
    router = APIRouter(tags=["graphql"])

    @router.post(settings.path)
    async def graphql_post(
        request: Request,
        identity: Annotated[Identity | None, Depends(get_identity)],
    ) -> Response:
        try:
            payload = await request.json()
        except ValueError:
            return _error_response(MalformedRequestError("Request body is not valid JSON"), 400)
        if not isinstance(payload, dict):
            return _error_response(MalformedRequestError("Request body must be a JSON object"), 400)
        try:
            gql_request = GraphQLRequest.from_mapping(payload)
        except MalformedRequestError as e:
            return _error_response(e, e.status_code)
        return await execute_request(request, gql_request, identity)

    @router.get(settings.path)
    async def graphql_get(
        request: Request,
        identity: Annotated[Identity | None, Depends(get_identity)],
    ) -> Response:
        params = request.query_params
        try:
            gql_request = GraphQLRequest.from_mapping(
                {
                    "query": params.get("query"),
                    "variables": _decode_json_param("variables", params.get("variables")),
                    "operationName": params.get("operationName"),
                    "extensions": _decode_json_param("extensions", params.get("extensions")),
                },
            )
        except MalformedRequestError as e:
            return _error_response(e, e.status_code)
        return await execute_request(request, gql_request, identity, allow_mutations=False)

    return router


__all__ = ["GraphQLRequest", "create_graphql_router", "execute_request", "get_identity"]
