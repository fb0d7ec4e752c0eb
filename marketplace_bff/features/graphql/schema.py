"""GraphQL schema assembly.

Combines the Query and Mutation root types into a single schema with the
query shape guard installed as a validation rule. Execution errors are
logged through ``error_handler`` instead of strawberry's default logger.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import strawberry
from graphql.validation import NoSchemaIntrospectionCustomRule
from strawberry.extensions import AddValidationRules

from marketplace_bff.core.settings import get_graphql_settings
from marketplace_bff.features.graphql.error_handler import log_errors
from marketplace_bff.features.graphql.extensions import QueryShapeGuard
from marketplace_bff.features.graphql.resolvers.mutations import Mutation
from marketplace_bff.features.graphql.resolvers.queries import Query

if TYPE_CHECKING:
    from collections.abc import Callable

    from graphql import GraphQLError
    from strawberry.extensions import SchemaExtension
    from strawberry.types import ExecutionContext

    from marketplace_bff.core.settings import GraphQLSettings

logger = logging.getLogger(__name__)


class MarketplaceSchema(strawberry.Schema):
    def process_errors(
        self,
        errors: list[GraphQLError],
        execution_context: ExecutionContext | None = None,
    ) -> None:
        operation_name = execution_context.operation_name if execution_context else None
        log_errors(errors, operation_name)


def create_schema(settings: GraphQLSettings | None = None) -> MarketplaceSchema:
    """Build the schema with limits taken from ``settings``.

    Args:
        settings: GraphQL settings, defaults to the environment-loaded ones

    Returns:
        Schema ready for ``execute``
    """
    settings = settings or get_graphql_settings()
    # Factories, so each request gets its own extension instance
    extensions: list[Callable[[], SchemaExtension]] = [
        lambda: QueryShapeGuard(
            max_depth=settings.max_query_depth,
            max_complexity=settings.max_complexity,
            list_weight=settings.list_weight,
        ),
    ]
    if not settings.introspection_enabled:
        extensions.append(lambda: AddValidationRules([NoSchemaIntrospectionCustomRule]))

    schema = MarketplaceSchema(query=Query, mutation=Mutation, extensions=extensions)
    logger.info(
        "GraphQL schema created",
        extra={
            "max_query_depth": settings.max_query_depth,
            "max_complexity": settings.max_complexity,
            "introspection_enabled": settings.introspection_enabled,
        },
    )
    return schema


__all__ = ["MarketplaceSchema", "create_schema"]
