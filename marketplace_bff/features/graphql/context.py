"""GraphQL context for request-scoped dependencies.

The context is created fresh for each GraphQL request and provides:
- Identity (resolved once from the bearer token, ``None`` when anonymous)
- DataLoaders over a new batch loader registry (N+1 prevention)
- Cursor pager configured from GraphQL settings
- Response cache and entity stores (process-wide, shared)
- Correlation ID (for log correlation)

Nothing request-scoped is reachable from another request's context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from marketplace_bff.core.pagination import CursorPager
from marketplace_bff.core.settings import GraphQLSettings, get_graphql_settings
from marketplace_bff.features.graphql.dataloaders import create_dataloaders

if TYPE_CHECKING:
    from starlette.requests import Request

    from marketplace_bff.core.schemas.auth import Identity
    from marketplace_bff.features.graphql.dataloaders import DataLoaders
    from marketplace_bff.features.stores import EntityStores
    from marketplace_bff.infra.cache import ResponseCache


@dataclass
class GraphQLContext:
    """Request context for GraphQL operations.

    Example usage in resolver:
        @strawberry.field
        async def product(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> Product | None:
            record = await info.context.loaders.product(id)
            return Product.from_record(record) if record else None
    """

    stores: EntityStores
    cache: ResponseCache
    loaders: DataLoaders
    pager: CursorPager
    settings: GraphQLSettings
    identity: Identity | None = None
    correlation_id: str | None = None
    request: Request | None = field(default=None, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None


def build_context(
    stores: EntityStores,
    cache: ResponseCache,
    identity: Identity | None = None,
    *,
    settings: GraphQLSettings | None = None,
    correlation_id: str | None = None,
    request: Request | None = None,
) -> GraphQLContext:
    """Assemble a context with a fresh registry and pager.

    Called once per inbound request; contexts are never reused.
    """
    settings = settings or get_graphql_settings()
    return GraphQLContext(
        stores=stores,
        cache=cache,
        loaders=create_dataloaders(stores),
        pager=CursorPager(
            default_page_size=settings.default_page_size,
            max_page_size=settings.max_page_size,
        ),
        settings=settings,
        identity=identity,
        correlation_id=correlation_id,
        request=request,
    )


__all__ = ["GraphQLContext", "build_context"]
