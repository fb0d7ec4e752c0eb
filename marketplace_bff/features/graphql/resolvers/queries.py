"""Query resolvers for the GraphQL API.

Provides read operations:
- me / user(id): accounts (``user`` is owner or privileged only)
- product(id), products(filter, ...), searchProducts(q, ...): catalogue
- order(id), myOrders(...), cart: the caller's purchases

Catalogue scans go through the response cache; single-entity lookups go
through the request's DataLoaders.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

import strawberry

# Runtime imports: strawberry resolves resolver annotations from module globals
from strawberry.types import Info

from marketplace_bff.core.database import SearchResult
from marketplace_bff.core.exceptions import ValidationError
from marketplace_bff.features.graphql.context import GraphQLContext
from marketplace_bff.features.graphql.permissions import (
    IsAuthenticated,
    require_identity,
    require_owner_or_privileged,
)
from marketplace_bff.features.graphql.types.base import AfterArg, LimitArg, to_connection
from marketplace_bff.features.graphql.types.inputs import ProductFilterInput
from marketplace_bff.features.graphql.types.marketplace import (
    CartItem,
    Order,
    OrderConnection,
    OrderEdge,
    Product,
    ProductConnection,
    ProductEdge,
    User,
)
from marketplace_bff.features.products.schemas import ProductFilter, ProductRecord
from marketplace_bff.infra.cache.keys import product_listing_key, product_search_key

logger = logging.getLogger(__name__)

FilterArg = Annotated[
    ProductFilterInput | None,
    strawberry.argument(name="filter", description="Listing filters"),
]
SearchTermArg = Annotated[str, strawberry.argument(description="Search text (name and description)")]


def _dump_search(result: SearchResult[ProductRecord]) -> dict[str, Any]:
    return {
        "rows": [row.model_dump(mode="json") for row in result.rows],
        "total_count": result.total_count,
    }


def _load_search(payload: dict[str, Any]) -> SearchResult[ProductRecord]:
    return SearchResult(
        rows=[ProductRecord.model_validate(row) for row in payload["rows"]],
        total_count=int(payload["total_count"]),
    )


async def _product_page(
    ctx: GraphQLContext,
    term: str | None,
    filters: ProductFilter,
    limit: int | None,
    after: str | None,
) -> ProductConnection:
    """Run a cached catalogue scan and wrap it in a connection."""
    shape = filters.model_dump(mode="json")
    if term is None:
        window = ctx.pager.window(limit=limit, after=after, namespace="products", **shape)
        key = product_listing_key(shape, window.offset, window.limit)
    else:
        window = ctx.pager.window(limit=limit, after=after, namespace="search", q=term, **shape)
        key = product_search_key(term, shape, window.offset, window.limit)

    result = await ctx.cache.get_or_load(
        key,
        lambda: ctx.stores.products.search(term, filters, window),
        ttl=ctx.settings.product_listing_ttl,
        dump=_dump_search,
        load=_load_search,
    )
    ctx.loaders.prime_products(list(result.rows))
    page = ctx.pager.page(result.rows, result.total_count, window)
    return to_connection(page, Product.from_record, ProductConnection, ProductEdge)


@strawberry.type(description="Root query type")
class Query:
    """GraphQL Query resolvers."""

    @strawberry.field(description="The authenticated user", permission_classes=[IsAuthenticated])
    async def me(self, info: Info[GraphQLContext, None]) -> User | None:
        identity = require_identity(info.context)
        record = await info.context.loaders.user(identity.subject_id)
        return User.from_record(record) if record else None

    @strawberry.field(description="Get a user by ID (self or administrators only)")
    async def user(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> User | None:
        ctx = info.context
        require_owner_or_privileged(ctx, str(id), resource="user")
        record = await ctx.loaders.user(str(id))
        return User.from_record(record) if record else None

    @strawberry.field(description="Get a single product by ID")
    async def product(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> Product | None:
        record = await info.context.loaders.product(str(id))
        return Product.from_record(record) if record else None

    @strawberry.field(description="List active products, newest first")
    async def products(
        self,
        info: Info[GraphQLContext, None],
        filter_: FilterArg = None,
        limit: LimitArg = None,
        after: AfterArg = None,
    ) -> ProductConnection:
        """List products with cursor pagination.

        Pages are cached per filter and window; cursors are bound to the
        filter they were issued for.
        """
        filters = filter_.to_pydantic() if filter_ else ProductFilter()
        return await _product_page(info.context, None, filters, limit, after)

    @strawberry.field(description="Full-text product search")
    async def search_products(
        self,
        info: Info[GraphQLContext, None],
        q: SearchTermArg,
        filter_: FilterArg = None,
        limit: LimitArg = None,
        after: AfterArg = None,
    ) -> ProductConnection:
        term = q.strip()
        if not term:
            raise ValidationError("Search term must not be empty", extra={"field": "q"})
        filters = filter_.to_pydantic() if filter_ else ProductFilter()
        return await _product_page(info.context, term, filters, limit, after)

    @strawberry.field(description="Get an order by ID (owner or administrators only)")
    async def order(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> Order | None:
        ctx = info.context
        require_identity(ctx)
        record = await ctx.loaders.order(str(id))
        if record is None:
            return None
        require_owner_or_privileged(ctx, record.user_id, resource="order")
        return Order.from_record(record)

    @strawberry.field(description="Orders of the authenticated user, newest first")
    async def my_orders(
        self,
        info: Info[GraphQLContext, None],
        limit: LimitArg = None,
        after: AfterArg = None,
    ) -> OrderConnection:
        ctx = info.context
        identity = require_identity(ctx)
        rows = await ctx.loaders.orders_by_user(identity.subject_id)
        page = ctx.pager.paginate(
            rows, limit=limit, after=after, namespace="user_orders", user_id=identity.subject_id,
        )
        return to_connection(page, Order.from_record, OrderConnection, OrderEdge)

    @strawberry.field(description="Shopping cart of the authenticated user")
    async def cart(self, info: Info[GraphQLContext, None]) -> list[CartItem]:
        ctx = info.context
        identity = require_identity(ctx)
        rows = await ctx.loaders.cart_items(identity.subject_id)
        return [CartItem.from_record(row) for row in rows]


__all__ = ["Query"]
