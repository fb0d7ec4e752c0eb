"""Tests for GraphQL query resolvers."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from marketplace_bff.features.graphql.context import build_context

from tests.fakes import FakeUserStore
from tests.graphql.conftest import (
    ORDER_QUERY,
    PRODUCT_QUERY,
    PRODUCTS_QUERY,
    SEARCH_QUERY,
    error_codes,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from marketplace_bff.core.schemas.auth import Identity
    from marketplace_bff.core.settings import GraphQLSettings
    from marketplace_bff.features.graphql.context import GraphQLContext
    from marketplace_bff.features.graphql.schema import MarketplaceSchema
    from marketplace_bff.features.stores import EntityStores
    from marketplace_bff.infra.cache import ResponseCache


class UnreachableUserStore(FakeUserStore):
    async def find_by_ids(self, user_ids):
        self.calls.append(("find_by_ids", list(user_ids)))
        raise ConnectionError("user service down")


# ──────────────────────────────────────────────────────────────
# Products
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_product_query_resolves_relationships(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    """Test that a product resolves its seller and review aggregates."""
    result = await schema.execute(PRODUCT_QUERY, variable_values={"id": "p1"}, context_value=make_context())

    assert result.errors is None
    product = result.data["product"]
    assert product["name"] == "Product p1"
    assert product["averageRating"] == 4.5
    assert product["reviewCount"] == 2
    assert product["seller"] == {"id": "u-seller", "name": "Seller", "email": None}


@pytest.mark.asyncio
async def test_product_query_returns_none_for_missing(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    result = await schema.execute(PRODUCT_QUERY, variable_values={"id": "missing"}, context_value=make_context())

    assert result.errors is None
    assert result.data == {"product": None}


@pytest.mark.asyncio
async def test_seller_email_visible_to_seller(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    seller: Identity,
) -> None:
    result = await schema.execute(PRODUCT_QUERY, variable_values={"id": "p1"}, context_value=make_context(seller))

    assert result.data["product"]["seller"]["email"] == "u-seller@example.com"


@pytest.mark.asyncio
async def test_products_query_batches_sellers(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    stores: EntityStores,
) -> None:
    """Test that sellers of a listing page are fetched in one store call."""
    result = await schema.execute(PRODUCTS_QUERY, context_value=make_context())

    assert result.errors is None
    connection = result.data["products"]
    assert connection["totalCount"] == 4
    assert [edge["node"]["id"] for edge in connection["edges"]] == ["p1", "p2", "p3", "p-other"]
    assert stores.users.calls == [("find_by_ids", ["u-seller", "u-other"])]
    assert stores.products.search_calls == 1
    # Listing rows prime the product loader
    assert stores.products.calls == []


@pytest.mark.asyncio
async def test_products_query_paginates(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    """Test that following endCursor walks the listing without gaps."""
    first = await schema.execute(PRODUCTS_QUERY, variable_values={"limit": 3}, context_value=make_context())
    page = first.data["products"]
    assert page["pageInfo"]["hasNextPage"] is True
    assert page["pageInfo"]["hasPreviousPage"] is False

    second = await schema.execute(
        PRODUCTS_QUERY,
        variable_values={"limit": 3, "after": page["pageInfo"]["endCursor"]},
        context_value=make_context(),
    )

    assert second.errors is None
    next_page = second.data["products"]
    assert [edge["node"]["id"] for edge in next_page["edges"]] == ["p-other"]
    assert next_page["pageInfo"]["hasNextPage"] is False
    assert next_page["pageInfo"]["hasPreviousPage"] is True
    assert next_page["totalCount"] == 4


@pytest.mark.asyncio
async def test_products_query_filters(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    result = await schema.execute(
        PRODUCTS_QUERY,
        variable_values={"filter": {"category": "games"}},
        context_value=make_context(),
    )

    assert result.errors is None
    assert [edge["node"]["id"] for edge in result.data["products"]["edges"]] == ["p-other"]


@pytest.mark.asyncio
async def test_products_query_rejects_cursor_from_other_filter(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    """Test that a cursor replayed with a different filter is an error, not a silent skip."""
    first = await schema.execute(PRODUCTS_QUERY, variable_values={"limit": 1}, context_value=make_context())
    cursor = first.data["products"]["pageInfo"]["endCursor"]

    result = await schema.execute(
        PRODUCTS_QUERY,
        variable_values={"limit": 1, "after": cursor, "filter": {"inStock": True}},
        context_value=make_context(),
    )

    assert error_codes(result) == ["INVALID_CURSOR"]
    assert result.data is None


@pytest.mark.asyncio
async def test_products_query_rejects_garbage_cursor(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    result = await schema.execute(
        PRODUCTS_QUERY,
        variable_values={"after": "definitely-not-a-cursor"},
        context_value=make_context(),
    )

    assert error_codes(result) == ["INVALID_CURSOR"]


@pytest.mark.asyncio
async def test_products_query_invalid_price_range(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    result = await schema.execute(
        PRODUCTS_QUERY,
        variable_values={"filter": {"minPrice": 50, "maxPrice": 10}},
        context_value=make_context(),
    )

    assert error_codes(result) == ["VALIDATION_ERROR"]


@pytest.mark.asyncio
async def test_search_products(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    result = await schema.execute(SEARCH_QUERY, variable_values={"q": "other"}, context_value=make_context())

    assert result.errors is None
    assert result.data["searchProducts"]["totalCount"] == 1
    assert result.data["searchProducts"]["edges"] == [{"node": {"id": "p-other"}}]


@pytest.mark.asyncio
async def test_search_products_requires_term(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    stores: EntityStores,
) -> None:
    result = await schema.execute(SEARCH_QUERY, variable_values={"q": "   "}, context_value=make_context())

    assert error_codes(result) == ["VALIDATION_ERROR"]
    assert stores.products.search_calls == 0


@pytest.mark.asyncio
async def test_search_cursor_not_valid_for_listing(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    first = await schema.execute(PRODUCTS_QUERY, variable_values={"limit": 1}, context_value=make_context())
    cursor = first.data["products"]["pageInfo"]["endCursor"]

    result = await schema.execute(
        SEARCH_QUERY,
        variable_values={"q": "product", "after": cursor},
        context_value=make_context(),
    )

    assert error_codes(result) == ["INVALID_CURSOR"]


@pytest.mark.asyncio
async def test_seller_listing_hides_inactive_products_from_others(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    seller: Identity,
) -> None:
    query = '{ product(id: "p1") { seller { products { totalCount } } } }'

    anonymous = await schema.execute(query, context_value=make_context())
    owner = await schema.execute(query, context_value=make_context(seller))

    assert anonymous.data["product"]["seller"]["products"]["totalCount"] == 3
    assert owner.data["product"]["seller"]["products"]["totalCount"] == 4


@pytest.mark.asyncio
async def test_reviews_connection(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    query = '{ product(id: "p1") { reviews(limit: 1) { totalCount edges { node { rating author { name } } } } } }'

    result = await schema.execute(query, context_value=make_context())

    assert result.errors is None
    reviews = result.data["product"]["reviews"]
    assert reviews["totalCount"] == 2
    assert reviews["edges"] == [{"node": {"rating": 4, "author": {"name": "Other"}}}]


@pytest.mark.asyncio
async def test_upstream_failure_is_partial(
    schema: MarketplaceSchema,
    stores: EntityStores,
    cache: ResponseCache,
    graphql_settings: GraphQLSettings,
) -> None:
    """Test that a failed seller batch nulls every seller with the same error."""
    broken = UnreachableUserStore()
    context = build_context(replace(stores, users=broken), cache, settings=graphql_settings)

    result = await schema.execute(PRODUCTS_QUERY, context_value=context)

    assert broken.calls == [("find_by_ids", ["u-seller", "u-other"])]
    assert [edge["node"]["seller"] for edge in result.data["products"]["edges"]] == [None] * 4
    assert error_codes(result) == ["UPSTREAM_UNAVAILABLE"] * 4
    assert len({id(error.original_error) for error in result.errors}) == 1


# ──────────────────────────────────────────────────────────────
# Accounts
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_me_requires_authentication(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    result = await schema.execute("{ me { id } }", context_value=make_context())

    assert result.data == {"me": None}
    assert error_codes(result) == ["UNAUTHENTICATED"]


@pytest.mark.asyncio
async def test_me_returns_own_account(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    buyer: Identity,
) -> None:
    result = await schema.execute("{ me { id name email } }", context_value=make_context(buyer))

    assert result.errors is None
    assert result.data["me"] == {"id": "u-buyer", "name": "Buyer", "email": "u-buyer@example.com"}


@pytest.mark.asyncio
async def test_user_query_owner_or_admin(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    buyer: Identity,
    admin: Identity,
) -> None:
    query = '{ user(id: "u-seller") { id email } }'

    as_buyer = await schema.execute(query, context_value=make_context(buyer))
    as_admin = await schema.execute(query, context_value=make_context(admin))

    assert error_codes(as_buyer) == ["FORBIDDEN"]
    assert as_buyer.data == {"user": None}
    assert as_admin.data == {"user": {"id": "u-seller", "email": "u-seller@example.com"}}


# ──────────────────────────────────────────────────────────────
# Orders and cart
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_order_query_for_owner(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    buyer: Identity,
) -> None:
    result = await schema.execute(ORDER_QUERY, variable_values={"id": "o1"}, context_value=make_context(buyer))

    assert result.errors is None
    order = result.data["order"]
    assert order["status"] == "PENDING"
    assert order["customer"] == {"id": "u-buyer"}
    assert order["items"] == [{"quantity": 2, "subtotal": 20.0, "product": {"name": "Product p1"}}]


@pytest.mark.asyncio
async def test_order_query_forbidden_for_other_user(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    buyer: Identity,
    stores: EntityStores,
) -> None:
    result = await schema.execute(ORDER_QUERY, variable_values={"id": "o3"}, context_value=make_context(buyer))

    assert error_codes(result) == ["FORBIDDEN"]
    assert result.data == {"order": None}
    assert stores.orders.calls == [("find_by_ids", ["o3"])]


@pytest.mark.asyncio
async def test_order_query_requires_authentication(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    stores: EntityStores,
) -> None:
    result = await schema.execute(ORDER_QUERY, variable_values={"id": "o1"}, context_value=make_context())

    assert error_codes(result) == ["UNAUTHENTICATED"]
    assert stores.orders.calls == []


@pytest.mark.asyncio
async def test_order_query_admin_sees_any_order(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    admin: Identity,
) -> None:
    result = await schema.execute(ORDER_QUERY, variable_values={"id": "o3"}, context_value=make_context(admin))

    assert result.errors is None
    assert result.data["order"]["customer"] == {"id": "u-other"}


@pytest.mark.asyncio
async def test_my_orders(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    buyer: Identity,
) -> None:
    query = "{ myOrders(limit: 1) { totalCount edges { node { id } } pageInfo { hasNextPage } } }"

    result = await schema.execute(query, context_value=make_context(buyer))

    assert result.errors is None
    assert result.data["myOrders"] == {
        "totalCount": 2,
        "edges": [{"node": {"id": "o1"}}],
        "pageInfo": {"hasNextPage": True},
    }


@pytest.mark.asyncio
async def test_user_orders_owner_only(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    seller: Identity,
) -> None:
    query = '{ product(id: "p1") { reviews { edges { node { author { orders { totalCount } } } } } } }'

    result = await schema.execute(query, context_value=make_context(seller))

    assert set(error_codes(result)) == {"FORBIDDEN"}


@pytest.mark.asyncio
async def test_cart(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    buyer: Identity,
) -> None:
    result = await schema.execute(
        "{ cart { id quantity product { id } } }",
        context_value=make_context(buyer),
    )

    assert result.errors is None
    assert result.data["cart"] == [{"id": "c1", "quantity": 1, "product": {"id": "p2"}}]


# ──────────────────────────────────────────────────────────────
# Product attributes and images
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_product_attributes_and_images(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
) -> None:
    """Test that attributes sort by name and the primary image leads."""
    query = """
        query Product($id: ID!) {
            product(id: $id) {
                attributes { name value }
                images { url altText isPrimary sortOrder }
            }
        }
    """

    result = await schema.execute(query, variable_values={"id": "p1"}, context_value=make_context())

    assert result.errors is None
    product = result.data["product"]
    assert product["attributes"] == [
        {"name": "colour", "value": "red"},
        {"name": "size", "value": "L"},
    ]
    assert [image["url"] for image in product["images"]] == [
        "https://img.test/p1-front.jpg",
        "https://img.test/p1-side.jpg",
    ]
    assert product["images"][0]["isPrimary"] is True


@pytest.mark.asyncio
async def test_listing_batches_attribute_and_image_loads(
    schema: MarketplaceSchema,
    make_context: Callable[..., GraphQLContext],
    stores: EntityStores,
) -> None:
    """Test that a page of products costs one fetch per relationship."""
    query = "{ products { edges { node { id attributes { name } images { url } } } } }"

    result = await schema.execute(query, context_value=make_context())

    assert result.errors is None
    nodes = [edge["node"] for edge in result.data["products"]["edges"]]
    assert [node["id"] for node in nodes] == ["p1", "p2", "p3", "p-other"]
    assert nodes[1] == {"id": "p2", "attributes": [], "images": []}
    fetches = {
        name: sorted(keys)
        for name, keys in stores.products.calls
        if name in {"find_attributes_by_products", "find_images_by_products"}
    }
    assert len([call for call in stores.products.calls if call[0] == "find_attributes_by_products"]) == 1
    assert fetches == {
        "find_attributes_by_products": ["p-other", "p1", "p2", "p3"],
        "find_images_by_products": ["p-other", "p1", "p2", "p3"],
    }
