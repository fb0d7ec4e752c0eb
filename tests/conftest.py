"""Pytest configuration and shared fixtures.

Organization:
    - Seed data: a small marketplace held by in-memory stores
    - GraphQL fixtures: schema and request context factory
    - Authentication fixtures: identities and a token service
    - Application fixtures: FastAPI app and HTTP client

Nothing here needs Redis or PostgreSQL; the response cache runs degraded
unless a test wires a fake backend.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("DB_ENABLED", "false")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("LOG_JSON_LOGS", "false")

from marketplace_bff.app.main import create_app
from marketplace_bff.core.schemas.auth import Identity
from marketplace_bff.core.settings import AppSettings, AuthSettings, GraphQLSettings
from marketplace_bff.features.graphql.context import GraphQLContext, build_context
from marketplace_bff.features.graphql.schema import MarketplaceSchema, create_schema
from marketplace_bff.features.orders.schemas import CartItemRecord, OrderItemRecord, OrderStatus
from marketplace_bff.features.products.schemas import ProductAttributeRecord, ProductImageRecord
from marketplace_bff.features.stores import EntityStores
from marketplace_bff.infra.auth import TokenService
from marketplace_bff.infra.cache import ResponseCache

from tests.fakes import (
    ADMIN,
    BUYER,
    EPOCH,
    OTHER,
    SELLER,
    build_stores,
    make_identity,
    make_order,
    make_product,
    make_review,
    make_user,
)


# ============================================================================
# Seed Data
# ============================================================================


@pytest.fixture
def stores() -> EntityStores:
    """In-memory marketplace.

    Active products, newest first: p1, p2, p3 (u-seller), p-other (u-other).
    p-inactive is withdrawn. p1 has two reviews averaging 4.5. The buyer has
    a pending order o1 (newest), a delivered order o2 and one cart line.
    p1 carries two attributes and two images, the second one primary.
    """
    return build_stores(
        users=[
            make_user(BUYER, "Buyer"),
            make_user(SELLER, "Seller"),
            make_user(OTHER, "Other"),
            make_user(ADMIN, "Admin", is_admin=True),
        ],
        products=[
            make_product("p1", SELLER, age=4, price=10.0),
            make_product("p2", SELLER, age=3, price=25.0, stock=1),
            make_product("p3", SELLER, age=2, price=40.0, stock=0),
            make_product("p-other", OTHER, age=1, price=5.0, category="games"),
            make_product("p-inactive", SELLER, age=0, is_active=False),
        ],
        reviews=[
            make_review("r1", "p1", BUYER, 5, age=1),
            make_review("r2", "p1", OTHER, 4, age=2),
        ],
        orders=[
            make_order("o1", BUYER, total=20.0, age=2),
            make_order("o2", BUYER, status=OrderStatus.DELIVERED, total=25.0, age=1),
            make_order("o3", OTHER, age=0),
        ],
        items=[
            OrderItemRecord(id="oi1", order_id="o1", product_id="p1", quantity=2, unit_price=10.0),
            OrderItemRecord(id="oi2", order_id="o2", product_id="p2", quantity=1, unit_price=25.0),
        ],
        cart=[
            CartItemRecord(id="c1", user_id=BUYER, product_id="p2", quantity=1, created_at=EPOCH),
            CartItemRecord(id="c2", user_id=OTHER, product_id="p1", quantity=1, created_at=EPOCH),
        ],
        attributes=[
            ProductAttributeRecord(id="a1", product_id="p1", name="size", value="L"),
            ProductAttributeRecord(id="a2", product_id="p1", name="colour", value="red"),
        ],
        images=[
            ProductImageRecord(id="i1", product_id="p1", url="https://img.test/p1-side.jpg", sort_order=1),
            ProductImageRecord(
                id="i2",
                product_id="p1",
                url="https://img.test/p1-front.jpg",
                alt_text="Front",
                is_primary=True,
            ),
        ],
    )


@pytest.fixture
def cache() -> ResponseCache:
    """Response cache without a backend (degraded mode)."""
    return ResponseCache(None, prefix="test")


# ============================================================================
# Authentication Fixtures
# ============================================================================


@pytest.fixture
def buyer() -> Identity:
    return make_identity(BUYER)


@pytest.fixture
def seller() -> Identity:
    return make_identity(SELLER)


@pytest.fixture
def other() -> Identity:
    return make_identity(OTHER)


@pytest.fixture
def admin() -> Identity:
    return make_identity(ADMIN, privileged=True)


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(jwt_secret=SecretStr("test-secret"))


@pytest.fixture
def token_service(auth_settings: AuthSettings) -> TokenService:
    return TokenService(auth_settings)


# ============================================================================
# GraphQL Fixtures
# ============================================================================


@pytest.fixture
def graphql_settings() -> GraphQLSettings:
    return GraphQLSettings()


@pytest.fixture
def schema(graphql_settings: GraphQLSettings) -> MarketplaceSchema:
    return create_schema(graphql_settings)


@pytest.fixture
def make_context(
    stores: EntityStores,
    cache: ResponseCache,
    graphql_settings: GraphQLSettings,
) -> Callable[..., GraphQLContext]:
    """Factory building a fresh request context, as the endpoint does per request.

    Example:
        async def test_me(schema, make_context, buyer):
            result = await schema.execute("{ me { id } }", context_value=make_context(buyer))
    """

    def _make(identity: Identity | None = None) -> GraphQLContext:
        return build_context(stores, cache, identity, settings=graphql_settings)

    return _make


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(environment="test")


@pytest.fixture
def app(
    app_settings: AppSettings,
    graphql_settings: GraphQLSettings,
    stores: EntityStores,
    token_service: TokenService,
):
    """FastAPI application wired to the in-memory stores."""
    return create_app(
        app_settings=app_settings,
        graphql_settings=graphql_settings,
        stores=stores,
        token_service=token_service,
    )


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for the application.

    Example:
        async def test_health_check(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
