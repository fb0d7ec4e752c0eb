"""Integration tests for the GraphQL HTTP endpoint."""

from __future__ import annotations

import json
from dataclasses import replace
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient

from marketplace_bff.app.main import create_app
from marketplace_bff.core.settings import AppSettings, GraphQLSettings
from marketplace_bff.features.graphql.persisted_queries import compute_hash

from tests.fakes import FakeProductStore

if TYPE_CHECKING:
    from marketplace_bff.features.stores import EntityStores
    from marketplace_bff.infra.auth import TokenService

ME = "query Me { me { id } }"
LISTING = "query Listing { products(limit: 2) { totalCount edges { node { id } } } }"


class ExplodingProductStore(FakeProductStore):
    async def search(self, term, filters, window):
        raise RuntimeError("password=hunter2 in connection string")


def _apq(query_hash: str) -> dict:
    return {"persistedQuery": {"version": 1, "sha256Hash": query_hash}}


# ──────────────────────────────────────────────────────────────
# Requests
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_post_query(client: AsyncClient) -> None:
    response = await client.post("/graphql", json={"query": LISTING})

    assert response.status_code == 200
    body = response.json()
    assert "errors" not in body
    assert body["data"]["products"]["totalCount"] == 4
    assert [edge["node"]["id"] for edge in body["data"]["products"]["edges"]] == ["p1", "p2"]


@pytest.mark.asyncio
async def test_get_query(client: AsyncClient) -> None:
    response = await client.get(
        "/graphql",
        params={
            "query": "query P($id: ID!) { product(id: $id) { name } }",
            "variables": json.dumps({"id": "p1"}),
        },
    )

    assert response.status_code == 200
    assert response.json() == {"data": {"product": {"name": "Product p1"}}}


@pytest.mark.asyncio
async def test_get_mutation_not_allowed(client: AsyncClient, stores: EntityStores) -> None:
    response = await client.get("/graphql", params={"query": 'mutation { deleteProduct(id: "p1") { success } }'})

    assert response.status_code == 405
    assert response.headers["allow"] == "POST"
    assert "p1" in stores.products.products


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [b"{not json", b"[1, 2]", b'{"query": 42}', b'{"variables": {}}'],
)
async def test_malformed_body(client: AsyncClient, content: bytes) -> None:
    response = await client.post("/graphql", content=content, headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert response.json()["errors"][0]["extensions"]["code"] == "BAD_REQUEST"


@pytest.mark.asyncio
async def test_malformed_get_variables(client: AsyncClient) -> None:
    response = await client.get("/graphql", params={"query": ME, "variables": "{oops"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_syntax_error_is_graphql_error(client: AsyncClient) -> None:
    response = await client.post("/graphql", json={"query": "{ products { "})

    assert response.status_code == 200
    body = response.json()
    assert body["data"] is None
    assert body["errors"][0]["extensions"]["code"] == "GRAPHQL_VALIDATION_FAILED"


@pytest.mark.asyncio
async def test_shape_rejected_over_http(client: AsyncClient) -> None:
    deep = "{ products { edges { node { seller { products { edges { node { name } } } } } } } }"

    response = await client.post("/graphql", json={"query": deep})

    body = response.json()
    assert body["data"] is None
    assert body["errors"][0]["extensions"]["code"] == "SHAPE_REJECTED"


# ──────────────────────────────────────────────────────────────
# Authentication
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_bearer_token_identifies_caller(client: AsyncClient, token_service: TokenService) -> None:
    token = token_service.issue_access_token("u-buyer", "u-buyer@example.com")

    response = await client.post("/graphql", json={"query": ME}, headers={"Authorization": f"Bearer {token}"})

    assert response.json() == {"data": {"me": {"id": "u-buyer"}}}


@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["Bearer garbage", "Basic dXNlcjpwYXNz", "Bearer"])
async def test_invalid_credentials_proceed_anonymously(client: AsyncClient, header: str) -> None:
    """Public fields still resolve; identity-bound fields fail UNAUTHENTICATED."""
    response = await client.post(
        "/graphql",
        json={"query": 'query { me { id } product(id: "p1") { name } }'},
        headers={"Authorization": header},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["data"] == {"me": None, "product": {"name": "Product p1"}}
    assert body["errors"][0]["extensions"]["code"] == "UNAUTHENTICATED"


# ──────────────────────────────────────────────────────────────
# Persisted queries
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_persisted_query_flow(client: AsyncClient) -> None:
    """Test the Apollo APQ round trip: miss, register, hash-only hit."""
    query_hash = compute_hash(LISTING)

    miss = await client.post("/graphql", json={"extensions": _apq(query_hash)})
    register = await client.post("/graphql", json={"query": LISTING, "extensions": _apq(query_hash)})
    hit = await client.get("/graphql", params={"extensions": json.dumps(_apq(query_hash))})

    assert miss.status_code == 200
    assert miss.json()["errors"][0]["message"] == "PersistedQueryNotFound"
    assert miss.json()["errors"][0]["extensions"]["code"] == "PERSISTED_QUERY_NOT_FOUND"
    assert register.json()["data"]["products"]["totalCount"] == 4
    assert hit.status_code == 200
    assert hit.json() == register.json()


@pytest.mark.asyncio
async def test_persisted_query_hash_mismatch(client: AsyncClient) -> None:
    response = await client.post(
        "/graphql",
        json={"query": LISTING, "extensions": _apq(compute_hash(ME))},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_persisted_queries_disabled(stores: EntityStores, token_service: TokenService) -> None:
    app = create_app(
        app_settings=AppSettings(environment="test"),
        graphql_settings=GraphQLSettings(persisted_queries_enabled=False),
        stores=stores,
        token_service=token_service,
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/graphql", json={"extensions": _apq(compute_hash(ME))})

    assert response.status_code == 400
    assert response.json()["errors"][0]["extensions"]["code"] == "PERSISTED_QUERY_NOT_SUPPORTED"


# ──────────────────────────────────────────────────────────────
# Error masking
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(("environment", "masked"), [("production", True), ("development", False)])
async def test_internal_errors_masked_in_production(
    stores: EntityStores,
    token_service: TokenService,
    environment: str,
    masked: bool,
) -> None:
    app = create_app(
        app_settings=AppSettings(environment=environment),
        graphql_settings=GraphQLSettings(),
        stores=replace(stores, products=ExplodingProductStore()),
        token_service=token_service,
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/graphql", json={"query": LISTING})

    error = response.json()["errors"][0]
    assert error["extensions"]["code"] == "INTERNAL_SERVER_ERROR"
    assert ("hunter2" in json.dumps(error)) is not masked
    if masked:
        assert error["message"] == "Internal server error"
