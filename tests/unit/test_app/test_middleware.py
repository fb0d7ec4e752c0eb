"""Unit tests for the correlation id middleware."""
from __future__ import annotations

import uuid

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from marketplace_bff.app.middleware import CorrelationIDMiddleware
from marketplace_bff.infra.logging.context import get_log_context


@pytest.fixture
async def client():
    app = FastAPI()
    app.add_middleware(CorrelationIDMiddleware, header_name="X-Request-ID")

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        return {
            "state": request.state.correlation_id,
            "log_context": get_log_context().get("correlation_id"),
        }

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def test_upstream_id_is_propagated(client: AsyncClient):
    response = await client.get("/echo", headers={"X-Request-ID": "req-123"})

    assert response.headers["x-request-id"] == "req-123"
    assert response.json() == {"state": "req-123", "log_context": "req-123"}


async def test_id_generated_when_absent(client: AsyncClient):
    response = await client.get("/echo")

    generated = response.headers["x-request-id"]
    assert uuid.UUID(generated)
    assert response.json()["state"] == generated


@pytest.mark.parametrize("value", ["has spaces", "x" * 200, "new\\nline"])
async def test_malformed_id_replaced(client: AsyncClient, value: str):
    response = await client.get("/echo", headers={"X-Request-ID": value})

    assert response.headers["x-request-id"] != value
    assert uuid.UUID(response.headers["x-request-id"])
