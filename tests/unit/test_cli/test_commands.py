"""Unit tests for the management CLI."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from click.testing import CliRunner

from marketplace_bff.cli.commands import queries as queries_cmd
from marketplace_bff.cli.main import cli
from marketplace_bff.features.graphql.persisted_queries import PersistedQueryStore, compute_hash
from marketplace_bff.infra.auth import TokenService
from marketplace_bff.infra.cache import ResponseCache

from tests.fakes import FakeRedisBackend


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_version(runner: CliRunner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_queries_hash(runner: CliRunner, tmp_path: Path):
    body = "query Products { products { totalCount } }"
    query_file = tmp_path / "products.graphql"
    query_file.write_text(body, encoding="utf-8")

    result = runner.invoke(cli, ["queries", "hash", str(query_file)])

    assert result.exit_code == 0
    assert result.output.strip() == compute_hash(body)


def test_queries_hash_missing_file(runner: CliRunner, tmp_path: Path):
    result = runner.invoke(cli, ["queries", "hash", str(tmp_path / "missing.graphql")])

    assert result.exit_code != 0


def _connect_to(cache: ResponseCache):
    async def connect():
        return AsyncMock(), PersistedQueryStore(cache)

    return connect


def test_queries_register_stores_in_shared_tier(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    body = "query Products { products { totalCount } }"
    query_file = tmp_path / "products.graphql"
    query_file.write_text(body, encoding="utf-8")
    backend = FakeRedisBackend()
    monkeypatch.setattr(queries_cmd, "_connect", _connect_to(ResponseCache(backend)))

    result = runner.invoke(cli, ["queries", "register", str(query_file)])

    assert result.exit_code == 0
    assert compute_hash(body) in result.output
    assert len(backend.data) == 1


def test_queries_register_fails_when_nothing_stored(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    query_file = tmp_path / "products.graphql"
    query_file.write_text("query Products { products { totalCount } }", encoding="utf-8")
    monkeypatch.setattr(queries_cmd, "_connect", _connect_to(ResponseCache(None)))

    result = runner.invoke(cli, ["queries", "register", str(query_file)])

    assert result.exit_code == 1


def test_token_mint_verifies(runner: CliRunner):
    result = runner.invoke(cli, ["token", "mint", "--subject", "u1", "--email", "u1@example.com"])

    assert result.exit_code == 0
    token = result.output.strip().splitlines()[-1]
    identity = TokenService().resolve_identity(f"Bearer {token}")
    assert identity is not None
    assert identity.subject_id == "u1"
    assert identity.is_privileged is False


def test_token_mint_privileged(runner: CliRunner):
    result = runner.invoke(
        cli,
        ["token", "mint", "--subject", "admin", "--email", "admin@example.com", "--privileged"],
    )

    assert result.exit_code == 0
    token = result.output.strip().splitlines()[-1]
    identity = TokenService().resolve_identity(f"Bearer {token}")
    assert identity is not None
    assert identity.is_privileged is True
