"""Database engine and session factory with the psycopg3 async driver.

The engine is built on first use (``init_database``) instead of at import
time so the process can start, and serve cached or anonymous traffic, when
the database is configured off.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from marketplace_bff.core.settings import PostgresSettings, get_db_settings
from marketplace_bff.infra.metrics.prometheus import database_connections_active

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def _instrument_pool(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine.pool, "connect")
    def _receive_connect(dbapi_conn: Any, connection_record: Any) -> None:
        _ = dbapi_conn, connection_record
        database_connections_active.inc()

    @event.listens_for(engine.sync_engine.pool, "close")
    def _receive_close(dbapi_conn: Any, connection_record: Any) -> None:
        _ = dbapi_conn, connection_record
        database_connections_active.dec()


def init_database(settings: PostgresSettings | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the engine and session factory once.

    Returns:
        The process-wide session factory.
    """
    global _engine, _sessionmaker

    if _sessionmaker is not None:
        return _sessionmaker

    settings = settings or get_db_settings()
    _engine = create_async_engine(
        settings.dsn.get_secret_value(),
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        pool_pre_ping=True,
        echo=settings.echo,
    )
    _instrument_pool(_engine)
    _sessionmaker = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.info("Database engine created", extra={"pool_size": settings.pool_size})
    return _sessionmaker


async def check_database() -> bool:
    """Health check; ``False`` when the engine is missing or unreachable."""
    if _engine is None:
        return False
    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return False
    return True


async def close_database() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _sessionmaker = None
