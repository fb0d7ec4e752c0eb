"""Bundle of entity store adapters handed to each request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from marketplace_bff.features.orders.repository import OrderStore, SqlOrderStore
from marketplace_bff.features.products.repository import ProductStore, SqlProductStore
from marketplace_bff.features.users.repository import SqlUserStore, UserStore

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@dataclass(frozen=True)
class EntityStores:
    """Store adapters shared by every request.

    Adapters hold no per-request state; request isolation lives in the batch
    loader registry built on top of them.
    """

    users: UserStore
    products: ProductStore
    orders: OrderStore


def create_sql_stores(session_factory: async_sessionmaker[AsyncSession]) -> EntityStores:
    """Build SQLAlchemy-backed adapters over one session factory."""
    return EntityStores(
        users=SqlUserStore(session_factory),
        products=SqlProductStore(session_factory),
        orders=SqlOrderStore(session_factory),
    )
