"""Store adapter for orders and carts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import delete, select, update

from marketplace_bff.core.database import order_by_keys
from marketplace_bff.core.exceptions import ValidationError
from marketplace_bff.core.settings import get_db_settings
from marketplace_bff.features.orders.models import CartItem, Order, OrderItem
from marketplace_bff.features.orders.schemas import (
    CartItemRecord,
    OrderItemRecord,
    OrderRecord,
    OrderStatus,
    PricedLine,
)
from marketplace_bff.features.products.models import Product
from marketplace_bff.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)
db_settings = get_db_settings()

transient = retry(
    max_attempts=db_settings.max_retries,
    initial_delay=db_settings.retry_delay,
)


class OrderStore(Protocol):
    """Access to orders, order lines and carts."""

    async def find_by_id(self, order_id: str) -> OrderRecord | None: ...

    async def find_by_ids(self, order_ids: Sequence[str]) -> list[OrderRecord | None]: ...

    async def find_by_users(self, user_ids: Sequence[str]) -> list[OrderRecord]:
        """All orders of the given users, newest first."""
        ...

    async def find_items_by_orders(self, order_ids: Sequence[str]) -> list[OrderItemRecord]: ...

    async def find_cart_items_by_users(self, user_ids: Sequence[str]) -> list[CartItemRecord]: ...

    async def find_cart_item(self, cart_item_id: str) -> CartItemRecord | None: ...

    async def create(
        self,
        user_id: str,
        lines: Sequence[PricedLine],
        shipping_address: str,
    ) -> OrderRecord:
        """Place an order and reserve stock atomically.

        Raises:
            ValidationError: If any product no longer has enough stock.
        """
        ...

    async def update_status(self, order_id: str, status: OrderStatus) -> OrderRecord | None: ...

    async def add_cart_item(self, user_id: str, product_id: str, quantity: int) -> CartItemRecord:
        """Add to the cart, summing quantities for a product already present."""
        ...

    async def update_cart_item(self, cart_item_id: str, quantity: int) -> CartItemRecord | None:
        """Set the quantity of a cart line."""
        ...

    async def remove_cart_item(self, cart_item_id: str) -> bool: ...


class SqlOrderStore:
    """SQLAlchemy implementation of ``OrderStore``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @transient
    async def find_by_id(self, order_id: str) -> OrderRecord | None:
        async with self._session_factory() as session:
            order = await session.get(Order, order_id)
        return OrderRecord.model_validate(order) if order else None

    @transient
    async def find_by_ids(self, order_ids: Sequence[str]) -> list[OrderRecord | None]:
        async with self._session_factory() as session:
            result = await session.execute(select(Order).where(Order.id.in_(order_ids)))
            rows = [OrderRecord.model_validate(o) for o in result.scalars()]
        return order_by_keys(rows, order_ids, lambda row: row.id)

    @transient
    async def find_by_users(self, user_ids: Sequence[str]) -> list[OrderRecord]:
        stmt = (
            select(Order)
            .where(Order.user_id.in_(user_ids))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [OrderRecord.model_validate(o) for o in result.scalars()]

    @transient
    async def find_items_by_orders(self, order_ids: Sequence[str]) -> list[OrderItemRecord]:
        stmt = select(OrderItem).where(OrderItem.order_id.in_(order_ids)).order_by(OrderItem.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [OrderItemRecord.model_validate(i) for i in result.scalars()]

    @transient
    async def find_cart_items_by_users(self, user_ids: Sequence[str]) -> list[CartItemRecord]:
        stmt = (
            select(CartItem)
            .where(CartItem.user_id.in_(user_ids))
            .order_by(CartItem.created_at, CartItem.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [CartItemRecord.model_validate(i) for i in result.scalars()]

    @transient
    async def find_cart_item(self, cart_item_id: str) -> CartItemRecord | None:
        async with self._session_factory() as session:
            item = await session.get(CartItem, cart_item_id)
        return CartItemRecord.model_validate(item) if item else None

    async def create(
        self,
        user_id: str,
        lines: Sequence[PricedLine],
        shipping_address: str,
    ) -> OrderRecord:
        total = round(sum(line.unit_price * line.quantity for line in lines), 2)
        async with self._session_factory() as session, session.begin():
            for line in lines:
                reserved = await session.execute(
                    update(Product)
                    .where(Product.id == line.product_id, Product.stock >= line.quantity)
                    .values(stock=Product.stock - line.quantity),
                )
                if not reserved.rowcount:
                    # Raising inside begin() rolls back earlier reservations
                    raise ValidationError(
                        "Insufficient stock",
                        extra={"product_id": line.product_id},
                    )
            order = Order(user_id=user_id, total=total, shipping_address=shipping_address)
            session.add(order)
            await session.flush()
            session.add_all(
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in lines
            )
            await session.flush()
            record = OrderRecord.model_validate(order)
        logger.info("Order placed", extra={"order_id": record.id, "lines": len(lines)})
        return record

    async def update_status(self, order_id: str, status: OrderStatus) -> OrderRecord | None:
        async with self._session_factory() as session, session.begin():
            order = await session.get(Order, order_id, with_for_update=True)
            if order is None:
                return None
            order.status = status.value
            await session.flush()
            await session.refresh(order)
            return OrderRecord.model_validate(order)

    async def add_cart_item(self, user_id: str, product_id: str, quantity: int) -> CartItemRecord:
        async with self._session_factory() as session, session.begin():
            existing = (
                await session.execute(
                    select(CartItem)
                    .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
                    .with_for_update(),
                )
            ).scalar_one_or_none()
            if existing is None:
                existing = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
                session.add(existing)
            else:
                existing.quantity += quantity
            await session.flush()
            return CartItemRecord.model_validate(existing)

    async def update_cart_item(self, cart_item_id: str, quantity: int) -> CartItemRecord | None:
        async with self._session_factory() as session, session.begin():
            item = await session.get(CartItem, cart_item_id, with_for_update=True)
            if item is None:
                return None
            item.quantity = quantity
            await session.flush()
            return CartItemRecord.model_validate(item)

    async def remove_cart_item(self, cart_item_id: str) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(delete(CartItem).where(CartItem.id == cart_item_id))
        return bool(result.rowcount)
