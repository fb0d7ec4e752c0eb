"""Pydantic schemas for the orders feature."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(StrEnum):
    """Order lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_final(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class OrderRecord(BaseModel):
    """Order row as returned by the order store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_id: str
    status: OrderStatus
    total: float
    shipping_address: str
    created_at: datetime
    updated_at: datetime


class OrderItemRecord(BaseModel):
    """Order line as returned by the order store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    order_id: str
    product_id: str
    quantity: int
    unit_price: float


class CartItemRecord(BaseModel):
    """Cart line as returned by the order store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_id: str
    product_id: str
    quantity: int
    created_at: datetime


class OrderLine(BaseModel):
    """Requested line of a new order."""

    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1, le=1000)


class PricedLine(OrderLine):
    """Order line with the unit price resolved from the product."""

    unit_price: float = Field(ge=0)


class OrderCreate(BaseModel):
    """Payload used when placing an order."""

    items: list[OrderLine] = Field(min_length=1, max_length=100)
    shipping_address: str = Field(min_length=1, max_length=1000)
