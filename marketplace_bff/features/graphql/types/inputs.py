"""GraphQL input types.

Each input converts to the matching pydantic payload with ``to_pydantic``;
pydantic validation errors surface to clients as ``VALIDATION_ERROR``.
"""

from __future__ import annotations

import strawberry

from marketplace_bff.features.orders.schemas import OrderCreate, OrderLine
from marketplace_bff.features.products.schemas import (
    ProductCreate,
    ProductFilter,
    ProductUpdate,
    ReviewCreate,
    ReviewUpdate,
)
from marketplace_bff.features.users.schemas import UserUpdate


def _provided(nullable: frozenset[str], **fields: object) -> dict[str, object]:
    """Drop arguments the client left out, and nulls for required columns."""
    return {
        name: value
        for name, value in fields.items()
        if value is not strawberry.UNSET and (value is not None or name in nullable)
    }


@strawberry.input(description="Filters for product listings and search")
class ProductFilterInput:
    category: str | None = strawberry.field(default=None, description="Exact category")
    brand: str | None = strawberry.field(default=None, description="Exact brand")
    min_price: float | None = strawberry.field(default=None, description="Lowest price, inclusive")
    max_price: float | None = strawberry.field(default=None, description="Highest price, inclusive")
    in_stock: bool | None = strawberry.field(default=None, description="Only products with stock")
    seller_id: strawberry.ID | None = strawberry.field(default=None, description="Only this seller")

    def to_pydantic(self) -> ProductFilter:
        return ProductFilter(
            category=self.category,
            brand=self.brand,
            min_price=self.min_price,
            max_price=self.max_price,
            in_stock=self.in_stock,
            seller_id=self.seller_id,
        )


@strawberry.input(description="Input for creating a product")
class ProductInput:
    name: str = strawberry.field(description="Product name (max 200 characters)")
    price: float = strawberry.field(description="Unit price")
    description: str | None = strawberry.field(default=None, description="Long description")
    category: str | None = strawberry.field(default=None, description="Category name")
    brand: str | None = strawberry.field(default=None, description="Brand name")
    stock: int = strawberry.field(default=0, description="Units available")

    def to_pydantic(self) -> ProductCreate:
        return ProductCreate(
            name=self.name,
            price=self.price,
            description=self.description,
            category=self.category,
            brand=self.brand,
            stock=self.stock,
        )


@strawberry.input(description="Input for updating a product; omitted fields are unchanged")
class ProductUpdateInput:
    name: str | None = strawberry.UNSET
    description: str | None = strawberry.UNSET
    price: float | None = strawberry.UNSET
    category: str | None = strawberry.UNSET
    brand: str | None = strawberry.UNSET
    stock: int | None = strawberry.UNSET
    is_active: bool | None = strawberry.UNSET

    def to_pydantic(self) -> ProductUpdate:
        return ProductUpdate(
            **_provided(
                frozenset({"description", "category", "brand"}),
                name=self.name,
                description=self.description,
                price=self.price,
                category=self.category,
                brand=self.brand,
                stock=self.stock,
                is_active=self.is_active,
            ),
        )


@strawberry.input(description="Input for reviewing a product")
class ReviewInput:
    rating: int = strawberry.field(description="Rating from 1 to 5")
    comment: str | None = strawberry.field(default=None, description="Free-text comment")

    def to_pydantic(self) -> ReviewCreate:
        return ReviewCreate(rating=self.rating, comment=self.comment)


@strawberry.input(description="Input for editing a review; omitted fields are unchanged")
class ReviewUpdateInput:
    rating: int | None = strawberry.UNSET
    comment: str | None = strawberry.UNSET

    def to_pydantic(self) -> ReviewUpdate:
        return ReviewUpdate(**_provided(frozenset({"comment"}), rating=self.rating, comment=self.comment))


@strawberry.input(description="Input for editing the authenticated user's profile")
class ProfileInput:
    name: str | None = strawberry.UNSET

    def to_pydantic(self) -> UserUpdate:
        return UserUpdate(**_provided(frozenset(), name=self.name))


@strawberry.input(description="One requested order line")
class OrderLineInput:
    product_id: strawberry.ID = strawberry.field(description="Product to order")
    quantity: int = strawberry.field(description="Units to order")


@strawberry.input(description="Input for placing an order")
class OrderInput:
    items: list[OrderLineInput] = strawberry.field(description="Order lines")
    shipping_address: str = strawberry.field(description="Delivery address")

    def to_pydantic(self) -> OrderCreate:
        return OrderCreate(
            items=[OrderLine(product_id=line.product_id, quantity=line.quantity) for line in self.items],
            shipping_address=self.shipping_address,
        )


__all__ = [
    "OrderInput",
    "OrderLineInput",
    "ProductFilterInput",
    "ProductInput",
    "ProductUpdateInput",
    "ProfileInput",
    "ReviewInput",
    "ReviewUpdateInput",
]
