"""GraphQL types for the marketplace graph.

Provides:
- Entity types: User, Product, ProductAttribute, ProductImage, Review,
  Order, OrderItem, CartItem
- Connection types: ProductConnection, ReviewConnection, OrderConnection
- DeletePayload for delete mutations

Relationships are resolved from foreign-key ids through the request's
DataLoaders, so a list of N products asks the store for sellers once.
All entity types live in this module because they reference each other.
"""

from __future__ import annotations

from datetime import datetime

import strawberry

# Runtime imports: strawberry resolves resolver annotations from module globals
from strawberry.types import Info

from marketplace_bff.features.graphql.context import GraphQLContext
from marketplace_bff.features.graphql.permissions import require_owner_or_privileged
from marketplace_bff.features.graphql.types.base import (
    AfterArg,
    LimitArg,
    PageInfoType,
    to_connection,
)
from marketplace_bff.features.orders.schemas import (
    CartItemRecord,
    OrderItemRecord,
    OrderRecord,
    OrderStatus,
)
from marketplace_bff.features.products.schemas import (
    ProductAttributeRecord,
    ProductImageRecord,
    ProductRecord,
    ReviewRecord,
)
from marketplace_bff.features.users.schemas import UserRecord

OrderStatusType = strawberry.enum(OrderStatus, name="OrderStatus", description="Order lifecycle states")


@strawberry.type(description="A marketplace account (buyer and/or seller)")
class User:
    """GraphQL type for a user.

    ``email`` is only visible to the user themselves and administrators.
    """

    id: strawberry.ID = strawberry.field(description="Unique identifier")
    name: str = strawberry.field(description="Display name")
    created_at: datetime = strawberry.field(description="When the account was created")
    email_address: strawberry.Private[str]

    @classmethod
    def from_record(cls, record: UserRecord) -> User:
        return cls(
            id=strawberry.ID(record.id),
            name=record.name,
            created_at=record.created_at,
            email_address=record.email,
        )

    @strawberry.field(description="Email address (self or administrators only)")
    def email(self, info: Info[GraphQLContext, None]) -> str | None:
        identity = info.context.identity
        if identity is None or not (identity.is_privileged or identity.owns(self.id)):
            return None
        return self.email_address

    @strawberry.field(description="Products listed by this user, newest first")
    async def products(
        self,
        info: Info[GraphQLContext, None],
        limit: LimitArg = None,
        after: AfterArg = None,
    ) -> ProductConnection:
        ctx = info.context
        rows = await ctx.loaders.products_by_seller(self.id)
        identity = ctx.identity
        if identity is None or not (identity.is_privileged or identity.owns(self.id)):
            rows = [row for row in rows if row.is_active]
        page = ctx.pager.paginate(
            rows, limit=limit, after=after, namespace="seller_products", seller_id=self.id,
        )
        return to_connection(page, Product.from_record, ProductConnection, ProductEdge)

    @strawberry.field(description="Orders placed by this user, newest first (owner only)")
    async def orders(
        self,
        info: Info[GraphQLContext, None],
        limit: LimitArg = None,
        after: AfterArg = None,
    ) -> OrderConnection:
        ctx = info.context
        require_owner_or_privileged(ctx, self.id, resource="orders")
        rows = await ctx.loaders.orders_by_user(self.id)
        page = ctx.pager.paginate(
            rows, limit=limit, after=after, namespace="user_orders", user_id=self.id,
        )
        return to_connection(page, Order.from_record, OrderConnection, OrderEdge)

    @strawberry.field(description="Shopping cart contents (owner only)")
    async def cart(self, info: Info[GraphQLContext, None]) -> list[CartItem]:
        ctx = info.context
        require_owner_or_privileged(ctx, self.id, resource="cart")
        rows = await ctx.loaders.cart_items(self.id)
        return [CartItem.from_record(row) for row in rows]


@strawberry.type(description="A product listed by a seller")
class Product:
    """GraphQL type for a product."""

    id: strawberry.ID = strawberry.field(description="Unique identifier")
    name: str = strawberry.field(description="Product name")
    description: str | None = strawberry.field(description="Long description")
    price: float = strawberry.field(description="Unit price")
    category: str | None = strawberry.field(description="Category name")
    brand: str | None = strawberry.field(description="Brand name")
    stock: int = strawberry.field(description="Units available")
    is_active: bool = strawberry.field(description="Whether the product is listed")
    created_at: datetime = strawberry.field(description="When the product was listed")
    updated_at: datetime = strawberry.field(description="When the product was last changed")
    seller_id: strawberry.Private[str]

    @classmethod
    def from_record(cls, record: ProductRecord) -> Product:
        return cls(
            id=strawberry.ID(record.id),
            name=record.name,
            description=record.description,
            price=record.price,
            category=record.category,
            brand=record.brand,
            stock=record.stock,
            is_active=record.is_active,
            created_at=record.created_at,
            updated_at=record.updated_at,
            seller_id=record.seller_id,
        )

    @strawberry.field(description="Seller who listed the product")
    async def seller(self, info: Info[GraphQLContext, None]) -> User | None:
        record = await info.context.loaders.user(self.seller_id)
        return User.from_record(record) if record else None

    @strawberry.field(description="Attribute lines, by name")
    async def attributes(self, info: Info[GraphQLContext, None]) -> list[ProductAttribute]:
        rows = await info.context.loaders.product_attributes(self.id)
        return [ProductAttribute.from_record(row) for row in rows]

    @strawberry.field(description="Gallery images, primary image first")
    async def images(self, info: Info[GraphQLContext, None]) -> list[ProductImage]:
        rows = await info.context.loaders.product_images(self.id)
        return [ProductImage.from_record(row) for row in rows]

    @strawberry.field(description="Reviews of the product, newest first")
    async def reviews(
        self,
        info: Info[GraphQLContext, None],
        limit: LimitArg = None,
        after: AfterArg = None,
    ) -> ReviewConnection:
        ctx = info.context
        rows = await ctx.loaders.reviews_by_product(self.id)
        page = ctx.pager.paginate(
            rows, limit=limit, after=after, namespace="reviews", product_id=self.id,
        )
        return to_connection(page, Review.from_record, ReviewConnection, ReviewEdge)

    @strawberry.field(description="Mean review rating, null without reviews")
    async def average_rating(self, info: Info[GraphQLContext, None]) -> float | None:
        stats = await info.context.loaders.product_stats(self.id)
        if stats is None or stats.average_rating is None:
            return None
        return round(stats.average_rating, 2)

    @strawberry.field(description="Number of reviews")
    async def review_count(self, info: Info[GraphQLContext, None]) -> int:
        stats = await info.context.loaders.product_stats(self.id)
        return stats.review_count if stats else 0


@strawberry.type(description="A name/value attribute of a product")
class ProductAttribute:
    id: strawberry.ID = strawberry.field(description="Unique identifier")
    name: str = strawberry.field(description="Attribute name, e.g. colour")
    value: str = strawberry.field(description="Attribute value")

    @classmethod
    def from_record(cls, record: ProductAttributeRecord) -> ProductAttribute:
        return cls(id=strawberry.ID(record.id), name=record.name, value=record.value)


@strawberry.type(description="An image of a product")
class ProductImage:
    id: strawberry.ID = strawberry.field(description="Unique identifier")
    url: str = strawberry.field(description="Image URL")
    alt_text: str | None = strawberry.field(description="Alternative text")
    is_primary: bool = strawberry.field(description="Whether this is the main image")
    sort_order: int = strawberry.field(description="Position in the gallery")

    @classmethod
    def from_record(cls, record: ProductImageRecord) -> ProductImage:
        return cls(
            id=strawberry.ID(record.id),
            url=record.url,
            alt_text=record.alt_text,
            is_primary=record.is_primary,
            sort_order=record.sort_order,
        )


@strawberry.type(description="A buyer's review of a product")
class Review:
    """GraphQL type for a review."""

    id: strawberry.ID = strawberry.field(description="Unique identifier")
    rating: int = strawberry.field(description="Rating from 1 to 5")
    comment: str | None = strawberry.field(description="Free-text comment")
    created_at: datetime = strawberry.field(description="When the review was written")
    product_id: strawberry.Private[str]
    user_id: strawberry.Private[str]

    @classmethod
    def from_record(cls, record: ReviewRecord) -> Review:
        return cls(
            id=strawberry.ID(record.id),
            rating=record.rating,
            comment=record.comment,
            created_at=record.created_at,
            product_id=record.product_id,
            user_id=record.user_id,
        )

    @strawberry.field(description="Reviewed product")
    async def product(self, info: Info[GraphQLContext, None]) -> Product | None:
        record = await info.context.loaders.product(self.product_id)
        return Product.from_record(record) if record else None

    @strawberry.field(description="Author of the review")
    async def author(self, info: Info[GraphQLContext, None]) -> User | None:
        record = await info.context.loaders.user(self.user_id)
        return User.from_record(record) if record else None


@strawberry.type(description="A placed order")
class Order:
    """GraphQL type for an order.

    Orders are only reachable through owner-checked fields, so the type
    itself carries no further checks.
    """

    id: strawberry.ID = strawberry.field(description="Unique identifier")
    status: OrderStatusType = strawberry.field(description="Lifecycle state")
    total: float = strawberry.field(description="Order total at placement time")
    shipping_address: str = strawberry.field(description="Delivery address")
    created_at: datetime = strawberry.field(description="When the order was placed")
    updated_at: datetime = strawberry.field(description="When the order last changed")
    user_id: strawberry.Private[str]

    @classmethod
    def from_record(cls, record: OrderRecord) -> Order:
        return cls(
            id=strawberry.ID(record.id),
            status=record.status,
            total=record.total,
            shipping_address=record.shipping_address,
            created_at=record.created_at,
            updated_at=record.updated_at,
            user_id=record.user_id,
        )

    @strawberry.field(description="Customer who placed the order")
    async def customer(self, info: Info[GraphQLContext, None]) -> User | None:
        record = await info.context.loaders.user(self.user_id)
        return User.from_record(record) if record else None

    @strawberry.field(description="Order lines")
    async def items(self, info: Info[GraphQLContext, None]) -> list[OrderItem]:
        rows = await info.context.loaders.order_items(self.id)
        return [OrderItem.from_record(row) for row in rows]


@strawberry.type(description="One line of an order")
class OrderItem:
    id: strawberry.ID = strawberry.field(description="Unique identifier")
    quantity: int = strawberry.field(description="Units ordered")
    unit_price: float = strawberry.field(description="Price per unit at placement time")
    product_id: strawberry.Private[str]

    @classmethod
    def from_record(cls, record: OrderItemRecord) -> OrderItem:
        return cls(
            id=strawberry.ID(record.id),
            quantity=record.quantity,
            unit_price=record.unit_price,
            product_id=record.product_id,
        )

    @strawberry.field(description="Line total")
    def subtotal(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    @strawberry.field(description="Ordered product (null if since deleted)")
    async def product(self, info: Info[GraphQLContext, None]) -> Product | None:
        record = await info.context.loaders.product(self.product_id)
        return Product.from_record(record) if record else None


@strawberry.type(description="One line of a shopping cart")
class CartItem:
    id: strawberry.ID = strawberry.field(description="Unique identifier")
    quantity: int = strawberry.field(description="Units in the cart")
    created_at: datetime = strawberry.field(description="When the line was added")
    product_id: strawberry.Private[str]

    @classmethod
    def from_record(cls, record: CartItemRecord) -> CartItem:
        return cls(
            id=strawberry.ID(record.id),
            quantity=record.quantity,
            created_at=record.created_at,
            product_id=record.product_id,
        )

    @strawberry.field(description="Product in the cart (null if since deleted)")
    async def product(self, info: Info[GraphQLContext, None]) -> Product | None:
        record = await info.context.loaders.product(self.product_id)
        return Product.from_record(record) if record else None


# --- Connection Types (Relay Pattern) ---


@strawberry.type(description="Edge containing a product and its cursor")
class ProductEdge:
    node: Product = strawberry.field(description="The product")
    cursor: str = strawberry.field(description="Cursor for this item")


@strawberry.type(description="Paginated connection of products")
class ProductConnection:
    edges: list[ProductEdge] = strawberry.field(description="List of edges (items with cursors)")
    page_info: PageInfoType = strawberry.field(description="Pagination metadata")
    total_count: int = strawberry.field(description="Products matching the query")


@strawberry.type(description="Edge containing a review and its cursor")
class ReviewEdge:
    node: Review = strawberry.field(description="The review")
    cursor: str = strawberry.field(description="Cursor for this item")


@strawberry.type(description="Paginated connection of reviews")
class ReviewConnection:
    edges: list[ReviewEdge] = strawberry.field(description="List of edges (items with cursors)")
    page_info: PageInfoType = strawberry.field(description="Pagination metadata")
    total_count: int = strawberry.field(description="Reviews of the product")


@strawberry.type(description="Edge containing an order and its cursor")
class OrderEdge:
    node: Order = strawberry.field(description="The order")
    cursor: str = strawberry.field(description="Cursor for this item")


@strawberry.type(description="Paginated connection of orders")
class OrderConnection:
    edges: list[OrderEdge] = strawberry.field(description="List of edges (items with cursors)")
    page_info: PageInfoType = strawberry.field(description="Pagination metadata")
    total_count: int = strawberry.field(description="Orders of the user")


@strawberry.type(description="Result of a delete operation")
class DeletePayload:
    """Payload for delete mutations."""

    success: bool = strawberry.field(description="Whether the deletion succeeded")
    id: strawberry.ID = strawberry.field(description="ID of the deleted entity")


__all__ = [
    "CartItem",
    "DeletePayload",
    "Order",
    "OrderConnection",
    "OrderEdge",
    "OrderItem",
    "OrderStatusType",
    "Product",
    "ProductAttribute",
    "ProductConnection",
    "ProductEdge",
    "ProductImage",
    "Review",
    "ReviewConnection",
    "ReviewEdge",
    "User",
]
