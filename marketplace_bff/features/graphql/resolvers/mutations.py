"""Mutation resolvers for the GraphQL API.

Every mutation establishes the caller's identity first and checks ownership
before touching a store. After a write the request's DataLoaders are primed
or cleared so later fields in the same response see the new state, and
cached catalogue pages are invalidated.
"""

from __future__ import annotations

import logging
from typing import Annotated

import strawberry

# Runtime imports: strawberry resolves resolver annotations from module globals
from strawberry.types import Info

from marketplace_bff.core.exceptions import NotFoundError, ValidationError
from marketplace_bff.features.graphql.context import GraphQLContext
from marketplace_bff.features.graphql.permissions import (
    require_identity,
    require_owner_or_privileged,
    require_privileged,
)
from marketplace_bff.features.graphql.types.inputs import (
    OrderInput,
    ProductInput,
    ProductUpdateInput,
    ProfileInput,
    ReviewInput,
    ReviewUpdateInput,
)
from marketplace_bff.features.graphql.types.marketplace import (
    CartItem,
    DeletePayload,
    Order,
    OrderStatusType,
    Product,
    Review,
    User,
)
from marketplace_bff.features.orders.schemas import CartItemRecord, OrderRecord, OrderStatus, PricedLine
from marketplace_bff.features.products.schemas import ProductRecord, ReviewRecord
from marketplace_bff.infra.cache.keys import PRODUCT_LISTINGS_PATTERN

logger = logging.getLogger(__name__)

QuantityArg = Annotated[int, strawberry.argument(description="Units to add")]
NewQuantityArg = Annotated[int, strawberry.argument(description="New number of units")]


async def _require_product(ctx: GraphQLContext, product_id: str, *, active: bool = False) -> ProductRecord:
    product = await ctx.loaders.product(product_id)
    if product is None or (active and not product.is_active):
        raise NotFoundError("Product not found", extra={"product_id": product_id})
    return product


async def _require_order(ctx: GraphQLContext, order_id: str) -> OrderRecord:
    order = await ctx.loaders.order(order_id)
    if order is None:
        raise NotFoundError("Order not found", extra={"order_id": order_id})
    return order


async def _require_review(ctx: GraphQLContext, review_id: str) -> ReviewRecord:
    review = await ctx.stores.products.find_review(review_id)
    if review is None:
        raise NotFoundError("Review not found", extra={"review_id": review_id})
    return review


async def _require_cart_item(ctx: GraphQLContext, cart_item_id: str) -> CartItemRecord:
    item = await ctx.stores.orders.find_cart_item(cart_item_id)
    if item is None:
        raise NotFoundError("Cart item not found", extra={"cart_item_id": cart_item_id})
    return item


async def _invalidate_listings(ctx: GraphQLContext) -> None:
    dropped = await ctx.cache.invalidate_pattern(PRODUCT_LISTINGS_PATTERN)
    logger.debug("Invalidated cached product pages", extra={"entries": dropped})


@strawberry.type(description="Root mutation type")
class Mutation:
    """GraphQL Mutation resolvers."""

    @strawberry.mutation(description="Edit the authenticated user's profile")
    async def update_profile(self, info: Info[GraphQLContext, None], input: ProfileInput) -> User:
        ctx = info.context
        identity = require_identity(ctx)
        record = await ctx.stores.users.update(identity.subject_id, input.to_pydantic())
        if record is None:
            raise NotFoundError("User not found", extra={"user_id": identity.subject_id})
        ctx.loaders.prime_user(record)
        return User.from_record(record)

    @strawberry.mutation(description="List a new product as the authenticated seller")
    async def create_product(self, info: Info[GraphQLContext, None], input: ProductInput) -> Product:
        ctx = info.context
        identity = require_identity(ctx)
        record = await ctx.stores.products.create(identity.subject_id, input.to_pydantic())
        ctx.loaders.prime_product(record)
        await _invalidate_listings(ctx)
        return Product.from_record(record)

    @strawberry.mutation(description="Update a product (seller or administrators only)")
    async def update_product(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
        input: ProductUpdateInput,
    ) -> Product:
        ctx = info.context
        existing = await _require_product(ctx, str(id))
        require_owner_or_privileged(ctx, existing.seller_id, resource="product")

        record = await ctx.stores.products.update(existing.id, input.to_pydantic())
        if record is None:
            raise NotFoundError("Product not found", extra={"product_id": existing.id})
        ctx.loaders.prime_product(record)
        await _invalidate_listings(ctx)
        return Product.from_record(record)

    @strawberry.mutation(description="Delete a product (seller or administrators only)")
    async def delete_product(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> DeletePayload:
        ctx = info.context
        existing = await _require_product(ctx, str(id))
        require_owner_or_privileged(ctx, existing.seller_id, resource="product")

        deleted = await ctx.stores.products.delete(existing.id)
        if not deleted:
            raise NotFoundError("Product not found", extra={"product_id": existing.id})
        ctx.loaders.forget_product(existing.id, existing.seller_id)
        await _invalidate_listings(ctx)
        logger.info("Product deleted", extra={"product_id": existing.id})
        return DeletePayload(success=True, id=strawberry.ID(existing.id))

    @strawberry.mutation(description="Review a product as the authenticated user")
    async def create_review(
        self,
        info: Info[GraphQLContext, None],
        product_id: strawberry.ID,
        input: ReviewInput,
    ) -> Review:
        ctx = info.context
        identity = require_identity(ctx)
        product = await _require_product(ctx, str(product_id), active=True)
        record = await ctx.stores.products.create_review(product.id, identity.subject_id, input.to_pydantic())
        ctx.loaders.forget_reviews(product.id)
        return Review.from_record(record)

    @strawberry.mutation(description="Edit a review (author or administrators only)")
    async def update_review(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
        input: ReviewUpdateInput,
    ) -> Review:
        ctx = info.context
        require_identity(ctx)
        review = await _require_review(ctx, str(id))
        require_owner_or_privileged(ctx, review.user_id, resource="review")

        record = await ctx.stores.products.update_review(review.id, input.to_pydantic())
        if record is None:
            raise NotFoundError("Review not found", extra={"review_id": review.id})
        ctx.loaders.forget_reviews(record.product_id)
        return Review.from_record(record)

    @strawberry.mutation(description="Delete a review (author or administrators only)")
    async def delete_review(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> DeletePayload:
        ctx = info.context
        require_identity(ctx)
        review = await _require_review(ctx, str(id))
        require_owner_or_privileged(ctx, review.user_id, resource="review")

        if not await ctx.stores.products.delete_review(review.id):
            raise NotFoundError("Review not found", extra={"review_id": review.id})
        ctx.loaders.forget_reviews(review.product_id)
        logger.info("Review deleted", extra={"review_id": review.id, "product_id": review.product_id})
        return DeletePayload(success=True, id=strawberry.ID(review.id))

    @strawberry.mutation(description="Add a product to the authenticated user's cart")
    async def add_to_cart(
        self,
        info: Info[GraphQLContext, None],
        product_id: strawberry.ID,
        quantity: QuantityArg = 1,
    ) -> CartItem:
        ctx = info.context
        identity = require_identity(ctx)
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", extra={"field": "quantity"})
        product = await _require_product(ctx, str(product_id), active=True)
        if product.stock < quantity:
            raise ValidationError("Insufficient stock", extra={"product_id": product.id})

        record = await ctx.stores.orders.add_cart_item(identity.subject_id, product.id, quantity)
        ctx.loaders.forget_cart(identity.subject_id)
        return CartItem.from_record(record)

    @strawberry.mutation(description="Remove a line from the cart (owner only)")
    async def remove_from_cart(
        self,
        info: Info[GraphQLContext, None],
        cart_item_id: strawberry.ID,
    ) -> DeletePayload:
        ctx = info.context
        require_identity(ctx)
        item = await _require_cart_item(ctx, str(cart_item_id))
        require_owner_or_privileged(ctx, item.user_id, resource="cart item")

        await ctx.stores.orders.remove_cart_item(item.id)
        ctx.loaders.forget_cart(item.user_id)
        return DeletePayload(success=True, id=strawberry.ID(item.id))

    @strawberry.mutation(description="Change the quantity of a cart line (owner only)")
    async def update_cart_item(
        self,
        info: Info[GraphQLContext, None],
        cart_item_id: strawberry.ID,
        quantity: NewQuantityArg,
    ) -> CartItem:
        ctx = info.context
        require_identity(ctx)
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", extra={"field": "quantity"})
        item = await _require_cart_item(ctx, str(cart_item_id))
        require_owner_or_privileged(ctx, item.user_id, resource="cart item")
        product = await _require_product(ctx, item.product_id, active=True)
        if product.stock < quantity:
            raise ValidationError("Insufficient stock", extra={"product_id": product.id})

        record = await ctx.stores.orders.update_cart_item(item.id, quantity)
        if record is None:
            raise NotFoundError("Cart item not found", extra={"cart_item_id": item.id})
        ctx.loaders.forget_cart(item.user_id)
        return CartItem.from_record(record)

    @strawberry.mutation(description="Place an order as the authenticated user")
    async def create_order(self, info: Info[GraphQLContext, None], input: OrderInput) -> Order:
        """Place an order.

        Every product must exist, be listed and have enough stock; lines for
        the same product are merged. Prices are taken from the product at
        placement time. The store re-checks stock atomically while reserving.
        """
        ctx = info.context
        identity = require_identity(ctx)
        data = input.to_pydantic()

        quantities: dict[str, int] = {}
        for line in data.items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        product_ids = list(quantities)
        products = await ctx.loaders.products(product_ids)
        lines: list[PricedLine] = []
        for product_id, product in zip(product_ids, products, strict=True):
            if product is None or not product.is_active:
                raise NotFoundError("Product not found", extra={"product_id": product_id})
            if product.stock < quantities[product_id]:
                raise ValidationError("Insufficient stock", extra={"product_id": product_id})
            lines.append(
                PricedLine(
                    product_id=product_id,
                    quantity=quantities[product_id],
                    unit_price=product.price,
                ),
            )

        record = await ctx.stores.orders.create(identity.subject_id, lines, data.shipping_address)
        ctx.loaders.prime_order(record)
        ctx.loaders.forget_products(product_ids)
        await _invalidate_listings(ctx)
        return Order.from_record(record)

    @strawberry.mutation(description="Cancel an order (owner or administrators only)")
    async def cancel_order(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> Order:
        ctx = info.context
        require_identity(ctx)
        order = await _require_order(ctx, str(id))
        require_owner_or_privileged(ctx, order.user_id, resource="order")
        if order.status is OrderStatus.CANCELLED:
            raise ValidationError("Order is already cancelled", extra={"order_id": order.id})
        if order.status is OrderStatus.DELIVERED:
            raise ValidationError(
                "Cannot cancel delivered order",
                extra={"order_id": order.id, "status": order.status.value},
            )

        record = await ctx.stores.orders.update_status(order.id, OrderStatus.CANCELLED)
        if record is None:
            raise NotFoundError("Order not found", extra={"order_id": order.id})
        ctx.loaders.prime_order(record)
        logger.info("Order cancelled", extra={"order_id": record.id})
        return Order.from_record(record)

    @strawberry.mutation(description="Move an order to a new status (administrators only)")
    async def update_order_status(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
        status: OrderStatusType,
    ) -> Order:
        ctx = info.context
        require_privileged(ctx)
        order = await _require_order(ctx, str(id))
        new_status = OrderStatus(status)
        if order.status.is_final and new_status != order.status:
            raise ValidationError(
                f"Order is already {order.status.value}",
                extra={"order_id": order.id, "status": order.status.value},
            )

        record = await ctx.stores.orders.update_status(order.id, new_status)
        if record is None:
            raise NotFoundError("Order not found", extra={"order_id": order.id})
        ctx.loaders.prime_order(record)
        return Order.from_record(record)


__all__ = ["Mutation"]
