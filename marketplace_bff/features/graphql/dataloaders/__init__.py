"""DataLoader container and factory.

DataLoaders batch and cache store lookups within a single request,
preventing N+1 query problems common in GraphQL resolvers.

Each GraphQL request gets its own registry to ensure proper batching
boundaries and cache isolation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from marketplace_bff.features.graphql.dataloaders.registry import BatchLoaderRegistry, LoaderKind

if TYPE_CHECKING:
    from marketplace_bff.features.orders.schemas import CartItemRecord, OrderItemRecord, OrderRecord
    from marketplace_bff.features.products.schemas import (
        ProductAttributeRecord,
        ProductImageRecord,
        ProductRecord,
        ProductStats,
        ReviewRecord,
    )
    from marketplace_bff.features.stores import EntityStores
    from marketplace_bff.features.users.schemas import UserRecord


@dataclass
class DataLoaders:
    """Typed access to the request's batch loader registry.

    Usage in resolver:
        seller = await info.context.loaders.user(product.seller_id)
    """

    registry: BatchLoaderRegistry

    async def user(self, user_id: str) -> UserRecord | None:
        return await self.registry.load(LoaderKind.USER, user_id)

    async def product(self, product_id: str) -> ProductRecord | None:
        return await self.registry.load(LoaderKind.PRODUCT, product_id)

    async def products(self, product_ids: list[str]) -> list[ProductRecord | None]:
        return await self.registry.load_many(LoaderKind.PRODUCT, product_ids)

    async def order(self, order_id: str) -> OrderRecord | None:
        return await self.registry.load(LoaderKind.ORDER, order_id)

    async def product_stats(self, product_id: str) -> ProductStats | None:
        return await self.registry.load(LoaderKind.PRODUCT_STATS, product_id)

    async def products_by_seller(self, seller_id: str) -> list[ProductRecord]:
        return await self.registry.load(LoaderKind.PRODUCTS_BY_SELLER, seller_id)

    async def orders_by_user(self, user_id: str) -> list[OrderRecord]:
        return await self.registry.load(LoaderKind.ORDERS_BY_USER, user_id)

    async def order_items(self, order_id: str) -> list[OrderItemRecord]:
        return await self.registry.load(LoaderKind.ORDER_ITEMS_BY_ORDER, order_id)

    async def reviews_by_product(self, product_id: str) -> list[ReviewRecord]:
        return await self.registry.load(LoaderKind.REVIEWS_BY_PRODUCT, product_id)

    async def cart_items(self, user_id: str) -> list[CartItemRecord]:
        return await self.registry.load(LoaderKind.CART_ITEMS_BY_USER, user_id)

    async def product_attributes(self, product_id: str) -> list[ProductAttributeRecord]:
        return await self.registry.load(LoaderKind.ATTRIBUTES_BY_PRODUCT, product_id)

    async def product_images(self, product_id: str) -> list[ProductImageRecord]:
        return await self.registry.load(LoaderKind.IMAGES_BY_PRODUCT, product_id)

    def prime_user(self, user: UserRecord) -> None:
        self.registry.prime(LoaderKind.USER, user.id, user)

    def prime_products(self, products: list[ProductRecord]) -> None:
        """Seed product loads with rows already fetched by a listing scan."""
        for product in products:
            self.registry.prime(LoaderKind.PRODUCT, product.id, product, force=False)

    def prime_product(self, product: ProductRecord) -> None:
        self.registry.prime(LoaderKind.PRODUCT, product.id, product)
        self.registry.clear(LoaderKind.PRODUCTS_BY_SELLER, product.seller_id)

    def forget_product(self, product_id: str, seller_id: str) -> None:
        self.registry.prime(LoaderKind.PRODUCT, product_id, None)
        self.registry.clear(LoaderKind.PRODUCTS_BY_SELLER, seller_id)

    def prime_order(self, order: OrderRecord) -> None:
        self.registry.prime(LoaderKind.ORDER, order.id, order)
        self.registry.clear(LoaderKind.ORDERS_BY_USER, order.user_id)

    def forget_products(self, product_ids: list[str]) -> None:
        """Drop memoized products whose stock just changed."""
        for product_id in product_ids:
            self.registry.clear(LoaderKind.PRODUCT, product_id)

    def forget_reviews(self, product_id: str) -> None:
        self.registry.clear(LoaderKind.REVIEWS_BY_PRODUCT, product_id)
        self.registry.clear(LoaderKind.PRODUCT_STATS, product_id)

    def forget_cart(self, user_id: str) -> None:
        self.registry.clear(LoaderKind.CART_ITEMS_BY_USER, user_id)


def create_dataloaders(stores: EntityStores) -> DataLoaders:
    """Factory for creating request-scoped DataLoaders.

    Args:
        stores: Entity store adapters shared by all requests

    Returns:
        DataLoaders over a fresh registry with every loader kind installed
    """
    registry = BatchLoaderRegistry()
    registry.register(LoaderKind.USER, stores.users.find_by_ids)
    registry.register(LoaderKind.PRODUCT, stores.products.find_by_ids)
    registry.register(LoaderKind.ORDER, stores.orders.find_by_ids)
    registry.register(LoaderKind.PRODUCT_STATS, stores.products.find_stats_by_products)
    registry.register_relationship(
        LoaderKind.PRODUCTS_BY_SELLER,
        stores.products.find_by_sellers,
        owner_key=lambda product: product.seller_id,
    )
    registry.register_relationship(
        LoaderKind.ORDERS_BY_USER,
        stores.orders.find_by_users,
        owner_key=lambda order: order.user_id,
    )
    registry.register_relationship(
        LoaderKind.ORDER_ITEMS_BY_ORDER,
        stores.orders.find_items_by_orders,
        owner_key=lambda item: item.order_id,
    )
    registry.register_relationship(
        LoaderKind.REVIEWS_BY_PRODUCT,
        stores.products.find_reviews_by_products,
        owner_key=lambda review: review.product_id,
    )
    registry.register_relationship(
        LoaderKind.CART_ITEMS_BY_USER,
        stores.orders.find_cart_items_by_users,
        owner_key=lambda item: item.user_id,
    )
    registry.register_relationship(
        LoaderKind.ATTRIBUTES_BY_PRODUCT,
        stores.products.find_attributes_by_products,
        owner_key=lambda attribute: attribute.product_id,
    )
    registry.register_relationship(
        LoaderKind.IMAGES_BY_PRODUCT,
        stores.products.find_images_by_products,
        owner_key=lambda image: image.product_id,
    )
    registry.ensure_registered()
    return DataLoaders(registry=registry)


__all__ = ["BatchLoaderRegistry", "DataLoaders", "LoaderKind", "create_dataloaders"]
