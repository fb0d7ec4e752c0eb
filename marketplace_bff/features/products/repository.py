"""Store adapter for products and reviews."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import delete, func, or_, select

from marketplace_bff.core.database import SearchResult, order_by_keys
from marketplace_bff.core.settings import get_db_settings
from marketplace_bff.features.products.models import Product, ProductAttribute, ProductImage, Review
from marketplace_bff.features.products.schemas import (
    ProductAttributeRecord,
    ProductCreate,
    ProductFilter,
    ProductImageRecord,
    ProductRecord,
    ProductStats,
    ProductUpdate,
    ReviewCreate,
    ReviewRecord,
    ReviewUpdate,
)
from marketplace_bff.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from marketplace_bff.core.pagination import PageWindow

logger = logging.getLogger(__name__)
db_settings = get_db_settings()

transient = retry(
    max_attempts=db_settings.max_retries,
    initial_delay=db_settings.retry_delay,
)


class ProductStore(Protocol):
    """Access to products and their reviews."""

    async def find_by_id(self, product_id: str) -> ProductRecord | None: ...

    async def find_by_ids(self, product_ids: Sequence[str]) -> list[ProductRecord | None]:
        """Products in the order of ``product_ids``; unknown ids map to ``None``."""
        ...

    async def find_by_sellers(self, seller_ids: Sequence[str]) -> list[ProductRecord]:
        """All products of the given sellers, newest first."""
        ...

    async def find_reviews_by_products(self, product_ids: Sequence[str]) -> list[ReviewRecord]:
        """All reviews of the given products, newest first."""
        ...

    async def find_stats_by_products(self, product_ids: Sequence[str]) -> list[ProductStats | None]:
        """Review aggregates in the order of ``product_ids``."""
        ...

    async def find_attributes_by_products(
        self,
        product_ids: Sequence[str],
    ) -> list[ProductAttributeRecord]: ...

    async def find_images_by_products(self, product_ids: Sequence[str]) -> list[ProductImageRecord]:
        """Images of the given products, primary first, then by sort order."""
        ...

    async def find_review(self, review_id: str) -> ReviewRecord | None: ...

    async def search(
        self,
        term: str | None,
        filters: ProductFilter,
        window: PageWindow,
    ) -> SearchResult[ProductRecord]:
        """Filtered scan ordered by creation time, newest first."""
        ...

    async def create(self, seller_id: str, data: ProductCreate) -> ProductRecord: ...

    async def update(self, product_id: str, data: ProductUpdate) -> ProductRecord | None: ...

    async def delete(self, product_id: str) -> bool: ...

    async def create_review(self, product_id: str, user_id: str, data: ReviewCreate) -> ReviewRecord: ...

    async def update_review(self, review_id: str, data: ReviewUpdate) -> ReviewRecord | None: ...

    async def delete_review(self, review_id: str) -> bool: ...


def _apply_filters(stmt: Select, term: str | None, filters: ProductFilter) -> Select:
    if term:
        pattern = f"%{term}%"
        stmt = stmt.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if filters.category is not None:
        stmt = stmt.where(Product.category == filters.category)
    if filters.brand is not None:
        stmt = stmt.where(Product.brand == filters.brand)
    if filters.min_price is not None:
        stmt = stmt.where(Product.price >= filters.min_price)
    if filters.max_price is not None:
        stmt = stmt.where(Product.price <= filters.max_price)
    if filters.in_stock is True:
        stmt = stmt.where(Product.stock > 0)
    elif filters.in_stock is False:
        stmt = stmt.where(Product.stock == 0)
    if filters.is_active is not None:
        stmt = stmt.where(Product.is_active.is_(filters.is_active))
    if filters.seller_id is not None:
        stmt = stmt.where(Product.seller_id == filters.seller_id)
    return stmt


class SqlProductStore:
    """SQLAlchemy implementation of ``ProductStore``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @transient
    async def find_by_id(self, product_id: str) -> ProductRecord | None:
        async with self._session_factory() as session:
            product = await session.get(Product, product_id)
        return ProductRecord.model_validate(product) if product else None

    @transient
    async def find_by_ids(self, product_ids: Sequence[str]) -> list[ProductRecord | None]:
        async with self._session_factory() as session:
            result = await session.execute(select(Product).where(Product.id.in_(product_ids)))
            rows = [ProductRecord.model_validate(p) for p in result.scalars()]
        return order_by_keys(rows, product_ids, lambda row: row.id)

    @transient
    async def find_by_sellers(self, seller_ids: Sequence[str]) -> list[ProductRecord]:
        stmt = (
            select(Product)
            .where(Product.seller_id.in_(seller_ids))
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [ProductRecord.model_validate(p) for p in result.scalars()]

    @transient
    async def find_reviews_by_products(self, product_ids: Sequence[str]) -> list[ReviewRecord]:
        stmt = (
            select(Review)
            .where(Review.product_id.in_(product_ids))
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [ReviewRecord.model_validate(r) for r in result.scalars()]

    @transient
    async def find_stats_by_products(self, product_ids: Sequence[str]) -> list[ProductStats | None]:
        stmt = (
            select(
                Review.product_id,
                func.count(Review.id).label("review_count"),
                func.avg(Review.rating).label("average_rating"),
            )
            .where(Review.product_id.in_(product_ids))
            .group_by(Review.product_id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            stats = [
                ProductStats(
                    product_id=row.product_id,
                    review_count=int(row.review_count),
                    average_rating=float(row.average_rating) if row.average_rating is not None else None,
                )
                for row in result
            ]
        by_id = order_by_keys(stats, product_ids, lambda row: row.product_id)
        # Products without reviews still get an (empty) aggregate
        return [
            found if found is not None else ProductStats(product_id=pid)
            for pid, found in zip(product_ids, by_id, strict=True)
        ]

    @transient
    async def find_attributes_by_products(
        self,
        product_ids: Sequence[str],
    ) -> list[ProductAttributeRecord]:
        stmt = (
            select(ProductAttribute)
            .where(ProductAttribute.product_id.in_(product_ids))
            .order_by(ProductAttribute.name, ProductAttribute.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [ProductAttributeRecord.model_validate(a) for a in result.scalars()]

    @transient
    async def find_images_by_products(self, product_ids: Sequence[str]) -> list[ProductImageRecord]:
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id.in_(product_ids))
            .order_by(ProductImage.is_primary.desc(), ProductImage.sort_order, ProductImage.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [ProductImageRecord.model_validate(i) for i in result.scalars()]

    @transient
    async def find_review(self, review_id: str) -> ReviewRecord | None:
        async with self._session_factory() as session:
            review = await session.get(Review, review_id)
        return ReviewRecord.model_validate(review) if review else None

    @transient
    async def search(
        self,
        term: str | None,
        filters: ProductFilter,
        window: PageWindow,
    ) -> SearchResult[ProductRecord]:
        base = _apply_filters(select(Product), term, filters)
        count_stmt = select(func.count()).select_from(base.subquery())
        page_stmt = (
            base.order_by(Product.created_at.desc(), Product.id.desc())
            .offset(window.offset)
            .limit(window.limit)
        )
        async with self._session_factory() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            result = await session.execute(page_stmt)
            rows = [ProductRecord.model_validate(p) for p in result.scalars()]
        logger.debug(
            "db.products.search",
            extra={"term": term, "offset": window.offset, "limit": window.limit, "total": total},
        )
        return SearchResult(rows=rows, total_count=int(total))

    async def create(self, seller_id: str, data: ProductCreate) -> ProductRecord:
        async with self._session_factory() as session, session.begin():
            product = Product(seller_id=seller_id, **data.model_dump())
            session.add(product)
            await session.flush()
            record = ProductRecord.model_validate(product)
        logger.info("Product created", extra={"product_id": record.id, "seller_id": seller_id})
        return record

    async def update(self, product_id: str, data: ProductUpdate) -> ProductRecord | None:
        async with self._session_factory() as session, session.begin():
            product = await session.get(Product, product_id, with_for_update=True)
            if product is None:
                return None
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(product, field, value)
            await session.flush()
            await session.refresh(product)
            return ProductRecord.model_validate(product)

    async def delete(self, product_id: str) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(delete(Product).where(Product.id == product_id))
        return bool(result.rowcount)

    async def create_review(self, product_id: str, user_id: str, data: ReviewCreate) -> ReviewRecord:
        async with self._session_factory() as session, session.begin():
            review = Review(product_id=product_id, user_id=user_id, **data.model_dump())
            session.add(review)
            await session.flush()
            return ReviewRecord.model_validate(review)

    async def update_review(self, review_id: str, data: ReviewUpdate) -> ReviewRecord | None:
        async with self._session_factory() as session, session.begin():
            review = await session.get(Review, review_id, with_for_update=True)
            if review is None:
                return None
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(review, field, value)
            await session.flush()
            await session.refresh(review)
            return ReviewRecord.model_validate(review)

    async def delete_review(self, review_id: str) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(delete(Review).where(Review.id == review_id))
        return bool(result.rowcount)
