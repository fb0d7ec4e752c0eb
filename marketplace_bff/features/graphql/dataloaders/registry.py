"""Request-scoped batch loader registry.

One strawberry ``DataLoader`` per loader kind. Keys requested during the same
event-loop tick are coalesced and deduplicated into a single store call per
kind, and each key's result is memoized for the rest of the request, so a
``(kind, key)`` pair is fetched at most once.

A registry must never outlive its request: two concurrent requests each build
their own and share nothing.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from contextlib import suppress
from enum import StrEnum
import logging
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from strawberry.dataloader import DataLoader

from marketplace_bff.core.exceptions import AppException, UpstreamUnavailableError
from marketplace_bff.infra.metrics.tracking import track_dataloader_batch

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("graphql.dataloader")


class LoaderKind(StrEnum):
    """Entity and relationship shapes served by the registry."""

    USER = "user"
    PRODUCT = "product"
    ORDER = "order"
    PRODUCT_STATS = "product_stats"
    PRODUCTS_BY_SELLER = "products_by_seller"
    ORDERS_BY_USER = "orders_by_user"
    ORDER_ITEMS_BY_ORDER = "order_items_by_order"
    REVIEWS_BY_PRODUCT = "reviews_by_product"
    CART_ITEMS_BY_USER = "cart_items_by_user"
    ATTRIBUTES_BY_PRODUCT = "attributes_by_product"
    IMAGES_BY_PRODUCT = "images_by_product"


FetchMany = Callable[[list[Any]], Awaitable[Sequence[Any]]]


class BatchLoaderRegistry:
    """Batching caches keyed by ``LoaderKind``.

    Example:
        registry = BatchLoaderRegistry()
        registry.register(LoaderKind.PRODUCT, stores.products.find_by_ids)
        registry.register_relationship(
            LoaderKind.REVIEWS_BY_PRODUCT,
            stores.products.find_reviews_by_products,
            owner_key=lambda review: review.product_id,
        )
        product = await registry.load(LoaderKind.PRODUCT, "p1")
    """

    def __init__(self) -> None:
        self._loaders: dict[LoaderKind, DataLoader[Any, Any]] = {}

    def register(self, kind: LoaderKind, fetch_many: FetchMany) -> None:
        """Install a batching cache for ``kind``.

        ``fetch_many(keys)`` must return one value per key, in key order,
        with ``None`` for keys that do not exist.
        """
        if kind in self._loaders:
            msg = f"Loader already registered for {kind}"
            raise RuntimeError(msg)
        self._loaders[kind] = DataLoader(load_fn=self._batch(kind, fetch_many))

    def register_relationship(
        self,
        kind: LoaderKind,
        fetch_related: FetchMany,
        owner_key: Callable[[Any], Hashable],
    ) -> None:
        """Install a one-to-many batching cache for ``kind``.

        ``fetch_related(owner_keys)`` returns a flat row list; rows are
        partitioned by ``owner_key(row)`` keeping their fetch order, and
        owners without rows get an empty list.
        """

        async def fetch_partitioned(owner_keys: list[Any]) -> list[list[Any]]:
            grouped: dict[Hashable, list[Any]] = {key: [] for key in owner_keys}
            for row in await fetch_related(owner_keys):
                bucket = grouped.get(owner_key(row))
                if bucket is not None:
                    bucket.append(row)
            return [grouped[key] for key in owner_keys]

        self.register(kind, fetch_partitioned)

    def _batch(self, kind: LoaderKind, fetch_many: FetchMany) -> FetchMany:
        async def load_batch(keys: list[Any]) -> list[Any]:
            with tracer.start_as_current_span(f"graphql.dataloader.{kind}") as span:
                span.set_attribute("graphql.dataloader.batch_size", len(keys))
                start = time.perf_counter()
                try:
                    values = list(await fetch_many(keys))
                    if len(values) != len(keys):
                        msg = f"{kind} fetch returned {len(values)} values for {len(keys)} keys"
                        raise RuntimeError(msg)
                except AppException as e:
                    track_dataloader_batch(kind, len(keys), time.perf_counter() - start, failed=True)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                except Exception as e:
                    track_dataloader_batch(kind, len(keys), time.perf_counter() - start, failed=True)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    logger.exception(
                        "Batch fetch failed",
                        extra={"loader": kind.value, "batch_size": len(keys)},
                    )
                    # One instance is delivered to every waiter of the batch
                    raise UpstreamUnavailableError(extra={"loader": kind.value}) from e

                track_dataloader_batch(kind, len(keys), time.perf_counter() - start, failed=False)
                logger.debug(
                    "Batch fetched",
                    extra={"loader": kind.value, "batch_size": len(keys)},
                )
                return values

        return load_batch

    def _loader(self, kind: LoaderKind) -> DataLoader[Any, Any]:
        try:
            return self._loaders[kind]
        except KeyError:
            msg = f"No loader registered for {kind}"
            raise RuntimeError(msg) from None

    def ensure_registered(self, kinds: Iterable[LoaderKind] = LoaderKind) -> None:
        """Fail fast when any kind lacks a loader.

        Raises:
            RuntimeError: Listing every missing kind.
        """
        missing = [kind.value for kind in kinds if kind not in self._loaders]
        if missing:
            msg = f"Loaders missing for: {', '.join(missing)}"
            raise RuntimeError(msg)

    async def load(self, kind: LoaderKind, key: Any) -> Any:
        """Schedule ``key`` for the next batch of ``kind`` and await its value."""
        return await self._loader(kind).load(key)

    async def load_many(self, kind: LoaderKind, keys: Iterable[Any]) -> list[Any]:
        return await self._loader(kind).load_many(keys)

    async def load_relationship(
        self,
        kind: LoaderKind,
        owner_keys: Iterable[Any],
    ) -> dict[Any, list[Any]]:
        """Related rows for each owner key."""
        owners = list(owner_keys)
        values = await self._loader(kind).load_many(owners)
        return dict(zip(owners, values, strict=True))

    def prime(self, kind: LoaderKind, key: Any, value: Any, *, force: bool = True) -> None:
        """Seed the memoized value for ``key``.

        ``force`` overwrites a value already cached, which is what mutations
        want after a write.
        """
        self._loader(kind).prime(key, value, force=force)

    def clear(self, kind: LoaderKind, key: Any) -> None:
        """Forget the memoized value so the next load refetches.

        Clearing a key that was never loaded in this request is a no-op.
        """
        loader = self._loader(kind)
        # DataLoader.clear deletes from its cache map without checking
        with suppress(KeyError):
            loader.clear(key)


__all__ = ["BatchLoaderRegistry", "FetchMany", "LoaderKind"]
