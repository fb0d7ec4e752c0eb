"""Helpers shared by the entity store adapters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Sequence

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SearchResult(Generic[T]):
    """One window of a filtered scan.

    Attributes:
        rows: Rows for the requested window, in sort order
        total_count: Rows matching the filter across all windows

    Example:
        result = await store.search(filters, PageWindow(offset=0, limit=20))
        print(f"Showing {len(result.rows)} of {result.total_count}")
    """

    rows: Sequence[T]
    total_count: int


def order_by_keys(
    rows: Iterable[T],
    keys: Sequence[Hashable],
    key_of: Callable[[T], Hashable],
) -> list[T | None]:
    """Arrange fetched rows in the order of the requested keys.

    Keys without a row map to ``None`` so the result always lines up with
    ``keys`` position by position.
    """
    by_key = {key_of(row): row for row in rows}
    return [by_key.get(key) for key in keys]


__all__ = ["SearchResult", "order_by_keys"]
