"""Offset/limit windows behind opaque cursors.

The pager is built per request from ``GraphQLSettings`` and is used in two
ways:

* ``paginate`` slices an in-memory ordered list (relationship fields whose
  rows were already loaded through the batch loader registry).
* ``window`` + ``page`` wrap a store scan: the window tells the store which
  rows to fetch, ``page`` turns the fetched rows and total into a connection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from .cursor import CursorCodec, CursorData, fingerprint
from .schemas import Connection, Edge, PageInfo

if TYPE_CHECKING:
    from collections.abc import Sequence

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PageWindow:
    """Rows ``[offset, offset + limit)`` of a query identified by ``fingerprint``."""

    offset: int
    limit: int
    fingerprint: str = ""


class CursorPager:
    """Build connection pages from offset windows.

    Example:
        pager = CursorPager(default_page_size=20, max_page_size=100)
        page = pager.paginate(rows, limit=10, namespace="reviews")
        nxt = pager.paginate(rows, limit=10, after=page.page_info.end_cursor, namespace="reviews")
    """

    def __init__(self, default_page_size: int = 20, max_page_size: int = 100) -> None:
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def clamp_limit(self, limit: int | None) -> int:
        """Clamp a client supplied limit to ``[1, max_page_size]``."""
        if limit is None:
            return min(self.default_page_size, self.max_page_size)
        return max(1, min(limit, self.max_page_size))

    def window(
        self,
        limit: int | None = None,
        after: str | None = None,
        namespace: str = "",
        **shape: Any,
    ) -> PageWindow:
        """Translate ``limit``/``after`` into the row window to fetch.

        Raises:
            InvalidCursorError: If ``after`` is not a cursor for this query.
        """
        fp = fingerprint(namespace, **shape) if namespace else ""
        offset = 0
        if after is not None:
            data = CursorCodec.decode(after, expected_fingerprint=fp if namespace else None)
            offset = data.offset + 1
        return PageWindow(offset=offset, limit=self.clamp_limit(limit), fingerprint=fp)

    def page(self, rows: Sequence[T], total_count: int, window: PageWindow) -> Connection[T]:
        """Wrap the rows fetched for ``window`` in a connection.

        ``rows`` must already be the window's slice; extra rows are dropped.
        """
        visible = list(rows)[: window.limit]
        edges = [
            Edge[Any](
                node=row,
                cursor=CursorCodec.encode(
                    CursorData(offset=window.offset + index, fingerprint=window.fingerprint),
                ),
            )
            for index, row in enumerate(visible)
        ]
        page_info = PageInfo(
            has_next_page=window.offset + window.limit < total_count,
            has_previous_page=window.offset > 0,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        )
        return Connection[Any](edges=edges, page_info=page_info, total_count=total_count)

    def paginate(
        self,
        rows: Sequence[T],
        limit: int | None = None,
        after: str | None = None,
        namespace: str = "",
        **shape: Any,
    ) -> Connection[T]:
        """Paginate an in-memory ordered row list."""
        window = self.window(limit=limit, after=after, namespace=namespace, **shape)
        sliced = rows[window.offset : window.offset + window.limit]
        return self.page(sliced, len(rows), window)


__all__ = ["CursorPager", "PageWindow"]
