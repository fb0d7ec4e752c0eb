"""Base GraphQL types for pagination.

Mirrors ``marketplace_bff.core.pagination.schemas`` as Strawberry types and
converts pager output into per-entity connection types.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any, TypeVar

import strawberry

if TYPE_CHECKING:
    from collections.abc import Callable

    from marketplace_bff.core.pagination import Connection, PageInfo

R = TypeVar("R")

# Type aliases for annotated pagination arguments
LimitArg = Annotated[
    int | None, strawberry.argument(description="Page size, clamped to the configured maximum"),
]
AfterArg = Annotated[
    str | None, strawberry.argument(description="Cursor to start after"),
]


@strawberry.type(name="PageInfo", description="Pagination metadata following the GraphQL Relay connection model")
class PageInfoType:
    """GraphQL Relay PageInfo for cursor-based pagination."""

    has_previous_page: bool = strawberry.field(description="Whether previous items exist")
    has_next_page: bool = strawberry.field(description="Whether more items exist")
    start_cursor: str | None = strawberry.field(
        default=None,
        description="Cursor of the first item",
    )
    end_cursor: str | None = strawberry.field(
        default=None,
        description="Cursor of the last item",
    )

    @classmethod
    def from_page_info(cls, page_info: PageInfo) -> PageInfoType:
        return cls(
            has_previous_page=page_info.has_previous_page,
            has_next_page=page_info.has_next_page,
            start_cursor=page_info.start_cursor,
            end_cursor=page_info.end_cursor,
        )


def to_connection(
    connection: Connection[R],
    convert: Callable[[R], Any],
    connection_type: type,
    edge_type: type,
) -> Any:
    """Convert a pager connection of records into a GraphQL connection.

    Args:
        connection: Page produced by ``CursorPager``
        convert: Record to GraphQL type converter (usually ``from_record``)
        connection_type: Target connection class
        edge_type: Target edge class
    """
    return connection_type(
        edges=[edge_type(node=convert(edge.node), cursor=edge.cursor) for edge in connection.edges],
        page_info=PageInfoType.from_page_info(connection.page_info),
        total_count=connection.total_count,
    )


__all__ = ["AfterArg", "LimitArg", "PageInfoType", "to_connection"]
