"""Pagination response schemas (Relay connection pattern).

A ``Connection`` is what list fields return: the page's edges, navigation
metadata and the total number of rows matching the query.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageInfo(BaseModel):
    """Pagination metadata following the GraphQL Relay connection model.

    Attributes:
        has_previous_page: Whether there are items before the current page
        has_next_page: Whether there are items after the current page
        start_cursor: Cursor of the first item in this page
        end_cursor: Cursor of the last item in this page
    """

    has_previous_page: bool = Field(description="Whether previous items exist")
    has_next_page: bool = Field(description="Whether more items exist")
    start_cursor: str | None = Field(default=None, description="Cursor of the first item")
    end_cursor: str | None = Field(default=None, description="Cursor of the last item")


class Edge(BaseModel, Generic[T]):
    """Edge wrapper for paginated items.

    Attributes:
        node: The actual data item
        cursor: Cursor for this specific item
    """

    node: T = Field(description="The data item")
    cursor: str = Field(description="Cursor for this item")


class Connection(BaseModel, Generic[T]):
    """One page of a list field.

    Attributes:
        edges: List of Edge objects containing nodes and cursors
        page_info: Navigation metadata
        total_count: Rows matching the query across all pages
    """

    edges: list[Edge[T]] = Field(default_factory=list, description="Items with cursors")
    page_info: PageInfo = Field(description="Pagination metadata")
    total_count: int = Field(default=0, ge=0, description="Total matching rows")

    @property
    def nodes(self) -> list[T]:
        """Get just the nodes without edge wrappers."""
        return [edge.node for edge in self.edges]


__all__ = ["Connection", "Edge", "PageInfo"]
