"""Database primitives shared by the feature models and store adapters."""

from __future__ import annotations

from .base import NAMING_CONVENTION, Base, StringPKMixin, TimestampMixin, new_id
from .repository import SearchResult, order_by_keys

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "SearchResult",
    "StringPKMixin",
    "TimestampMixin",
    "new_id",
    "order_by_keys",
]
