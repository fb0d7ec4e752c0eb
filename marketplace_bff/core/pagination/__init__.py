"""Cursor pagination primitives."""

from __future__ import annotations

from .cursor import CursorCodec, CursorData, fingerprint
from .pager import CursorPager, PageWindow
from .schemas import Connection, Edge, PageInfo

__all__ = [
    "Connection",
    "CursorCodec",
    "CursorData",
    "CursorPager",
    "Edge",
    "PageInfo",
    "PageWindow",
    "fingerprint",
]
