"""Strawberry schema extensions."""

from __future__ import annotations

from .shape_guard import QueryShapeGuard

__all__ = ["QueryShapeGuard"]
