"""Shared pydantic schemas."""

from __future__ import annotations

from .auth import Identity, TokenClaims

__all__ = ["Identity", "TokenClaims"]
