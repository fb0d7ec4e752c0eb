"""Access token handling."""

from __future__ import annotations

from .tokens import TokenService, extract_bearer

__all__ = ["TokenService", "extract_bearer"]
