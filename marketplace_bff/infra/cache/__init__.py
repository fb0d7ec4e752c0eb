"""Redis backed caching."""

from __future__ import annotations

from .redis import RedisCache
from .response_cache import ResponseCache

__all__ = ["RedisCache", "ResponseCache"]
