"""Cache key builders.

Keys are namespaced by entity so a mutation can invalidate a whole family
(``products:*``) without touching unrelated entries.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def _digest(payload: dict[str, Any]) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()[:24]


def product_listing_key(filters: dict[str, Any], offset: int, limit: int) -> str:
    return f"products:{_digest({'f': filters, 'o': offset, 'l': limit})}"


def product_search_key(term: str, filters: dict[str, Any], offset: int, limit: int) -> str:
    # Search pages share the products: namespace so product writes drop them too
    return f"products:search:{_digest({'q': term, 'f': filters, 'o': offset, 'l': limit})}"


def persisted_query_key(query_hash: str) -> str:
    return f"persisted_query:{query_hash}"


PRODUCT_LISTINGS_PATTERN = "products:*"
