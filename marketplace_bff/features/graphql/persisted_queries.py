"""Automatic persisted queries (Apollo APQ protocol).

Clients send ``extensions.persistedQuery.sha256Hash`` instead of the query
text. A hash the service has never seen fails with
``PERSISTED_QUERY_NOT_FOUND``; the client then resends hash and body
together, which registers the body for every later request.

Bodies live in two tiers: a bounded in-process LRU and the shared response
cache (Redis), so a body registered through one replica is found by all.

Registering a known hash with a different body replaces the stored body
without comparing it to the original. Hash verification on registration
(enabled by default) makes that only reachable through an actual SHA-256
collision or with verification turned off.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime
import hashlib
import logging
from typing import TYPE_CHECKING, Any

from marketplace_bff.core.exceptions import MalformedRequestError, PersistedQueryNotFoundError
from marketplace_bff.infra.cache.keys import persisted_query_key
from marketplace_bff.infra.metrics.prometheus import (
    persisted_query_local_entries,
    persisted_query_registrations_total,
)
from marketplace_bff.infra.metrics.tracking import track_persisted_query_lookup

if TYPE_CHECKING:
    from collections.abc import Mapping

    from marketplace_bff.infra.cache import ResponseCache

logger = logging.getLogger(__name__)

APQ_VERSION = 1


def compute_hash(body: str) -> str:
    """SHA-256 hex digest of a query body, as Apollo clients compute it."""
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class PersistedQuery:
    """A registered query body addressable by its hash.

    ``shared`` is set when the body also reached the shared tier.
    """

    hash: str
    body: str
    registered_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    shared: bool = False


class PersistedQueryStore:
    """Two-tier hash to query body store.

    Example:
        store = PersistedQueryStore(response_cache, capacity=1000, ttl=86400)
        await store.register(compute_hash(body), body)
        assert await store.resolve(compute_hash(body)) == body
    """

    def __init__(
        self,
        cache: ResponseCache,
        capacity: int = 1000,
        ttl: int = 86400,
        verify_hash: bool = True,
    ) -> None:
        self._cache = cache
        self._local: OrderedDict[str, PersistedQuery] = OrderedDict()
        self.capacity = capacity
        self.ttl = ttl
        self.verify_hash = verify_hash

    def _remember(self, entry: PersistedQuery) -> None:
        self._local[entry.hash] = entry
        self._local.move_to_end(entry.hash)
        while len(self._local) > self.capacity:
            evicted, _ = self._local.popitem(last=False)
            logger.debug("Persisted query evicted from local tier", extra={"hash": evicted})
        persisted_query_local_entries.set(len(self._local))

    async def get(self, query_hash: str) -> str | None:
        """Query body for ``query_hash`` or ``None``.

        A shared-tier hit is copied into the local tier.
        """
        entry = self._local.get(query_hash)
        if entry is not None:
            self._local.move_to_end(query_hash)
            track_persisted_query_lookup("local", "hit")
            return entry.body
        track_persisted_query_lookup("local", "miss")

        cached = await self._cache.get(persisted_query_key(query_hash))
        if not isinstance(cached, dict) or not isinstance(cached.get("body"), str):
            track_persisted_query_lookup("shared", "miss")
            return None

        track_persisted_query_lookup("shared", "hit")
        try:
            registered_at = datetime.fromisoformat(cached["registered_at"])
        except (KeyError, TypeError, ValueError):
            registered_at = datetime.now(UTC)
        self._remember(
            PersistedQuery(hash=query_hash, body=cached["body"], registered_at=registered_at, shared=True)
        )
        return cached["body"]

    async def resolve(self, query_hash: str) -> str:
        """Query body for ``query_hash``.

        Raises:
            PersistedQueryNotFoundError: If the hash was never registered or
                has expired from both tiers.
        """
        body = await self.get(query_hash)
        if body is None:
            raise PersistedQueryNotFoundError(query_hash)
        return body

    async def register(self, query_hash: str, body: str) -> PersistedQuery:
        """Store ``body`` under ``query_hash``; the last write wins.

        The returned entry has ``shared`` unset when the shared tier is down
        or rejected the write, leaving the body on this replica only.

        Raises:
            MalformedRequestError: If hash verification is on and ``body``
                does not hash to ``query_hash``.
        """
        if self.verify_hash and compute_hash(body) != query_hash:
            persisted_query_registrations_total.labels(result="hash_mismatch").inc()
            raise MalformedRequestError(
                "provided sha does not match query",
                extra={"hash": query_hash},
            )

        previous = self._local.get(query_hash)
        if previous is not None and previous.body != body:
            logger.warning("Persisted query body replaced", extra={"hash": query_hash})

        registered_at = datetime.now(UTC)
        shared = await self._cache.set(
            persisted_query_key(query_hash),
            {"body": body, "registered_at": registered_at.isoformat()},
            ttl=self.ttl,
        )
        entry = PersistedQuery(hash=query_hash, body=body, registered_at=registered_at, shared=shared)
        self._remember(entry)
        if not shared:
            persisted_query_registrations_total.labels(result="local_only").inc()
            logger.warning("Persisted query kept in local tier only", extra={"hash": query_hash})
            return entry
        persisted_query_registrations_total.labels(result="ok").inc()
        logger.info("Persisted query registered", extra={"hash": query_hash})
        return entry

    async def evict(self, query_hash: str) -> bool:
        """Drop a hash from both tiers."""
        removed = self._local.pop(query_hash, None) is not None
        persisted_query_local_entries.set(len(self._local))
        shared = await self._cache.invalidate(persisted_query_key(query_hash))
        return removed or shared

    def stats(self) -> dict[str, Any]:
        return {
            "local_entries": len(self._local),
            "capacity": self.capacity,
            "ttl": self.ttl,
            "shared_tier": not self._cache.degraded,
        }


async def resolve_operation(
    store: PersistedQueryStore | None,
    query: str | None,
    extensions: Mapping[str, Any] | None,
) -> tuple[str, str | None]:
    """Work out the query text of one GraphQL request.

    Args:
        store: Persisted query store, ``None`` when APQ is disabled.
        query: ``query`` member of the request, if sent.
        extensions: ``extensions`` member of the request, if sent.

    Returns:
        The query text and the persisted hash it was addressed by, if any.

    Raises:
        MalformedRequestError: Missing query, unsupported protocol version,
            APQ disabled, or hash mismatch on registration.
        PersistedQueryNotFoundError: Hash-only request for an unknown hash.
    """
    persisted = (extensions or {}).get("persistedQuery")
    if persisted is None:
        if not query:
            msg = "Must provide query string."
            raise MalformedRequestError(msg)
        return query, None

    if store is None:
        raise MalformedRequestError(
            "PersistedQueryNotSupported",
            code="PERSISTED_QUERY_NOT_SUPPORTED",
        )
    if not isinstance(persisted, dict) or persisted.get("version") != APQ_VERSION:
        msg = "Unsupported persisted query version"
        raise MalformedRequestError(msg)
    query_hash = persisted.get("sha256Hash")
    if not isinstance(query_hash, str) or not query_hash:
        msg = "persistedQuery.sha256Hash is required"
        raise MalformedRequestError(msg)

    if query:
        await store.register(query_hash, query)
        return query, query_hash
    return await store.resolve(query_hash), query_hash


__all__ = [
    "PersistedQuery",
    "PersistedQueryStore",
    "compute_hash",
    "resolve_operation",
]
