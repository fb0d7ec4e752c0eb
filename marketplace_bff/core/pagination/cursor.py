"""Cursor encoding and decoding for pagination.

Cursors are opaque strings that encode a zero-based row offset together with
a fingerprint of the query shape (list field, filters, sort) that produced
them. A cursor replayed against a different filter set is rejected instead of
silently skipping rows.

The cursor format is:
1. Compact JSON object ``{"o": offset, "f": fingerprint}``
2. Base64 URL-safe encoded for use in URLs

Example cursor payload:
    {"o":19,"f":"3f0a9c1e2b7d4a58"}
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from typing import Any

from pydantic import BaseModel, Field

from marketplace_bff.core.exceptions import InvalidCursorError

FINGERPRINT_LENGTH = 16


def fingerprint(namespace: str, **shape: Any) -> str:
    """Fingerprint a query shape.

    Args:
        namespace: List field the cursor belongs to, e.g. ``"products"``.
        **shape: Filters and sort arguments; ``None`` values are ignored so an
            omitted filter and an explicit null produce the same fingerprint.

    Returns:
        Short hex digest, stable across processes.
    """
    canonical = json.dumps(
        {"n": namespace, "s": {k: v for k, v in shape.items() if v is not None}},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(canonical.encode()).hexdigest()[:FINGERPRINT_LENGTH]


class CursorData(BaseModel):
    """Internal representation of cursor data.

    Attributes:
        offset: Zero-based position of the row the cursor points at.
        fingerprint: Query shape fingerprint, empty when unscoped.
    """

    offset: int = Field(ge=0, description="Zero-based row offset")
    fingerprint: str = Field(default="", description="Query shape fingerprint")

    model_config = {"frozen": True}


class CursorCodec:
    """Encode and decode pagination cursors.

    Usage:
        cursor = CursorCodec.encode(CursorData(offset=19, fingerprint=fp))
        data = CursorCodec.decode(cursor, expected_fingerprint=fp)
        print(data.offset)  # 19
    """

    @staticmethod
    def encode(data: CursorData) -> str:
        """Encode cursor data to an opaque string.

        Args:
            data: Offset and fingerprint.

        Returns:
            URL-safe base64 encoded string.
        """
        payload: dict[str, Any] = {"o": data.offset}
        if data.fingerprint:
            payload["f"] = data.fingerprint
        json_str = json.dumps(payload, separators=(",", ":"))
        return base64.urlsafe_b64encode(json_str.encode()).decode()

    @staticmethod
    def decode(cursor: str, expected_fingerprint: str | None = None) -> CursorData:
        """Decode a cursor string to cursor data.

        Args:
            cursor: URL-safe base64 encoded cursor string.
            expected_fingerprint: When given, the cursor must carry exactly
                this fingerprint.

        Returns:
            CursorData with the decoded offset.

        Raises:
            InvalidCursorError: If the cursor is not valid base64 JSON, has a
                negative or non-integer offset, or belongs to another query.
        """
        try:
            json_str = base64.urlsafe_b64decode(cursor.encode("ascii")).decode()
            payload = json.loads(json_str)
        except (UnicodeError, binascii.Error, ValueError) as e:
            raise InvalidCursorError(extra={"reason": "undecodable"}) from e

        if not isinstance(payload, dict):
            raise InvalidCursorError(extra={"reason": "not an object"})

        offset = payload.get("o")
        # bool is an int subclass
        if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
            raise InvalidCursorError(extra={"reason": "bad offset"})

        found = payload.get("f", "")
        if not isinstance(found, str):
            raise InvalidCursorError(extra={"reason": "bad fingerprint"})
        if expected_fingerprint is not None and found != expected_fingerprint:
            raise InvalidCursorError(
                "Cursor does not belong to this query",
                extra={"reason": "fingerprint mismatch"},
            )

        return CursorData(offset=offset, fingerprint=found)

    @staticmethod
    def for_offset(offset: int, namespace_fingerprint: str = "") -> str:
        """Shortcut for encoding a bare offset."""
        return CursorCodec.encode(CursorData(offset=offset, fingerprint=namespace_fingerprint))


__all__ = ["CursorCodec", "CursorData", "fingerprint"]
