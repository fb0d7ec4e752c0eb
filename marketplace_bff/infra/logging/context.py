"""Context management for structured logging.

Request-scoped fields (correlation id, subject id, operation name) are kept
in a ContextVar and copied onto every log record by ``ContextInjectingFilter``.
Each asyncio task sees its own copy, so concurrent requests never mix fields.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        set_log_context(correlation_id="abc-123")
        logger.info("Resolving operation")  # Includes correlation_id
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current task."""
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Logging filter that injects the contextvars log context into records.

    Attached to the root logger's handler so every logger benefits:

        "filters": {
            "context": {"()": "marketplace_bff.infra.logging.context.ContextInjectingFilter"}
        }
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            # Don't overwrite attributes passed through extra=
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
