"""Async retry decorator used by the entity store adapters."""

from __future__ import annotations

import asyncio
from functools import wraps
import logging
from typing import TYPE_CHECKING, ParamSpec, TypeVar

from marketplace_bff.infra.metrics.tracking import (
    track_retry_attempt,
    track_retry_exhausted,
    track_retry_success,
)

from .classify import is_transient
from .exceptions import RetryError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def backoff_delay(attempt: int, initial_delay: float, max_delay: float) -> float:
    """Seconds to wait before retry number ``attempt + 1``; doubles up to ``max_delay``."""
    return min(initial_delay * 2**attempt, max_delay)


def retry(
    max_attempts: int = 3,
    initial_delay: float = 0.2,
    max_delay: float = 5.0,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Retry an async store call on transient database errors.

    Errors ``is_transient`` rejects propagate unchanged on the first
    attempt. When every attempt fails a ``RetryError`` is raised from the
    last exception.

    Example:
        @retry(max_attempts=3, initial_delay=0.2)
        async def find_by_ids(self, ids): ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        name = func.__qualname__

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            attempt = 0
            while True:
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    if not is_transient(e):
                        raise

                    if attempt >= max_attempts - 1:
                        track_retry_exhausted(name)
                        logger.error(
                            "All retry attempts exhausted for %s",
                            name,
                            extra={"function": name, "attempts": attempt + 1, "last_exception": str(e)},
                        )
                        raise RetryError(e, attempt + 1) from e

                    delay = backoff_delay(attempt, initial_delay, max_delay)
                    attempt += 1
                    track_retry_attempt(name, attempt + 1)
                    logger.warning(
                        "Retrying %s after %.2fs (attempt %d/%d)",
                        name,
                        delay,
                        attempt,
                        max_attempts,
                        extra={"function": name, "exception": str(e)},
                    )
                    await asyncio.sleep(delay)
                else:
                    if attempt > 0:
                        track_retry_success(name, attempt + 1)
                    return result

        return async_wrapper

    return decorator
