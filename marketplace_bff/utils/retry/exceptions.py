"""Exception raised when retries run out."""

from __future__ import annotations


class RetryError(Exception):
    """Raised after exhausting retry attempts.

    The last underlying exception is kept as ``last_exception`` and chained
    as ``__cause__``.
    """

    def __init__(self, last_exception: Exception, attempts: int) -> None:
        self.last_exception = last_exception
        self.attempts = attempts
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_exception}")
