from __future__ import annotations

from marketplace_bff.utils.retry.classify import is_transient
from marketplace_bff.utils.retry.decorator import backoff_delay, retry
from marketplace_bff.utils.retry.exceptions import RetryError

__all__ = ["RetryError", "backoff_delay", "is_transient", "retry"]
