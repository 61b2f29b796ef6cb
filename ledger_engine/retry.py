"""
Bounded retry for transient persistence errors.

Only TransientStoreError is retried; business-rule errors propagate on the
first attempt.
"""

import logging
import time
from typing import Callable, TypeVar

from .errors import RetryExhausted, TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_retry(
    operation: Callable[[], T],
    description: str,
    attempts: int = 3,
    backoff_seconds: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run operation up to `attempts` times, doubling the wait after each conflict."""
    delay = backoff_seconds
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except TransientStoreError as e:
            if attempt == attempts:
                raise RetryExhausted(description, attempts, e) from e
            logger.warning(f"{description}: transient error on attempt {attempt}/{attempts}: {e}")
            sleep(delay)
            delay *= 2
    raise RetryExhausted(description, attempts, TransientStoreError("no attempts made"))
