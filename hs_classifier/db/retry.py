"""Bounded retry for persistence operations.

Only failures classified as ``ErrorKind.NETWORK`` are retried; everything
else surfaces on the first attempt. Delay grows by ``backoff`` per retry,
with no jitter and no overall time cap.
"""
from __future__ import annotations

import time
from typing import Callable, TypeVar

from hs_classifier.config.constants import (
    DEFAULT_STORE_RETRY_DELAY,
    STORE_RETRIES,
    STORE_RETRY_BACKOFF,
)
from hs_classifier.config.exceptions import ErrorKind, StoreOperationFailed
from hs_classifier.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def with_retry(
    operation: Callable[[], T],
    *,
    retries: int = STORE_RETRIES,
    delay: float = DEFAULT_STORE_RETRY_DELAY,
    backoff: float = STORE_RETRY_BACKOFF,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    attempt = 0
    while True:
        try:
            return operation()
        except StoreOperationFailed as e:
            if e.kind is not ErrorKind.NETWORK or attempt >= retries:
                raise
            attempt += 1
            logger.warning(
                "Transient store failure (%s); retry %d/%d in %.2fs",
                e,
                attempt,
                retries,
                delay,
            )
            sleep(delay)
            delay *= backoff


__all__ = ["with_retry"]
