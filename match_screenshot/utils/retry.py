"""Bounded retry for filesystem and process operations."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 4


def with_retry(
    operation: Callable[[], T],
    description: str = "",
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_on: tuple[type[BaseException], ...] = (OSError,),
) -> T:
    """Run ``operation`` up to ``max_attempts`` times.

    Only exceptions matching ``retry_on`` are retried. When the last attempt
    fails the original exception is re-raised unchanged.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    name = description or getattr(operation, "__name__", repr(operation))

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except retry_on as e:
            logger.warning("Operation failed: '%s' on attempt #%d: %s", name, attempt, e)
            if attempt == max_attempts:
                logger.warning("Giving up on '%s' after %d attempts", name, max_attempts)
                raise
    raise AssertionError("unreachable")
