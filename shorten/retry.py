"""Bounded retry with a fixed delay."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import StorageError

T = TypeVar("T")


async def retry_fixed(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 10,
    delay: float = 1.0,
    description: str = "operation",
    logger: Optional[logging.Logger] = None,
) -> T:
    """Run ``operation`` until it succeeds or ``attempts`` runs fail.

    Args:
        operation: Zero-argument coroutine function to call
        attempts: Maximum number of calls
        delay: Seconds to sleep between failed calls
        description: Used in log lines and in the final error
        logger: Optional logger instance

    Returns:
        Whatever the first successful call returned

    Raises:
        StorageError: With stage ``connect``, chained from the last failure
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    logger = logger or logging.getLogger(__name__)
    last_error: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            logger.warning(f"{description} failed (attempt {attempt}/{attempts}): {e}")

        if attempt < attempts:
            await asyncio.sleep(delay)

    raise StorageError(f"{description} failed after {attempts} attempts", stage="connect") from last_error
