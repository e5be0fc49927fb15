"""Retry logic with exponential backoff.

Used for idempotent reads against the content API. Writes (save, delete)
are never retried automatically.
Respects the `retryable` attribute of MindstoreError subclasses.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from .exceptions import MindstoreError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool) -> float:
    """Delay before the attempt following `attempt` (1-based)."""
    delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random())
    return delay


async def retry_async(
    func: Callable[P, Awaitable[T]],
    *args: P.args,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: bool = True,
    **kwargs: P.kwargs,
) -> T:
    """Retry an async function with exponential backoff.

    Only MindstoreError instances flagged retryable are retried; any other
    exception, and non-retryable MindstoreErrors, propagate immediately.

    Args:
        func: Async function to call.
        *args: Positional arguments for func.
        max_attempts: Maximum number of attempts (default 3).
        base_delay: Initial delay between retries in seconds (default 0.5).
        max_delay: Maximum delay cap in seconds (default 10.0).
        jitter: Add random jitter to delays (default True).
        **kwargs: Keyword arguments for func.

    Returns:
        Result from successful func call.

    Raises:
        MindstoreError: The last error once attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except MindstoreError as e:
            if not e.retryable:
                logger.debug(
                    "Non-retryable error on attempt %d/%d: %s",
                    attempt,
                    max_attempts,
                    e,
                )
                raise

            if attempt == max_attempts:
                logger.warning(
                    "All %d attempts failed for %s: %s",
                    max_attempts,
                    getattr(func, "__name__", repr(func)),
                    e,
                )
                raise

            delay = backoff_delay(attempt, base_delay, max_delay, jitter)
            logger.info(
                "Attempt %d/%d failed for %s, retrying in %.2fs: %s",
                attempt,
                max_attempts,
                getattr(func, "__name__", repr(func)),
                delay,
                e,
            )
            await asyncio.sleep(delay)

    raise RuntimeError("Retry logic error: no attempts made")
