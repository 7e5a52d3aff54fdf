"""Bounded exponential-backoff retry for engine operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_MARKERS = (
    "timeout",
    "timed out",
    "network",
    "connection",
    "econnrefused",
    "socket",
    "cdp",
    "transport closed",
)


def is_retryable_error(error: BaseException) -> bool:
    """True iff the message looks like a transient timeout or transport failure."""
    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_MARKERS)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    should_retry: Callable[[BaseException], bool] = is_retryable_error,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> T:
    """Run ``operation`` up to ``max_attempts`` times.

    Attempt n (1-based) that fails with a retryable error is followed by a
    sleep of ``min(base_delay * 2**(n-1), max_delay)``. A non-retryable error
    is raised unchanged after the attempt that produced it; when attempts are
    exhausted the last error is raised.

    Args:
        operation: Zero-argument callable returning an awaitable (a coroutine
            function or a lambda wrapping one)
        max_attempts: Total attempts, including the first
        base_delay: Delay after the first failed attempt, in seconds
        max_delay: Upper bound on any single delay, in seconds
        should_retry: Predicate deciding whether an error is worth retrying
        sleep: Awaitable sleep, injectable for tests
        log: Logger used for the before-sleep warning

    Returns:
        Whatever ``operation`` returns on its first successful attempt
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        retry=retry_if_exception(should_retry),
        sleep=sleep,
        before_sleep=before_sleep_log(log or logger, logging.WARNING),
        reraise=True,
    )
    # operation may be a plain lambda that returns a coroutine
    async for attempt in retrying:
        with attempt:
            return await operation()
    raise RuntimeError("retry loop ended without an attempt")
