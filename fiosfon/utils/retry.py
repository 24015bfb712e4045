"""
Retry utility with exponential backoff for transient feed failures.
The iTunes RSS and Lookup endpoints occasionally answer 429 or 5xx
under load; those are retried, everything else is raised at once.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp

from fiosfon.utils import logger

log = logger.create_logger("Retry")

T = TypeVar("T")

_RETRYABLE_EXCEPTIONS = (ConnectionError, TimeoutError, asyncio.TimeoutError, aiohttp.ClientConnectionError)


def _status_of(error: BaseException) -> int | None:
    """Return an HTTP status carried by *error*, if any."""
    for attr in ("status", "status_code"):
        status = getattr(error, attr, None)
        if isinstance(status, int):
            return status
    return None


def is_rate_limit_error(error: BaseException) -> bool:
    """Check if the error is a rate limit (429) error."""
    if _status_of(error) == 429:
        return True
    return "rate limit" in str(error).lower()


def is_retryable_error(error: BaseException) -> bool:
    """Check if the error is retryable (rate limit, server or connection error)."""
    if is_rate_limit_error(error):
        return True
    status = _status_of(error)
    if status is not None and 500 <= status < 600:
        return True
    if isinstance(error, _RETRYABLE_EXCEPTIONS):
        return True
    # aiohttp connection errors wrapped by the feed client carry no status.
    cause = error.__cause__
    return cause is not None and isinstance(cause, _RETRYABLE_EXCEPTIONS)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    initial_delay_ms: int = 1000,
    max_delay_ms: int = 30000,
    backoff_multiplier: float = 2.0,
    context: str | None = None,
) -> T:
    """
    Execute an async function with automatic retry on transient failures.
    Uses exponential backoff with ±20% jitter.
    """
    delay = initial_delay_ms

    for attempt in range(max_retries + 1):
        try:
            return await fn()
        except Exception as error:
            if not is_retryable_error(error):
                raise

            if attempt >= max_retries:
                log.warn(
                    "All retry attempts exhausted",
                    {"context": context, "attempts": attempt + 1, "error": str(error)},
                )
                raise

            jitter = delay * 0.2 * (random.random() * 2 - 1)
            delay_with_jitter = min(round(delay + jitter), max_delay_ms)

            log.warn(
                "Retrying after transient error",
                {
                    "context": context,
                    "attempt": attempt + 1,
                    "maxRetries": max_retries,
                    "delayMs": delay_with_jitter,
                    "isRateLimit": is_rate_limit_error(error),
                    "error": str(error)[:100],
                },
            )

            await asyncio.sleep(delay_with_jitter / 1000)
            delay = min(int(delay * backoff_multiplier), max_delay_ms)

    raise AssertionError("unreachable")
