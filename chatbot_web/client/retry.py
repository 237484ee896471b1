"""Retry-with-backoff for outbound requests.

The default policy retries every failure, including 4xx responses that
will fail the same way again.  ``retry_server_errors_only`` is available
for callers that want to stop early on permanent errors.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from .network import ChatRequestError, ConnectionFailure

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
RetryPredicate = Callable[[BaseException], bool]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """Seconds to wait after failed ``attempt`` (1-based): 1s, 2s, 4s, ..."""
    return base_delay * 2 ** (attempt - 1)


def retry_server_errors_only(exc: BaseException) -> bool:
    """Retry connection failures, 429 and 5xx; give up on other 4xx."""
    if isinstance(exc, ConnectionFailure):
        return True
    if isinstance(exc, ChatRequestError):
        return exc.status_code == 429 or exc.status_code >= 500
    return False


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    *,
    sleep: Sleep = asyncio.sleep,
    should_retry: Optional[RetryPredicate] = None,
) -> T:
    """Await ``operation`` until it succeeds or ``max_attempts`` are used up.

    After failed attempt ``n`` the controller waits ``backoff_delay(n)``
    before trying again.  No jitter is applied.  The last error is
    re-raised unchanged once the attempts run out or ``should_retry``
    declines it.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            logger.warning("Request attempt {} failed: {}", attempt, exc)

            if should_retry is not None and not should_retry(exc):
                logger.info("Error is not retryable; giving up after attempt {}", attempt)
                raise
            if attempt >= max_attempts:
                logger.error("All {} attempts failed", max_attempts)
                raise

            delay = backoff_delay(attempt, base_delay)
            logger.info("Retrying in {:.0f}ms...", delay * 1000)
        await sleep(delay)
        attempt += 1
