"""Fixed-window request limiter keyed by client identity.

Each identity owns a bucket holding the start of its current window and
the number of requests counted in it.  The bucket is created on the first
request and reset wholesale once the window has elapsed.  Because windows
are fixed rather than sliding, a client that bursts at the end of one
window and the start of the next can get up to twice ``max_requests``
through in a short span.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

Clock = Callable[[], float]


@dataclass
class RateLimitBucket:
    window_start: float
    count: int = 0


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single :meth:`FixedWindowRateLimiter.hit`."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    def headers(self) -> dict[str, str]:
        """IETF draft ``RateLimit-*`` headers describing this decision."""
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(math.ceil(self.reset_after)),
        }


class FixedWindowRateLimiter:
    """Count requests per key in fixed windows of ``window_seconds``.

    The clock is injectable so tests can move time forward without
    sleeping.  ``hit`` never awaits, which keeps the check-and-increment
    atomic inside a single event loop.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        name: str = "default",
        clock: Optional[Clock] = None,
        purge_threshold: int = 10_000,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self._clock: Clock = clock or time.monotonic
        self._purge_threshold = purge_threshold
        self._buckets: dict[str, RateLimitBucket] = {}

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and report whether it is allowed."""
        now = self._clock()
        bucket = self._buckets.get(key)
        if bucket is None or now - bucket.window_start >= self.window_seconds:
            if bucket is None and len(self._buckets) >= self._purge_threshold:
                self.purge_expired()
            bucket = RateLimitBucket(window_start=now)
            self._buckets[key] = bucket

        reset_after = max(0.0, bucket.window_start + self.window_seconds - now)
        if bucket.count >= self.max_requests:
            logger.warning(
                "Rate limit '{}' exceeded for {} ({} requests / {}s)",
                self.name,
                key,
                self.max_requests,
                self.window_seconds,
            )
            return RateLimitDecision(False, self.max_requests, 0, reset_after)

        bucket.count += 1
        return RateLimitDecision(
            True, self.max_requests, self.max_requests - bucket.count, reset_after
        )

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key, or every key when ``key`` is ``None``."""
        if key is None:
            self._buckets.clear()
        else:
            self._buckets.pop(key, None)

    def purge_expired(self) -> int:
        """Drop buckets whose window has elapsed; return how many were dropped."""
        now = self._clock()
        expired = [
            key
            for key, bucket in self._buckets.items()
            if now - bucket.window_start >= self.window_seconds
        ]
        for key in expired:
            del self._buckets[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._buckets)
