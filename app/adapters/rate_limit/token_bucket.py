"""In-memory token bucket rate limiter.

Each key owns a bucket of ``capacity`` tokens refilled lazily at one token
per ``refill_interval_seconds``. Refill is computed in whole intervals at
consume time, so there are no per-key timers to cancel.

Notes:
- Per-process only: state lives in the limiter instance and dies with it.
- Not locked: every mutation runs synchronously inside a single event
  handler on the asyncio loop.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, replace
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass(frozen=True)
class TokenBucket:
    """Bucket snapshot: available tokens and when they were last topped up."""

    tokens: int
    last_refill: float


def refill_and_consume(
    bucket: TokenBucket,
    now: float,
    *,
    capacity: int,
    refill_interval_seconds: float = 1.0,
) -> tuple[TokenBucket, bool]:
    """Top up ``bucket`` for the elapsed time, then try to take one token.

    Only whole intervals count. When at least one token is added,
    ``last_refill`` moves to ``now`` and any partial interval is dropped.

    Returns:
        The updated bucket and whether a token was taken. A rejected call
        returns the (possibly refilled) bucket unchanged otherwise.
    """
    tokens_to_add = math.floor((now - bucket.last_refill) / refill_interval_seconds)
    if tokens_to_add > 0:
        bucket = TokenBucket(
            tokens=min(capacity, bucket.tokens + tokens_to_add),
            last_refill=now,
        )

    if bucket.tokens > 0:
        return replace(bucket, tokens=bucket.tokens - 1), True
    return bucket, False


class InMemoryTokenBucketRateLimiter(AbstractRateLimiter):
    """Token bucket limiter keyed by connection id.

    A key seen for the first time starts with a full bucket. ``discard``
    drops the key, so a reconnect under the same id starts full again.
    """

    def __init__(
        self,
        *,
        capacity: int = 10,
        refill_interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the limiter.

        Args:
            capacity: Maximum (and initial) tokens per key.
            refill_interval_seconds: Seconds needed to regain one token.
            clock: Time source returning seconds.

        Raises:
            ValueError: If capacity or refill_interval_seconds are invalid.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if refill_interval_seconds <= 0:
            raise ValueError("refill_interval_seconds must be > 0")

        self._capacity = capacity
        self._refill_interval = refill_interval_seconds
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def peek(self, key: str) -> TokenBucket | None:
        """Return the stored bucket for ``key`` without refilling it."""
        return self._buckets.get(key)

    def consume(self, key: str) -> RateLimitResult:
        """Take one token from ``key``'s bucket if one is available.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = TokenBucket(tokens=self._capacity, last_refill=now)

        bucket, allowed = refill_and_consume(
            bucket,
            now,
            capacity=self._capacity,
            refill_interval_seconds=self._refill_interval,
        )
        self._buckets[key] = bucket

        retry_after = None
        if not allowed:
            elapsed = now - bucket.last_refill
            retry_after = max(0.0, self._refill_interval - elapsed)

        return RateLimitResult(
            allowed=allowed,
            limit=self._capacity,
            remaining=bucket.tokens,
            retry_after_seconds=retry_after,
        )

    def discard(self, key: str) -> None:
        self._buckets.pop(key, None)
