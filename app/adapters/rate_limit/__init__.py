"""Rate limiting adapters.

The socket handlers depend on ``AbstractRateLimiter`` only, so the
per-process token bucket can later be swapped for a shared store without
touching the event handlers.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.token_bucket import (
    InMemoryTokenBucketRateLimiter,
    TokenBucket,
    refill_and_consume,
)

__all__ = [
    "AbstractRateLimiter",
    "InMemoryTokenBucketRateLimiter",
    "RateLimitResult",
    "TokenBucket",
    "refill_and_consume",
]
