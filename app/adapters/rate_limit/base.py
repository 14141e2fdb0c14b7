"""Rate limiter interfaces.

Callers depend on this abstraction (not the concrete implementation) so the
storage backend can be swapped (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a consume operation.

    Attributes:
        allowed: Whether the guarded action may proceed.
        limit: Bucket capacity.
        remaining: Tokens left after this call.
        retry_after_seconds: Seconds until the next token when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: float | None


class AbstractRateLimiter(ABC):
    """Interface for per-key rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Consume one unit of budget for a given key.

        Args:
            key: Unique identifier (e.g., Socket.IO connection id).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def discard(self, key: str) -> None:
        """Forget all state for ``key``. Unknown keys are ignored."""
        raise NotImplementedError
