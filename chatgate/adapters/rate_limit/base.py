"""Rate limiter interfaces.

The pipeline depends on these abstractions (not the concrete implementation)
so the counter storage can be swapped (e.g., Redis) and tests can substitute
an in-memory store driven by a fake clock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitEntry:
    """Counter for one client in its current window.

    Attributes:
        count: Admitted requests so far in this window.
        reset_at: UNIX epoch seconds at which the window ends.
    """

    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


class RateLimitStore(ABC):
    """Key/value storage for per-client window counters."""

    @abstractmethod
    def get(self, key: str) -> RateLimitEntry | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, entry: RateLimitEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> list[str]:
        """Return a snapshot of the stored keys."""
        raise NotImplementedError


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str) -> RateLimitResult:
        """Check and, when allowed, count one request for a given key.

        Args:
            key: Client identity (e.g., forwarded IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Delete expired entries and return how many were removed."""
        raise NotImplementedError
