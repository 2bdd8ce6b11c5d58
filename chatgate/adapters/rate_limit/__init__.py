"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory limiter and later migrate to Redis or another shared store
without changing the admission pipeline.
"""

from chatgate.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitEntry,
    RateLimitResult,
    RateLimitStore,
)
from chatgate.adapters.rate_limit.in_memory import (
    InMemoryFixedWindowRateLimiter,
    InMemoryRateLimitStore,
)
from chatgate.adapters.rate_limit.sweeper import RateLimitSweeper

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "InMemoryRateLimitStore",
    "RateLimitEntry",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimitSweeper",
]
