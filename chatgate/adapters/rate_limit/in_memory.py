"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: check-then-increment runs under a per-key lock (striped), so
  concurrent requests for one client never push its count past the limit.
- A window starts at the client's first request (``reset_at = now + window``)
  rather than on a wall-clock boundary. Up to 2x the limit can pass across a
  window edge; that burst is the accepted cost of O(1) state per client.
"""

from __future__ import annotations

import logging
import math
import threading
import time
import zlib
from typing import Callable

from chatgate.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitEntry,
    RateLimitResult,
    RateLimitStore,
)

logger = logging.getLogger(__name__)


class InMemoryRateLimitStore(RateLimitStore):
    """Dict-backed store. Callers serialize access per key."""

    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> RateLimitEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._entries)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using one fixed window per client key.

    A rejected request neither increments the counter nor moves ``reset_at``,
    so hammering the endpoint while blocked does not extend the block.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        store: RateLimitStore | None = None,
        clock: Callable[[], float] = time.time,
        lock_stripes: int = 64,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_seconds: Size of the window in seconds.
            store: Counter storage; a fresh in-memory store when omitted.
            clock: Time source function returning UNIX time in seconds.
            lock_stripes: Number of locks keys are hashed onto.

        Raises:
            ValueError: If limit, window_seconds or lock_stripes are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if lock_stripes < 1:
            raise ValueError("lock_stripes must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        self._locks = [threading.Lock() for _ in range(lock_stripes)]

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def store(self) -> RateLimitStore:
        return self._store

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[zlib.crc32(key.encode("utf-8")) % len(self._locks)]

    def _build_allowed_result(self, *, count: int, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset_at=reset_at,
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, reset_at: float) -> RateLimitResult:
        retry_after = max(1, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )

    def check(self, key: str) -> RateLimitResult:
        """Check the window for ``key`` and count the request if admitted.

        Args:
            key: Client identity.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock_for(key):
            now = self._clock()
            entry = self._store.get(key)

            if entry is None or entry.reset_at <= now:
                fresh = RateLimitEntry(count=1, reset_at=now + self._window_seconds)
                self._store.set(key, fresh)
                return self._build_allowed_result(count=fresh.count, reset_at=fresh.reset_at)

            if entry.count >= self._limit:
                return self._build_blocked_result(now=now, reset_at=entry.reset_at)

            updated = RateLimitEntry(count=entry.count + 1, reset_at=entry.reset_at)
            self._store.set(key, updated)
            return self._build_allowed_result(count=updated.count, reset_at=updated.reset_at)

    def sweep(self) -> int:
        """Delete entries whose window has ended.

        Works on a snapshot of the keys and takes only the lock of the key
        being examined, so request handling is never blocked for the whole map.
        """
        removed = 0
        for key in self._store.keys():
            with self._lock_for(key):
                entry = self._store.get(key)
                if entry is not None and entry.reset_at <= self._clock():
                    self._store.delete(key)
                    removed += 1

        if removed:
            logger.debug("rate_limit.swept", extra={"removed": removed})
        return removed
