"""Background expiry sweep for rate limit entries.

The sweep runs on its own asyncio task at a fixed interval, independent of
request traffic. ``start()``/``stop()`` are called from the application
lifespan; tests call ``limiter.sweep()`` directly or drive the task with a
short interval.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from chatgate.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)


class RateLimitSweeper:
    """Periodically removes expired entries from a limiter's store."""

    def __init__(self, limiter: AbstractRateLimiter, *, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._limiter = limiter
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="rate-limit-sweeper"
        )
        logger.info("rate_limit.sweeper_started", extra={"interval_s": self._interval})

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("rate_limit.sweeper_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._limiter.sweep()
            except Exception:
                # A failed sweep only delays cleanup; keep the loop alive.
                logger.exception("rate_limit.sweep_failed")
