"""Tests for the background rate limit sweeper lifecycle."""

import asyncio
from unittest.mock import Mock

import pytest

from chatgate.adapters.rate_limit import InMemoryFixedWindowRateLimiter, RateLimitSweeper


@pytest.mark.asyncio
async def test_sweeper_removes_expired_entries_on_interval() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=1, clock=clock)
    limiter.check("k")
    clock.return_value = 2000.0

    sweeper = RateLimitSweeper(limiter, interval_seconds=0.01)
    sweeper.start()
    try:
        for _ in range(100):
            if not limiter.store.keys():
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert limiter.store.keys() == []
    assert sweeper.running is False


@pytest.mark.asyncio
async def test_start_is_idempotent_and_stop_without_start_is_safe() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60)
    sweeper = RateLimitSweeper(limiter, interval_seconds=60)

    await sweeper.stop()
    sweeper.start()
    sweeper.start()
    assert sweeper.running is True

    await sweeper.stop()
    assert sweeper.running is False


@pytest.mark.asyncio
async def test_failing_sweep_keeps_loop_alive() -> None:
    calls = {"n": 0}

    def flaky_sweep() -> int:
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("boom")
        return 0

    limiter = Mock()
    limiter.sweep.side_effect = flaky_sweep

    sweeper = RateLimitSweeper(limiter, interval_seconds=0.001)
    sweeper.start()
    try:
        for _ in range(100):
            if limiter.sweep.call_count >= 2:
                break
            await asyncio.sleep(0.005)
        assert sweeper.running is True
    finally:
        await sweeper.stop()

    assert limiter.sweep.call_count >= 2


def test_invalid_interval_raises() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        RateLimitSweeper(limiter, interval_seconds=0)
