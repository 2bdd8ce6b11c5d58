"""Spam-rate monitor over the CAPTCHA audit log.

Reports the share of failed verification attempts within a trailing window.
A high failure rate usually means a bot is hammering the public forms.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from chatgate.adapters.audit.base import AbstractCaptchaLogStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(hours=24)
DEFAULT_MIN_ATTEMPTS = 5
DEFAULT_ALERT_THRESHOLD_PERCENT = 20.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SpamRateStatus(str, Enum):
    OK = "ok"
    ALERT = "alert"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class SpamRateReport:
    status: SpamRateStatus
    total_attempts: int
    failed_attempts: int
    spam_rate_percent: float
    threshold_percent: float
    window_start: datetime
    window_end: datetime

    @property
    def alert(self) -> bool:
        return self.status is SpamRateStatus.ALERT


async def compute_spam_rate(
    store: AbstractCaptchaLogStore,
    now: datetime,
    *,
    window: timedelta = DEFAULT_WINDOW,
    min_attempts: int = DEFAULT_MIN_ATTEMPTS,
    threshold_percent: float = DEFAULT_ALERT_THRESHOLD_PERCENT,
) -> SpamRateReport:
    """Compute the failed/total CAPTCHA ratio for ``[now - window, now]``.

    Args:
        store: Audit log to read.
        now: End of the window (timezone-aware).
        window: Trailing window length.
        min_attempts: Below this many attempts the rate is not meaningful.
        threshold_percent: Failure percentage at which the status is ``alert``.

    Returns:
        SpamRateReport: Counts, rate rounded to two decimals, and status.
    """

    start = now - window
    records = [r for r in await store.list_since(start) if r.timestamp <= now]
    total = len(records)
    failed = sum(1 for r in records if not r.success)
    rate = round(failed / total * 100, 2) if total else 0.0

    if total < min_attempts:
        status = SpamRateStatus.INSUFFICIENT_DATA
    elif rate >= threshold_percent:
        status = SpamRateStatus.ALERT
    else:
        status = SpamRateStatus.OK

    report = SpamRateReport(
        status=status,
        total_attempts=total,
        failed_attempts=failed,
        spam_rate_percent=rate,
        threshold_percent=threshold_percent,
        window_start=start,
        window_end=now,
    )
    if report.alert:
        logger.warning(
            "captcha.spam_rate_alert",
            extra={"total": total, "failed": failed, "rate_percent": rate},
        )
    else:
        logger.info(
            "captcha.spam_rate",
            extra={"status": status.value, "total": total, "failed": failed},
        )
    return report


class SpamRateWatcher:
    """Runs ``compute_spam_rate`` on its own asyncio task at a fixed interval.

    Alerts are surfaced as ``captcha.spam_rate_alert`` log events.
    """

    def __init__(
        self,
        store: AbstractCaptchaLogStore,
        *,
        interval_seconds: float,
        clock: Callable[[], datetime] = _utcnow,
        window: timedelta = DEFAULT_WINDOW,
        min_attempts: int = DEFAULT_MIN_ATTEMPTS,
        threshold_percent: float = DEFAULT_ALERT_THRESHOLD_PERCENT,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._store = store
        self._interval = interval_seconds
        self._clock = clock
        self._window = window
        self._min_attempts = min_attempts
        self._threshold = threshold_percent
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> SpamRateReport:
        return await compute_spam_rate(
            self._store,
            self._clock(),
            window=self._window,
            min_attempts=self._min_attempts,
            threshold_percent=self._threshold,
        )

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="spam-rate-watcher"
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.check()
            except Exception:
                logger.exception("captcha.spam_rate_check_failed")
