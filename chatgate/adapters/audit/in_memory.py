from __future__ import annotations

import threading
from datetime import datetime

from chatgate.adapters.audit.base import AbstractCaptchaLogStore, CaptchaLogRecord


class InMemoryCaptchaLogStore(AbstractCaptchaLogStore):
    """Process-local audit store for development and tests.

    Records are lost on restart.
    """

    def __init__(self) -> None:
        self._records: list[CaptchaLogRecord] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def records(self) -> list[CaptchaLogRecord]:
        with self._lock:
            return list(self._records)

    async def append(self, record: CaptchaLogRecord) -> None:
        with self._lock:
            self._records.append(record)

    async def list_since(self, since: datetime) -> list[CaptchaLogRecord]:
        with self._lock:
            return [r for r in self._records if r.timestamp >= since]
