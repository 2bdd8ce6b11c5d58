"""JSON Lines audit store.

One record per line, appended. File I/O runs in a worker thread so the event
loop is not blocked; a lock serializes writers within the process.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from datetime import datetime
from pathlib import Path

from chatgate.adapters.audit.base import AbstractCaptchaLogStore, CaptchaLogRecord

logger = logging.getLogger(__name__)


class JsonlCaptchaLogStore(AbstractCaptchaLogStore):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def append(self, record: CaptchaLogRecord) -> None:
        line = json.dumps(record.to_dict(), ensure_ascii=False)
        await asyncio.to_thread(self._write_line, line)

    async def list_since(self, since: datetime) -> list[CaptchaLogRecord]:
        return await asyncio.to_thread(self._read_since, since)

    def _write_line(self, line: str) -> None:
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")

    def _read_since(self, since: datetime) -> list[CaptchaLogRecord]:
        with self._lock:
            if not self._path.exists():
                return []
            lines = self._path.read_text(encoding="utf-8").splitlines()

        records: list[CaptchaLogRecord] = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                record = CaptchaLogRecord.from_dict(json.loads(line))
            except (ValueError, KeyError, TypeError):
                logger.warning(
                    "captcha_audit.corrupt_line",
                    extra={"path": str(self._path), "line": lineno},
                )
                continue
            if record.timestamp >= since:
                records.append(record)
        return records
