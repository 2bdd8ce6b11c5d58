from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class CaptchaLogRecord:
    """One CAPTCHA verification attempt, successful or not."""

    form_type: str
    ip_address: str
    user_agent: str
    success: bool
    timestamp: datetime
    error_codes: tuple[str, ...] = field(default_factory=tuple)
    score: float | None = None
    hostname: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["error_codes"] = list(self.error_codes)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaptchaLogRecord:
        return cls(
            form_type=str(data["form_type"]),
            ip_address=str(data["ip_address"]),
            user_agent=str(data.get("user_agent") or ""),
            success=bool(data["success"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            error_codes=tuple(data.get("error_codes") or ()),
            score=data.get("score"),
            hostname=data.get("hostname"),
        )


class AbstractCaptchaLogStore(ABC):
    """Append-only sink for CAPTCHA verification attempts."""

    @abstractmethod
    async def append(self, record: CaptchaLogRecord) -> None:
        """Persist one attempt."""
        ...

    @abstractmethod
    async def list_since(self, since: datetime) -> list[CaptchaLogRecord]:
        """Return attempts with ``timestamp >= since``, oldest first."""
        ...
