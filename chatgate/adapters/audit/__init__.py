"""CAPTCHA audit log stores."""

from chatgate.adapters.audit.base import AbstractCaptchaLogStore, CaptchaLogRecord
from chatgate.adapters.audit.in_memory import InMemoryCaptchaLogStore
from chatgate.adapters.audit.jsonl import JsonlCaptchaLogStore

__all__ = [
    "AbstractCaptchaLogStore",
    "CaptchaLogRecord",
    "InMemoryCaptchaLogStore",
    "JsonlCaptchaLogStore",
]
