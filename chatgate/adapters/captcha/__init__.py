"""CAPTCHA verification adapters."""

from chatgate.adapters.captcha.base import AbstractCaptchaClient, CaptchaVerdict
from chatgate.adapters.captcha.http_client import DEFAULT_VERIFY_URL, HttpCaptchaClient

__all__ = [
    "AbstractCaptchaClient",
    "CaptchaVerdict",
    "DEFAULT_VERIFY_URL",
    "HttpCaptchaClient",
]
