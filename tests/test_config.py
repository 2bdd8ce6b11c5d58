"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from chatgate.core.config import AppSettings, CaptchaSettings, LLMSettings


def test_captcha_secret_is_required(monkeypatch) -> None:
    monkeypatch.delenv("CAPTCHA_SECRET_KEY", raising=False)

    with pytest.raises(ValidationError):
        CaptchaSettings()


def test_blank_captcha_secret_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("CAPTCHA_SECRET_KEY", "")

    with pytest.raises(ValidationError):
        CaptchaSettings()


def test_upstream_key_is_required(monkeypatch) -> None:
    monkeypatch.delenv("LLM_API_KEY", raising=False)

    with pytest.raises(ValidationError):
        LLMSettings()


def test_gate_defaults(monkeypatch) -> None:
    for name in ("APP_RATE_LIMIT_REQUESTS", "APP_RATE_LIMIT_WINDOW_SECONDS", "APP_INJECTION_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)

    cfg = AppSettings()

    assert cfg.rate_limit_requests == 10
    assert cfg.rate_limit_window_seconds == 60
    assert cfg.max_message_chars == 2000
    assert cfg.max_history_items == 20
    assert cfg.forwarded_history_turns == 8
    assert cfg.injection_threshold == 3


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("APP_RATE_LIMIT_REQUESTS", "25")
    monkeypatch.setenv("CAPTCHA_VERIFY_URL", "https://challenges.cloudflare.com/turnstile/v0/siteverify")

    assert AppSettings().rate_limit_requests == 25
    assert "turnstile" in CaptchaSettings().verify_url
