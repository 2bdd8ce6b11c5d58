"""Pytest configuration and fixtures shared across all test modules.

Required settings are seeded into the environment before anything imports
``chatgate.core.config`` (which validates settings at import time).
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("CAPTCHA_SECRET_KEY", "test-captcha-secret")
os.environ.setdefault("APP_AUDIT_BACKEND", "memory")

from datetime import datetime, timezone
from typing import Callable
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chatgate.adapters.audit import InMemoryCaptchaLogStore
from chatgate.adapters.captcha import AbstractCaptchaClient, CaptchaVerdict
from chatgate.adapters.llm import AbstractChatClient, ChatMessage
from chatgate.adapters.rate_limit import InMemoryFixedWindowRateLimiter
from chatgate.core.app_factory import create_app
from chatgate.services.admission_pipeline import AdmissionPipeline
from chatgate.services.captcha_service import CaptchaVerifier
from chatgate.services.container import GateServices
from chatgate.services.injection_scorer import InjectionHeuristicScorer

VALID_TOKEN = "valid-token"
FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FakeCaptchaClient(AbstractCaptchaClient):
    """Accepts only ``VALID_TOKEN``; records every call."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.error = error

    async def siteverify(self, secret: str, token: str) -> CaptchaVerdict:
        self.calls.append((secret, token))
        if self.error is not None:
            raise self.error
        if token == VALID_TOKEN:
            return CaptchaVerdict(success=True, score=0.9, hostname="localhost")
        return CaptchaVerdict(success=False, error_codes=("invalid-input-response",))


class FakeChatClient(AbstractChatClient):
    def __init__(self, reply: str | None = "Bună! Cu ce te pot ajuta?", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str | None:
        self.calls.append(
            {"messages": messages, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self.error is not None:
            raise self.error
        return self.reply


class GateHarness:
    """Bundles fakes with the services built around them."""

    def __init__(
        self,
        *,
        limit: int = 10,
        window_seconds: float = 60,
        captcha_limit: int = 20,
        secret: str = "test-captcha-secret",
        chat_client: FakeChatClient | None = None,
        captcha_client: FakeCaptchaClient | None = None,
    ) -> None:
        self.clock = Mock(return_value=1_000_000.0)
        self.limiter = InMemoryFixedWindowRateLimiter(
            limit=limit, window_seconds=window_seconds, clock=self.clock
        )
        self.captcha_limiter = InMemoryFixedWindowRateLimiter(
            limit=captcha_limit, window_seconds=window_seconds, clock=self.clock
        )
        self.audit = InMemoryCaptchaLogStore()
        self.captcha_client = captcha_client or FakeCaptchaClient()
        self.chat_client = chat_client or FakeChatClient()
        self.verifier = CaptchaVerifier(
            self.captcha_client,
            self.audit,
            secret=secret,
            clock=lambda: FIXED_NOW,
        )
        self.pipeline = AdmissionPipeline(
            limiter=self.limiter,
            scorer=InjectionHeuristicScorer(),
            verifier=self.verifier,
            chat_client=self.chat_client,
        )
        self.services = GateServices(
            pipeline=self.pipeline,
            verifier=self.verifier,
            captcha_limiter=self.captcha_limiter,
        )

    def app(self) -> FastAPI:
        return create_app(services=self.services)

    def client(self) -> TestClient:
        return TestClient(self.app())


@pytest.fixture
def harness_factory() -> Callable[..., GateHarness]:
    return GateHarness


@pytest.fixture
def harness() -> GateHarness:
    return GateHarness()
