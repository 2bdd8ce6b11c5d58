"""Construction of the long-lived services shared by all requests.

Everything stateful (limiter stores, the siteverify HTTP client, the audit
store) is built exactly once and attached to ``app.state.services``. Tests
build a ``GateServices`` by hand with fakes and pass it to ``create_app``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

import httpx

from chatgate.adapters.audit import (
    AbstractCaptchaLogStore,
    InMemoryCaptchaLogStore,
    JsonlCaptchaLogStore,
)
from chatgate.adapters.captcha import HttpCaptchaClient
from chatgate.adapters.llm import create_chat_client
from chatgate.adapters.rate_limit import (
    AbstractRateLimiter,
    InMemoryFixedWindowRateLimiter,
    RateLimitSweeper,
)
from chatgate.core.config import AppSettings, Settings
from chatgate.core.errors import ValidationAppError
from chatgate.services.admission_pipeline import AdmissionPipeline
from chatgate.services.captcha_service import CaptchaVerifier
from chatgate.services.injection_scorer import InjectionHeuristicScorer
from chatgate.services.spam_monitor import SpamRateWatcher

logger = logging.getLogger(__name__)


@dataclass
class GateServices:
    """Shared services for the chat and CAPTCHA endpoints."""

    pipeline: AdmissionPipeline
    verifier: CaptchaVerifier
    captcha_limiter: AbstractRateLimiter
    include_rate_limit_headers: bool = True
    sweepers: list[RateLimitSweeper] = field(default_factory=list)
    spam_watcher: SpamRateWatcher | None = None
    http_client: httpx.AsyncClient | None = None

    async def startup(self) -> None:
        for sweeper in self.sweepers:
            sweeper.start()
        if self.spam_watcher is not None:
            self.spam_watcher.start()

    async def shutdown(self) -> None:
        for sweeper in self.sweepers:
            await sweeper.stop()
        if self.spam_watcher is not None:
            await self.spam_watcher.stop()
        if self.http_client is not None:
            await self.http_client.aclose()


def create_audit_store(app_settings: AppSettings) -> AbstractCaptchaLogStore:
    """Instantiate the configured CAPTCHA audit backend.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    backend = app_settings.audit_backend.lower()
    if backend == "memory":
        return InMemoryCaptchaLogStore()
    if backend == "jsonl":
        return JsonlCaptchaLogStore(app_settings.audit_file_path)
    raise ValidationAppError(
        code="audit_unknown_backend",
        message=f"Unknown audit backend: '{backend}'. Supported backends: memory, jsonl",
    )


def build_services(settings: Settings) -> GateServices:
    app_cfg = settings.app

    chat_limiter = InMemoryFixedWindowRateLimiter(
        limit=app_cfg.rate_limit_requests,
        window_seconds=app_cfg.rate_limit_window_seconds,
    )
    captcha_limiter = InMemoryFixedWindowRateLimiter(
        limit=app_cfg.captcha_rate_limit_requests,
        window_seconds=app_cfg.rate_limit_window_seconds,
    )

    http_client = httpx.AsyncClient(timeout=settings.captcha.timeout_seconds)
    audit_store = create_audit_store(app_cfg)
    verifier = CaptchaVerifier(
        HttpCaptchaClient(http_client, settings.captcha.verify_url),
        audit_store,
        secret=settings.captcha.secret_key,
    )

    pipeline = AdmissionPipeline(
        limiter=chat_limiter,
        scorer=InjectionHeuristicScorer(threshold=app_cfg.injection_threshold),
        verifier=verifier,
        chat_client=create_chat_client(settings.llm),
        max_message_chars=app_cfg.max_message_chars,
        max_history_items=app_cfg.max_history_items,
        forwarded_history_turns=app_cfg.forwarded_history_turns,
        max_body_bytes=app_cfg.max_body_bytes,
        max_tokens=settings.llm.max_tokens,
        temperature=settings.llm.temperature,
        include_rate_limit_headers=app_cfg.rate_limit_include_headers,
    )

    sweep_interval = app_cfg.rate_limit_sweep_interval_seconds
    logger.info(
        "services.built",
        extra={
            "rate_limit_requests": app_cfg.rate_limit_requests,
            "rate_limit_window_s": app_cfg.rate_limit_window_seconds,
            "audit_backend": app_cfg.audit_backend,
            "model": settings.llm.model,
        },
    )
    return GateServices(
        pipeline=pipeline,
        verifier=verifier,
        captcha_limiter=captcha_limiter,
        include_rate_limit_headers=app_cfg.rate_limit_include_headers,
        sweepers=[
            RateLimitSweeper(chat_limiter, interval_seconds=sweep_interval),
            RateLimitSweeper(captcha_limiter, interval_seconds=sweep_interval),
        ],
        spam_watcher=SpamRateWatcher(
            audit_store,
            interval_seconds=app_cfg.spam_check_interval_seconds,
            window=timedelta(hours=app_cfg.spam_alert_window_hours),
            min_attempts=app_cfg.spam_alert_min_attempts,
            threshold_percent=app_cfg.spam_alert_threshold_percent,
        ),
        http_client=http_client,
    )
