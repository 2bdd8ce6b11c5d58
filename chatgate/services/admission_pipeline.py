"""Admission pipeline for the public chat endpoint.

A request moves through a fixed sequence of gates and is rejected at the
first one it fails::

    RECEIVED -> RATE_CHECKED -> NORMALIZED -> INJECTION_CHECKED
             -> CAPTCHA_VERIFIED -> LENGTH_VALIDATED -> ADMITTED

Cheap checks run before expensive ones: the injection heuristic runs before
the CAPTCHA provider is contacted, so obviously hostile traffic costs neither
a siteverify call nor an audit record. Only admitted requests reach the
completion provider.

``handle()`` never raises. Every outcome, including unexpected failures, is
rendered as a localized ``{"error", "response"}`` body carrying the rate limit
headers computed in the first stage.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from chatgate.adapters.llm.base import AbstractChatClient, ChatMessage
from chatgate.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from chatgate.core.errors import (
    UpstreamQuotaExhaustedError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)
from chatgate.core.logging import hash_identifier
from chatgate.core.messages import (
    DEFAULT_LANGUAGE,
    EMPTY_COMPLETION_FALLBACK,
    Language,
    RejectionReason,
    message_for,
    resolve_language,
    status_for,
)
from chatgate.core.rate_limit import enforce_rate_limit, rate_limit_headers
from chatgate.schemas.chat import ChatRequest, ChatTurn
from chatgate.services.captcha_service import CaptchaContext, CaptchaVerifier
from chatgate.services.injection_scorer import InjectionHeuristicScorer
from chatgate.services.prompts import SYSTEM_PROMPTS, system_prompt_for
from chatgate.utils.text_normalizer import (
    DEFAULT_ROLE_PREFIX_RULES,
    normalize_text,
    sanitize_history,
)

logger = logging.getLogger(__name__)

CHAT_FORM_TYPE = "chat"


class AdmissionStage(str, Enum):
    RECEIVED = "received"
    RATE_CHECKED = "rate_checked"
    NORMALIZED = "normalized"
    INJECTION_CHECKED = "injection_checked"
    CAPTCHA_VERIFIED = "captcha_verified"
    LENGTH_VALIDATED = "length_validated"
    ADMITTED = "admitted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ClientContext:
    """Per-request client facts resolved by the HTTP layer."""

    identity: str
    user_agent: str = ""


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of running the gates for one request.

    Attributes:
        allowed: True only when every gate passed.
        reason: ``ADMITTED`` or the rejection code of the failing gate.
        stage: ``ADMITTED`` or ``REJECTED``.
        last_passed: Last gate the request cleared.
        rate_limit: Stage-one limiter result (source of the headers).
        language: Reply language.
        message: Normalized message (admitted requests).
        history: Sanitized history (admitted requests).
    """

    allowed: bool
    reason: RejectionReason
    stage: AdmissionStage
    last_passed: AdmissionStage
    rate_limit: RateLimitResult
    language: Language = DEFAULT_LANGUAGE
    message: str = ""
    history: tuple[ChatTurn, ...] = ()

    @property
    def remaining(self) -> int:
        return self.rate_limit.remaining

    @property
    def reset_at(self) -> float:
        return self.rate_limit.reset_at


@dataclass(frozen=True)
class ChatReply:
    """Fully rendered HTTP reply."""

    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


class AdmissionPipeline:
    """Runs the admission gates and, for admitted requests, the completion call."""

    def __init__(
        self,
        *,
        limiter: AbstractRateLimiter,
        scorer: InjectionHeuristicScorer,
        verifier: CaptchaVerifier,
        chat_client: AbstractChatClient,
        max_message_chars: int = 2000,
        max_history_items: int = 20,
        forwarded_history_turns: int = 8,
        max_body_bytes: int = 65536,
        max_tokens: int = 500,
        temperature: float = 0.7,
        include_rate_limit_headers: bool = True,
        system_prompts: Mapping[Language, str] = SYSTEM_PROMPTS,
        role_prefix_rules: Iterable[re.Pattern[str]] = DEFAULT_ROLE_PREFIX_RULES,
    ) -> None:
        self._limiter = limiter
        self._scorer = scorer
        self._verifier = verifier
        self._chat_client = chat_client
        self._max_message_chars = max_message_chars
        self._max_history_items = max_history_items
        self._forwarded_history_turns = forwarded_history_turns
        self._max_body_bytes = max_body_bytes
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._include_headers = include_rate_limit_headers
        self._system_prompts = dict(system_prompts)
        self._rules = tuple(role_prefix_rules)

    @property
    def limiter(self) -> AbstractRateLimiter:
        return self._limiter

    async def evaluate(
        self,
        body: bytes,
        client: ClientContext,
        *,
        rate: RateLimitResult | None = None,
    ) -> AdmissionDecision:
        """Run gates one to seven for a raw request body.

        ``rate`` is a stage-one result the caller already obtained; when
        omitted the limiter is consulted here.
        """

        # 1. rate check, before the body is even parsed
        if rate is None:
            rate = self._check_rate(client)
        if not rate.allowed:
            return self._reject(
                RejectionReason.RATE_LIMITED, AdmissionStage.RECEIVED, rate, client
            )

        # 2. payload shape
        if len(body) > self._max_body_bytes:
            return self._reject(
                RejectionReason.PAYLOAD_TOO_LARGE, AdmissionStage.RATE_CHECKED, rate, client
            )
        try:
            payload = json.loads(body)
        except (ValueError, RecursionError):
            return self._reject(
                RejectionReason.MALFORMED_INPUT, AdmissionStage.RATE_CHECKED, rate, client
            )
        language = _peek_language(payload)
        try:
            request = ChatRequest.model_validate(payload)
        except ValidationError as exc:
            logger.info(
                "admission.malformed_payload",
                extra={"error_count": exc.error_count()},
            )
            return self._reject(
                RejectionReason.MALFORMED_INPUT,
                AdmissionStage.RATE_CHECKED,
                rate,
                client,
                language=language,
            )
        language = request.language

        # 3. normalization
        message = normalize_text(request.message, self._max_message_chars, self._rules)
        history = sanitize_history(
            request.conversation_history,
            max_items=self._max_history_items,
            max_len=self._max_message_chars,
            rules=self._rules,
        )

        # 4. injection heuristic, primary message only
        if self._scorer.is_suspicious(message):
            return self._reject(
                RejectionReason.SUSPECTED_INJECTION,
                AdmissionStage.NORMALIZED,
                rate,
                client,
                language=language,
            )

        # 5. token presence
        token = (request.captcha_token or "").strip()
        if not token:
            return self._reject(
                RejectionReason.CAPTCHA_MISSING,
                AdmissionStage.INJECTION_CHECKED,
                rate,
                client,
                language=language,
            )

        # 6. verification (always audited)
        context = CaptchaContext(
            form_type=CHAT_FORM_TYPE,
            client_identity=client.identity,
            user_agent=client.user_agent,
        )
        if not await self._verifier.verify(token, context):
            return self._reject(
                RejectionReason.CAPTCHA_INVALID,
                AdmissionStage.INJECTION_CHECKED,
                rate,
                client,
                language=language,
            )

        # 7. final length check on the normalized message
        if not message or len(message) > self._max_message_chars:
            return self._reject(
                RejectionReason.INVALID_MESSAGE,
                AdmissionStage.CAPTCHA_VERIFIED,
                rate,
                client,
                language=language,
            )

        logger.info(
            "admission.admitted",
            extra={
                "client_hash": hash_identifier(client.identity),
                "language": language,
                "message_chars": len(message),
                "history_items": len(history),
            },
        )
        return AdmissionDecision(
            allowed=True,
            reason=RejectionReason.ADMITTED,
            stage=AdmissionStage.ADMITTED,
            last_passed=AdmissionStage.LENGTH_VALIDATED,
            rate_limit=rate,
            language=language,
            message=message,
            history=tuple(history),
        )

    async def handle(self, body: bytes, client: ClientContext) -> ChatReply:
        """Evaluate a request and produce the final reply.

        Args:
            body: Raw request body.
            client: Resolved client identity and user agent.

        Returns:
            ChatReply: Status, JSON body and headers. Never raises. Once the
            limiter has answered, every reply carries its headers.
        """

        rate: RateLimitResult | None = None
        language: Language = DEFAULT_LANGUAGE
        try:
            rate = self._check_rate(client)
            decision = await self.evaluate(body, client, rate=rate)
            language = decision.language
            if not decision.allowed:
                return self._render_rejection(decision.reason, language, rate)
            reply_text = await self._chat_client.complete(
                self._build_messages(decision),
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except UpstreamRateLimitedError:
            return self._render_rejection(RejectionReason.UPSTREAM_RATE_LIMITED, language, rate)
        except UpstreamQuotaExhaustedError:
            return self._render_rejection(
                RejectionReason.UPSTREAM_QUOTA_EXHAUSTED, language, rate
            )
        except UpstreamUnavailableError:
            return self._render_rejection(RejectionReason.UPSTREAM_UNAVAILABLE, language, rate)
        except Exception:
            logger.exception(
                "admission.internal_error",
                extra={"client_hash": hash_identifier(client.identity)},
            )
            return self._render_rejection(RejectionReason.INTERNAL_ERROR, language, rate)

        if not reply_text:
            logger.warning("upstream.empty_completion")
            reply_text = EMPTY_COMPLETION_FALLBACK[language]
        return ChatReply(
            status_code=200,
            body={"response": reply_text},
            headers=self._headers(rate),
        )

    def _check_rate(self, client: ClientContext) -> RateLimitResult:
        return enforce_rate_limit(self._limiter, client.identity, scope="chat")

    def _build_messages(self, decision: AdmissionDecision) -> list[ChatMessage]:
        turns = self._forwarded_history_turns
        forwarded = decision.history[-turns:] if turns > 0 else ()
        messages: list[ChatMessage] = [
            {
                "role": "system",
                "content": system_prompt_for(decision.language, self._system_prompts),
            }
        ]
        messages.extend({"role": turn.role, "content": turn.content} for turn in forwarded)
        messages.append({"role": "user", "content": decision.message})
        return messages

    def _reject(
        self,
        reason: RejectionReason,
        last_passed: AdmissionStage,
        rate: RateLimitResult,
        client: ClientContext,
        *,
        language: Language = DEFAULT_LANGUAGE,
    ) -> AdmissionDecision:
        logger.warning(
            "admission.rejected",
            extra={
                "reason": reason.value,
                "last_passed": last_passed.value,
                "client_hash": hash_identifier(client.identity),
            },
        )
        return AdmissionDecision(
            allowed=False,
            reason=reason,
            stage=AdmissionStage.REJECTED,
            last_passed=last_passed,
            rate_limit=rate,
            language=language,
        )

    def _render_rejection(
        self,
        reason: RejectionReason,
        language: Language,
        rate: RateLimitResult | None,
    ) -> ChatReply:
        body: dict[str, Any] = {
            "error": reason.value,
            "response": message_for(reason, language, max_chars=self._max_message_chars),
        }
        headers: dict[str, str] = {}
        if rate is not None:
            headers = self._headers(rate)
            if reason is RejectionReason.RATE_LIMITED:
                body["retryAfter"] = rate.retry_after_seconds
                headers["Retry-After"] = str(rate.retry_after_seconds)
        return ChatReply(status_code=status_for(reason), body=body, headers=headers)

    def _headers(self, rate: RateLimitResult) -> dict[str, str]:
        if not self._include_headers:
            return {}
        return rate_limit_headers(rate)


def _peek_language(payload: object) -> Language:
    if isinstance(payload, dict):
        return resolve_language(payload.get("language"))
    return DEFAULT_LANGUAGE
