"""CAPTCHA verification with an audit trail.

Verification fails closed: a missing secret, an unreachable provider or an
unparsable answer all count as failure. Every attempt, passed or failed,
produces exactly one audit record, written before the verdict is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from chatgate.adapters.audit.base import AbstractCaptchaLogStore, CaptchaLogRecord
from chatgate.adapters.captcha.base import AbstractCaptchaClient, CaptchaVerdict
from chatgate.core.errors import CaptchaServiceError
from chatgate.core.logging import hash_identifier

logger = logging.getLogger(__name__)

MISSING_SECRET_CODE = "missing-input-secret"
SERVICE_ERROR_CODE = "verification-service-error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CaptchaContext:
    """Who is being verified, and for which form."""

    form_type: str
    client_identity: str
    user_agent: str = ""


class CaptchaVerifier:
    """Checks widget tokens against the provider and records each attempt.

    Args:
        client: Siteverify backend.
        log_store: Audit sink; a failing write never changes the verdict.
        secret: Server-side secret. Empty means "not configured".
        clock: Returns the timestamp stored on audit records.
    """

    def __init__(
        self,
        client: AbstractCaptchaClient,
        log_store: AbstractCaptchaLogStore,
        *,
        secret: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._log_store = log_store
        self._secret = secret
        self._clock = clock

    @property
    def log_store(self) -> AbstractCaptchaLogStore:
        return self._log_store

    async def verify(self, token: str, context: CaptchaContext) -> bool:
        verdict = await self._siteverify(token)
        await self._audit(verdict, context)

        logger.info(
            "captcha.verified",
            extra={
                "form_type": context.form_type,
                "client_hash": hash_identifier(context.client_identity),
                "success": verdict.success,
                "error_codes": list(verdict.error_codes),
                "score": verdict.score,
            },
        )
        return verdict.success

    async def _siteverify(self, token: str) -> CaptchaVerdict:
        if not self._secret:
            logger.error("captcha.secret_missing")
            return CaptchaVerdict(success=False, error_codes=(MISSING_SECRET_CODE,))

        try:
            return await self._client.siteverify(self._secret, token)
        except CaptchaServiceError as exc:
            logger.warning(
                "captcha.service_error",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            return CaptchaVerdict(success=False, error_codes=(SERVICE_ERROR_CODE,))
        except Exception:
            logger.exception("captcha.siteverify_failed")
            return CaptchaVerdict(success=False, error_codes=(SERVICE_ERROR_CODE,))

    async def _audit(self, verdict: CaptchaVerdict, context: CaptchaContext) -> None:
        record = CaptchaLogRecord(
            form_type=context.form_type,
            ip_address=context.client_identity,
            user_agent=context.user_agent,
            success=verdict.success,
            timestamp=self._clock(),
            error_codes=verdict.error_codes,
            score=verdict.score,
            hostname=verdict.hostname,
        )
        try:
            await self._log_store.append(record)
        except Exception:
            logger.exception(
                "captcha.audit_write_failed",
                extra={"form_type": context.form_type},
            )
