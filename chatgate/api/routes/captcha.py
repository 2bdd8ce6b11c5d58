"""Standalone CAPTCHA verification for the site's other public forms."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from chatgate.api.dependencies import get_client_context, get_services
from chatgate.core.messages import (
    DEFAULT_LANGUAGE,
    Language,
    RejectionReason,
    message_for,
    status_for,
)
from chatgate.core.rate_limit import enforce_rate_limit, rate_limit_headers
from chatgate.schemas.chat import CaptchaVerifyRequest, CaptchaVerifyResponse
from chatgate.services.admission_pipeline import ClientContext
from chatgate.services.captcha_service import CaptchaContext
from chatgate.services.container import GateServices

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Captcha"])

MAX_VERIFY_BODY_BYTES = 8192


def _reply(
    reason: RejectionReason | None,
    headers: dict[str, str],
    *,
    language: Language = DEFAULT_LANGUAGE,
    retry_after: int | None = None,
) -> JSONResponse:
    if reason is None:
        payload = CaptchaVerifyResponse(success=True)
        status_code = 200
    else:
        payload = CaptchaVerifyResponse(
            success=False,
            error=reason.value,
            response=message_for(reason, language),
            retry_after=retry_after,
        )
        status_code = status_for(reason)
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


@router.post(
    "/captcha/verify",
    response_model=CaptchaVerifyResponse,
    responses={status: {"model": CaptchaVerifyResponse} for status in (400, 403, 429)},
)
async def verify_captcha(
    request: Request,
    services: GateServices = Depends(get_services),
    client: ClientContext = Depends(get_client_context),
) -> JSONResponse:
    """Verify a CAPTCHA token submitted by a booking, contact or review form.

    Rate limited with its own limiter and audited exactly like the chat path.
    Body: ``{"token": str, "formType"?: str, "language"?: "ro"|"en"}``.
    """
    rate = enforce_rate_limit(services.captcha_limiter, client.identity, scope="captcha")
    headers = rate_limit_headers(rate) if services.include_rate_limit_headers else {}
    if not rate.allowed:
        headers["Retry-After"] = str(rate.retry_after_seconds)
        return _reply(
            RejectionReason.RATE_LIMITED, headers, retry_after=rate.retry_after_seconds
        )

    body = await request.body()
    if len(body) > MAX_VERIFY_BODY_BYTES:
        return _reply(RejectionReason.PAYLOAD_TOO_LARGE, headers)
    try:
        payload = CaptchaVerifyRequest.model_validate_json(body)
    except ValidationError:
        return _reply(RejectionReason.MALFORMED_INPUT, headers)

    token = (payload.token or "").strip()
    if not token:
        return _reply(RejectionReason.CAPTCHA_MISSING, headers, language=payload.language)

    context = CaptchaContext(
        form_type=payload.form_type,
        client_identity=client.identity,
        user_agent=client.user_agent,
    )
    if not await services.verifier.verify(token, context):
        return _reply(RejectionReason.CAPTCHA_INVALID, headers, language=payload.language)
    return _reply(None, headers)
