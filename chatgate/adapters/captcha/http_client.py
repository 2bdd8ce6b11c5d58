"""hCaptcha-compatible siteverify client over httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from chatgate.adapters.captcha.base import AbstractCaptchaClient, CaptchaVerdict
from chatgate.core.errors import CaptchaServiceError

logger = logging.getLogger(__name__)

DEFAULT_VERIFY_URL = "https://api.hcaptcha.com/siteverify"


class HttpCaptchaClient(AbstractCaptchaClient):
    """Posts ``secret``/``response`` form data to a siteverify endpoint.

    The ``httpx.AsyncClient`` is owned by the caller so it can be shared and
    closed on application shutdown.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        verify_url: str = DEFAULT_VERIFY_URL,
    ) -> None:
        self._http = http_client
        self._verify_url = verify_url

    async def siteverify(self, secret: str, token: str) -> CaptchaVerdict:
        try:
            response = await self._http.post(
                self._verify_url,
                data={"secret": secret, "response": token},
            )
        except httpx.HTTPError as exc:
            raise CaptchaServiceError(
                code="captcha_transport_error",
                message=f"Siteverify request failed: {type(exc).__name__}",
            ) from exc

        if response.status_code >= 400:
            raise CaptchaServiceError(
                code="captcha_http_error",
                message="Siteverify returned an error status",
                details={"http_status": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise CaptchaServiceError(
                code="captcha_invalid_response",
                message="Siteverify returned non-JSON content",
            ) from exc

        if not isinstance(payload, dict):
            raise CaptchaServiceError(
                code="captcha_invalid_response",
                message="Siteverify returned an unexpected payload",
            )
        return _parse_verdict(payload)


def _parse_verdict(payload: dict[str, Any]) -> CaptchaVerdict:
    raw_codes = payload.get("error-codes") or []
    if isinstance(raw_codes, str):
        raw_codes = [raw_codes]
    if not isinstance(raw_codes, list):
        raise CaptchaServiceError(
            code="captcha_invalid_response",
            message="Siteverify returned malformed error codes",
            details={"context": {"error_codes_type": type(raw_codes).__name__}},
        )
    score = payload.get("score")
    hostname = payload.get("hostname")
    return CaptchaVerdict(
        success=payload.get("success") is True,
        error_codes=tuple(str(code) for code in raw_codes),
        score=float(score) if isinstance(score, (int, float)) else None,
        hostname=hostname if isinstance(hostname, str) else None,
    )
