"""Pydantic schemas for the public chat and CAPTCHA endpoints.

Field aliases follow the camelCase the web client sends; both alias and
field name are accepted when validating.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatgate.core.messages import Language, resolve_language


class ChatTurn(BaseModel):
    """One prior message in the visitor's conversation."""

    role: Literal["user", "assistant"] = Field(
        ..., description="Who wrote the turn."
    )
    content: str = Field(..., description="Turn text as supplied by the client.")


class ChatRequest(BaseModel):
    """Inbound ``POST /chat`` body."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="The visitor's new message.")
    language: Language = Field(
        default="ro",
        description="Reply language; anything other than 'en' falls back to 'ro'.",
    )
    conversation_history: list[ChatTurn] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Earlier turns, oldest first.",
    )
    captcha_token: str | None = Field(
        default=None,
        alias="captchaToken",
        description="Token produced by the CAPTCHA widget.",
    )

    @field_validator("language", mode="before")
    @classmethod
    def _coerce_language(cls, value: object) -> Language:
        return resolve_language(value)

    @field_validator("conversation_history", mode="before")
    @classmethod
    def _null_history_is_empty(cls, value: object) -> object:
        return [] if value is None else value


class ChatSuccessResponse(BaseModel):
    response: str = Field(..., description="Assistant reply.")


class ChatErrorResponse(BaseModel):
    """Rejection body shared by every gate."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = Field(..., description="Machine-readable rejection code.")
    response: str = Field(..., description="Localized, user-safe message.")
    retry_after: int | None = Field(
        default=None,
        alias="retryAfter",
        description="Seconds until the client may retry (rate limiting only).",
    )


class CaptchaVerifyRequest(BaseModel):
    """Inbound ``POST /captcha/verify`` body used by the other public forms."""

    model_config = ConfigDict(populate_by_name=True)

    token: str | None = Field(default=None, description="CAPTCHA widget token.")
    form_type: str = Field(
        default="generic",
        alias="formType",
        max_length=64,
        description="Form the verification belongs to (recorded in the audit log).",
    )
    language: Language = Field(default="ro")

    @field_validator("language", mode="before")
    @classmethod
    def _coerce_language(cls, value: object) -> Language:
        return resolve_language(value)


class CaptchaVerifyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    error: str | None = None
    response: str | None = None
    retry_after: int | None = Field(default=None, alias="retryAfter")
