"""OpenAI-compatible chat completion adapter."""

import logging

from openai import (
    APIConnectionError,
    APIStatusError,
    AsyncOpenAI,
    RateLimitError,
)

from chatgate.adapters.llm.base import AbstractChatClient, ChatMessage
from chatgate.core.errors import (
    UpstreamQuotaExhaustedError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

QUOTA_ERROR_CODE = "insufficient_quota"


class OpenAIChatClient(AbstractChatClient):
    """Client for OpenAI (or any OpenAI-compatible gateway) chat completions.

    Uses the official OpenAI Python SDK with async support. Provider errors
    are translated to ``UpstreamAppError`` subclasses; their bodies are
    never passed on.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the async SDK client.

        Args:
            api_key: Bearer key for the provider.
            model: Model name (e.g., "gpt-4o-mini").
            base_url: Optional OpenAI-compatible base URL.
            timeout_seconds: Per-request timeout in seconds.
            client: Pre-built SDK client (tests).
        """
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str | None:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except RateLimitError as exc:
            if exc.code == QUOTA_ERROR_CODE:
                logger.error(
                    "upstream.quota_exhausted",
                    extra={"model": self.model, "status_code": exc.status_code},
                )
                raise UpstreamQuotaExhaustedError(
                    code="upstream_quota_exhausted",
                    message="Provider quota exhausted",
                    details={"http_status": exc.status_code, "model": self.model},
                ) from exc
            logger.warning("upstream.rate_limited", extra={"model": self.model})
            raise UpstreamRateLimitedError(
                code="upstream_rate_limited",
                message="Provider rate limit reached",
                details={"http_status": exc.status_code, "model": self.model},
            ) from exc
        except APIStatusError as exc:
            if exc.status_code == 402:
                logger.error(
                    "upstream.quota_exhausted",
                    extra={"model": self.model, "status_code": exc.status_code},
                )
                raise UpstreamQuotaExhaustedError(
                    code="upstream_quota_exhausted",
                    message="Provider requires payment",
                    details={"http_status": exc.status_code, "model": self.model},
                ) from exc
            logger.error(
                "upstream.status_error",
                extra={"model": self.model, "status_code": exc.status_code},
            )
            raise UpstreamUnavailableError(
                code="upstream_unavailable",
                message="Provider returned an error status",
                details={"http_status": exc.status_code, "model": self.model},
            ) from exc
        except APIConnectionError as exc:
            logger.error(
                "upstream.connection_error",
                extra={"model": self.model, "exc_type": type(exc).__name__},
            )
            raise UpstreamUnavailableError(
                code="upstream_unavailable",
                message="Provider unreachable",
                details={"model": self.model},
            ) from exc

        if not response.choices:
            return None
        content = response.choices[0].message.content
        if content is None or not content.strip():
            return None
        return content.strip()
