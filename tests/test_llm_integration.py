"""Integration tests for the upstream chat adapter layer."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError, APIStatusError, APITimeoutError, RateLimitError

from chatgate.adapters.llm import OpenAIChatClient, create_chat_client
from chatgate.core.config import LLMSettings
from chatgate.core.errors import (
    UpstreamQuotaExhaustedError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
    ValidationAppError,
)

MESSAGES = [
    {"role": "system", "content": "You are helpful."},
    {"role": "user", "content": "Hi"},
]
_REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def _status_error(cls, status: int, code: str | None = None):
    body = {"message": "provider says no", "code": code}
    response = httpx.Response(status, request=_REQUEST, json={"error": body})
    return cls("provider says no", response=response, body=body)


def _completion(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


class TestOpenAIChatClient:
    """Test the OpenAI client with mocked SDK calls."""

    @pytest.mark.asyncio
    async def test_complete_returns_stripped_reply_and_forwards_params(self) -> None:
        client = OpenAIChatClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion("  Bună ziua!  "),
        ) as mock_create:
            result = await client.complete(MESSAGES, max_tokens=500, temperature=0.7)

        assert result == "Bună ziua!"
        kwargs = mock_create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["max_tokens"] == 500
        assert kwargs["temperature"] == 0.7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_completion_returns_none(self, content) -> None:
        client = OpenAIChatClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion(content),
        ):
            assert await client.complete(MESSAGES, max_tokens=10, temperature=0) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (_status_error(RateLimitError, 429), UpstreamRateLimitedError),
            (_status_error(RateLimitError, 429, "insufficient_quota"), UpstreamQuotaExhaustedError),
            (_status_error(APIStatusError, 402), UpstreamQuotaExhaustedError),
            (_status_error(APIStatusError, 503), UpstreamUnavailableError),
            (_status_error(APIStatusError, 400), UpstreamUnavailableError),
            (APIConnectionError(request=_REQUEST), UpstreamUnavailableError),
            (APITimeoutError(_REQUEST), UpstreamUnavailableError),
        ],
    )
    async def test_provider_errors_are_mapped(self, error, expected) -> None:
        client = OpenAIChatClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            with pytest.raises(expected) as exc_info:
                await client.complete(MESSAGES, max_tokens=10, temperature=0)

        assert "provider says no" not in exc_info.value.message

    def test_uses_custom_base_url(self) -> None:
        client = OpenAIChatClient(
            api_key="test-key",
            model="gpt-4o-mini",
            base_url="https://gateway.example.test/v1",
        )

        assert str(client.client.base_url).startswith("https://gateway.example.test/v1")


class TestChatClientFactory:
    def test_creates_openai_client(self) -> None:
        settings = LLMSettings(model="gpt-4o-mini", api_key="k")

        client = create_chat_client(settings)

        assert isinstance(client, OpenAIChatClient)
        assert client.model == "gpt-4o-mini"

    def test_unknown_provider_raises(self) -> None:
        settings = LLMSettings(provider="mystery", model="m", api_key="k")

        with pytest.raises(ValidationAppError) as exc_info:
            create_chat_client(settings)

        assert exc_info.value.code == "llm_unknown_provider"
