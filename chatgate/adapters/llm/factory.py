"""Factory for the upstream chat client."""

from chatgate.adapters.llm.base import AbstractChatClient
from chatgate.adapters.llm.openai_client import OpenAIChatClient
from chatgate.core.config import LLMSettings
from chatgate.core.errors import ValidationAppError


def create_chat_client(llm_settings: LLMSettings) -> AbstractChatClient:
    """Instantiate the chat client for the configured provider.

    Args:
        llm_settings: ``LLM_*`` settings group.

    Returns:
        AbstractChatClient: Configured client instance.

    Raises:
        ValidationAppError: If the provider is unknown or misconfigured.
    """
    provider = llm_settings.provider.lower()

    # "openai" also covers OpenAI-compatible gateways reached via LLM_BASE_URL
    if provider == "openai":
        if not llm_settings.api_key:
            raise ValidationAppError(
                code="llm_missing_api_key",
                message="OpenAI provider requires LLM_API_KEY environment variable",
            )
        return OpenAIChatClient(
            api_key=llm_settings.api_key,
            model=llm_settings.model,
            base_url=llm_settings.base_url,
            timeout_seconds=llm_settings.timeout_seconds,
        )

    raise ValidationAppError(
        code="llm_unknown_provider",
        message=f"Unknown LLM provider: '{provider}'. Supported providers: openai",
    )
