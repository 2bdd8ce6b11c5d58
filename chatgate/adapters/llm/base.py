from abc import ABC, abstractmethod
from typing import Literal, TypedDict


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class AbstractChatClient(ABC):
    """Interface for chat-completion providers called after admission."""

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str | None:
        """Return the assistant reply for ``messages``.

        Args:
            messages: System prompt, prior turns and the new user message.
            max_tokens: Upper bound on the completion length.
            temperature: Sampling temperature.

        Returns:
            str | None: Reply text, or ``None`` when the provider returned
            an empty completion.

        Raises:
            UpstreamRateLimitedError: The provider throttled the request.
            UpstreamQuotaExhaustedError: Credits or billing quota exhausted.
            UpstreamUnavailableError: Provider unreachable or failing.
        """
        ...
