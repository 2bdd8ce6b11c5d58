"""Upstream chat completion adapters."""

from chatgate.adapters.llm.base import AbstractChatClient, ChatMessage
from chatgate.adapters.llm.factory import create_chat_client
from chatgate.adapters.llm.openai_client import OpenAIChatClient

__all__ = [
    "AbstractChatClient",
    "ChatMessage",
    "OpenAIChatClient",
    "create_chat_client",
]
