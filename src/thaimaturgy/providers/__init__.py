"""AI backends behind a common chat contract."""

from __future__ import annotations

from thaimaturgy.providers.anthropic_provider import AnthropicProvider
from thaimaturgy.providers.base import ChatRequest, ChatResponse, Provider, Usage
from thaimaturgy.providers.factory import SUPPORTED_PROVIDERS, create_provider
from thaimaturgy.providers.openai_provider import OpenAIProvider


__all__ = [
    "ChatRequest",
    "ChatResponse",
    "Usage",
    "Provider",
    "OpenAIProvider",
    "AnthropicProvider",
    "SUPPORTED_PROVIDERS",
    "create_provider",
]
