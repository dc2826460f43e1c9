"""Provider factory.

Builds the configured AI backend from application settings.
"""

from __future__ import annotations

from thaimaturgy.core.config import Settings, get_settings
from thaimaturgy.core.exceptions import ConfigurationError
from thaimaturgy.core.logging import get_logger
from thaimaturgy.providers.anthropic_provider import AnthropicProvider
from thaimaturgy.providers.base import Provider
from thaimaturgy.providers.openai_provider import OpenAIProvider


logger = get_logger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic")


def create_provider(name: str | None = None, *, settings: Settings | None = None) -> Provider:
    """Create an AI provider.

    Args:
        name: Provider name; defaults to the configured provider.
        settings: Application settings; defaults to the cached settings.

    Returns:
        Configured Provider instance.

    Raises:
        ConfigurationError: If the provider is unknown or has no API key.
    """
    settings = settings or get_settings()
    name = (name or settings.ai.provider).strip().lower()

    if name not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Provider '{name}' is not supported",
            config_key="provider",
            details={"supported": list(SUPPORTED_PROVIDERS)},
        )

    api_key = settings.ai.api_key_for(name)
    if not api_key:
        raise ConfigurationError(
            f"No API key configured for {name}",
            config_key=f"{name}_api_key",
        )

    provider: Provider
    if name == "anthropic":
        provider = AnthropicProvider(api_key=api_key, max_retries=settings.ai.max_retries)
    else:
        provider = OpenAIProvider(
            api_key=api_key,
            base_url=settings.ai.openai_base_url,
            max_retries=settings.ai.max_retries,
        )

    logger.info("AI provider created", provider=name)
    return provider


__all__ = [
    "SUPPORTED_PROVIDERS",
    "create_provider",
]
