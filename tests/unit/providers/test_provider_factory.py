"""Tests for the provider factory."""

from __future__ import annotations

import pytest

from thaimaturgy.core.config import get_settings
from thaimaturgy.core.exceptions import ConfigurationError
from thaimaturgy.providers.anthropic_provider import AnthropicProvider
from thaimaturgy.providers.factory import create_provider
from thaimaturgy.providers.openai_provider import OpenAIProvider


class TestCreateProvider:
    """Tests for create_provider."""

    def test_default_provider(self, mock_env_vars: dict[str, str]) -> None:
        """Test the configured provider is built by default."""
        assert isinstance(create_provider(), OpenAIProvider)

    def test_named_provider(self, mock_env_vars: dict[str, str]) -> None:
        """Test building a provider by name, case-insensitively."""
        provider = create_provider(" Anthropic ")

        assert isinstance(provider, AnthropicProvider)
        assert provider.name == "anthropic"

    def test_explicit_settings(self, mock_env_vars: dict[str, str]) -> None:
        """Test settings can be passed in."""
        provider = create_provider("openai", settings=get_settings())
        assert provider.name == "openai"

    @pytest.mark.usefixtures("clean_env")
    def test_missing_key(self) -> None:
        """Test providers need an API key."""
        with pytest.raises(ConfigurationError, match="No API key configured for anthropic") as exc_info:
            create_provider("anthropic")

        assert exc_info.value.details["config_key"] == "anthropic_api_key"

    def test_unsupported(self, mock_env_vars: dict[str, str]) -> None:
        """Test unknown providers are rejected."""
        with pytest.raises(ConfigurationError, match="not supported"):
            create_provider("gemini")
