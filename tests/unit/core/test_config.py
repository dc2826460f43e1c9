"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from thaimaturgy.core.config import (
    AIProviderSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from thaimaturgy.core.constants import DEFAULT_ANTHROPIC_MODEL, DEFAULT_OPENAI_MODEL


@pytest.mark.usefixtures("clean_env")
class TestAIProviderSettings:
    """Tests for AIProviderSettings configuration."""

    def test_defaults(self) -> None:
        """Test default provider settings."""
        settings = AIProviderSettings()

        assert settings.provider == "openai"
        assert settings.openai_api_key is None
        assert settings.max_retries == 0
        assert settings.turn_timeout_seconds == 60.0
        assert settings.summary_timeout_seconds == 30.0

    def test_provider_is_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test provider names are normalized."""
        monkeypatch.setenv("THAIM_PROVIDER", "Anthropic")

        assert AIProviderSettings().provider == "anthropic"

    def test_unknown_provider_rejected(self) -> None:
        """Test unknown providers fail validation."""
        with pytest.raises(ValueError):
            AIProviderSettings(provider="gemini")

    def test_resolved_model_defaults(self) -> None:
        """Test each provider falls back to its default model."""
        settings = AIProviderSettings()

        assert settings.resolved_model() == DEFAULT_OPENAI_MODEL
        assert settings.resolved_model("anthropic") == DEFAULT_ANTHROPIC_MODEL

    def test_model_override_applies_to_configured_provider(self) -> None:
        """Test the override only applies to the configured provider."""
        settings = AIProviderSettings(provider="openai", model="gpt-4o")

        assert settings.resolved_model() == "gpt-4o"
        assert settings.resolved_model("anthropic") == DEFAULT_ANTHROPIC_MODEL

    def test_api_key_from_plain_env_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the vendor's own variable name is accepted."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

        settings = AIProviderSettings()

        assert settings.api_key_for("anthropic") == "sk-ant-test"
        assert settings.api_key_for("openai") is None

    def test_api_key_hidden_in_repr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test API keys never show up in repr."""
        monkeypatch.setenv("THAIM_OPENAI_API_KEY", "sk-secret")

        assert "sk-secret" not in repr(AIProviderSettings())


@pytest.mark.usefixtures("clean_env")
class TestGameSettings:
    """Tests for GameSettings configuration."""

    def test_defaults(self) -> None:
        """Test default game settings."""
        settings = GameSettings()

        assert settings.temperature == 0.8
        assert settings.language == "en"
        assert settings.auto_save is True
        assert settings.conversation_size == 50
        assert settings.event_log_size == 100
        assert settings.summary_threshold == 10

    def test_temperature_range(self) -> None:
        """Test temperature must be between 0 and 2."""
        with pytest.raises(ValueError):
            GameSettings(temperature=2.5)

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test game settings read THAIM_GAME_ variables."""
        monkeypatch.setenv("THAIM_GAME_LANGUAGE", "es")

        assert GameSettings().language == "es"


class TestStorageSettings:
    """Tests for StorageSettings configuration."""

    def test_database_path(self, tmp_path: Path) -> None:
        """Test the database lives in the data directory."""
        settings = StorageSettings(data_dir=tmp_path)

        assert settings.database_path == tmp_path / "thaimaturgy.db"


class TestSettings:
    """Tests for the aggregated settings singleton."""

    def test_singleton(self, mock_env_vars: dict[str, str]) -> None:
        """Test get_settings caches its result."""
        assert get_settings() is get_settings()

    def test_cache_clear(self, mock_env_vars: dict[str, str]) -> None:
        """Test clearing the cache builds fresh settings."""
        first = get_settings()
        clear_settings_cache()

        assert get_settings() is not first

    def test_reads_environment(self, mock_env_vars: dict[str, str]) -> None:
        """Test settings pick up environment variables."""
        settings = get_settings()

        assert isinstance(settings, Settings)
        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.ai.api_key_for("openai") == "test-openai-key"
        assert settings.storage.data_dir == Path(mock_env_vars["THAIM_DATA_DIR"])
