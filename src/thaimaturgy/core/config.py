"""Configuration management for Thaimaturgy.

Settings are read with pydantic-settings from environment variables and a
``.env`` file. API keys are held as SecretStr and only unwrapped when a
provider client is built.

Example:
    >>> from thaimaturgy.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.ai.provider
    'openai'

Environment Variables:
    THAIM_PROVIDER: AI backend to use (openai or anthropic)
    THAIM_MODEL: Model override for the selected backend
    THAIM_OPENAI_API_KEY / OPENAI_API_KEY: OpenAI API key
    THAIM_ANTHROPIC_API_KEY / ANTHROPIC_API_KEY: Anthropic API key
    THAIM_DATA_DIR: Directory holding the save database
    THAIM_GAME_TEMPERATURE: Sampling temperature for narration
    THAIM_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from thaimaturgy.core.constants import (
    CONVERSATION_MAX_SIZE,
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_TEMPERATURE,
    EVENT_LOG_MAX_SIZE,
    MEMORY_SUMMARY_THRESHOLD,
    SUMMARY_TIMEOUT_SECONDS,
    TURN_TIMEOUT_SECONDS,
)
from thaimaturgy.core.exceptions import ConfigurationError


ProviderName = Literal["openai", "anthropic"]


class AIProviderSettings(BaseSettings):
    """Configuration for AI provider connections.

    Attributes:
        provider: The AI backend used for narration.
        model: Optional model override for the selected backend.
        openai_api_key: OpenAI API key.
        anthropic_api_key: Anthropic API key.
        openai_model: Default OpenAI model identifier.
        anthropic_model: Default Anthropic model identifier.
        openai_base_url: Custom base URL for OpenAI-compatible servers.
        max_retries: Retry attempts for transient API failures.
        turn_timeout_seconds: Deadline for a whole narration turn.
        summary_timeout_seconds: Deadline for a memory summary request.
    """

    model_config = SettingsConfigDict(
        env_prefix="THAIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    provider: ProviderName = Field(
        default="openai",
        description="AI backend to use",
    )
    model: str | None = Field(
        default=None,
        description="Model override for the selected backend",
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("THAIM_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="OpenAI API key",
    )
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("THAIM_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
        description="Anthropic API key",
    )
    openai_model: str = Field(
        default=DEFAULT_OPENAI_MODEL,
        description="Default OpenAI model",
    )
    anthropic_model: str = Field(
        default=DEFAULT_ANTHROPIC_MODEL,
        description="Default Anthropic model",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Base URL for OpenAI-compatible APIs",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        le=10,
        description="Maximum API retry attempts",
    )
    turn_timeout_seconds: float = Field(
        default=TURN_TIMEOUT_SECONDS,
        gt=0,
        le=600,
        description="Deadline for a narration turn",
    )
    summary_timeout_seconds: float = Field(
        default=SUMMARY_TIMEOUT_SECONDS,
        gt=0,
        le=600,
        description="Deadline for a memory summary request",
    )

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, value: object) -> object:
        """Accept provider names in any case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def resolved_model(self, provider: str | None = None) -> str:
        """Return the model to use for a provider.

        Args:
            provider: Provider name; defaults to the configured provider.

        Returns:
            The explicit override when set for the configured provider,
            otherwise that provider's default model.
        """
        provider = provider or self.provider
        if self.model and provider == self.provider:
            return self.model
        if provider == "anthropic":
            return self.anthropic_model
        return self.openai_model

    def api_key_for(self, provider: str) -> str | None:
        """Return the plain API key for a provider, if configured."""
        secret = self.anthropic_api_key if provider == "anthropic" else self.openai_api_key
        if secret is None:
            return None
        return secret.get_secret_value() or None


class GameSettings(BaseSettings):
    """Configuration for game behavior.

    Attributes:
        temperature: Sampling temperature for narration.
        max_tokens: Token budget for each narration response.
        language: Language of the default Dungeon Master prompt.
        default_setting: World setting for new games.
        auto_save: Save after every completed turn.
        conversation_size: Messages kept in the conversation history.
        event_log_size: Events kept in the event log.
        summary_threshold: Conversation length that triggers summarization.
    """

    model_config = SettingsConfigDict(
        env_prefix="THAIM_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: int = Field(
        default=DEFAULT_MAX_TOKENS,
        ge=1,
        description="Response token budget",
    )
    language: Literal["en", "es"] = Field(
        default="en",
        description="Dungeon Master language",
    )
    default_setting: str = Field(
        default="fantasy",
        description="World setting for new games",
    )
    auto_save: bool = Field(
        default=True,
        description="Save after every turn",
    )
    conversation_size: int = Field(
        default=CONVERSATION_MAX_SIZE,
        ge=1,
        description="Conversation history capacity",
    )
    event_log_size: int = Field(
        default=EVENT_LOG_MAX_SIZE,
        ge=1,
        description="Event log capacity",
    )
    summary_threshold: int = Field(
        default=MEMORY_SUMMARY_THRESHOLD,
        ge=1,
        description="Conversation length that triggers summarization",
    )


class StorageSettings(BaseSettings):
    """Configuration for save storage.

    Attributes:
        data_dir: Directory holding the save database.
    """

    model_config = SettingsConfigDict(
        env_prefix="THAIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".thaimaturgy",
        description="Directory for saved games",
    )

    @property
    def database_path(self) -> Path:
        """Path to the SQLite save database."""
        return self.data_dir / "thaimaturgy.db"


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Emit logs as JSON.
        ai: AI provider settings.
        game: Game behavior settings.
        storage: Save storage settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="THAIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Thaimaturgy",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON logs",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    game: GameSettings = Field(default_factory=GameSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "ProviderName",
    "AIProviderSettings",
    "GameSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
