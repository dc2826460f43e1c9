"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        ThaimaturgyError: Base exception for all application errors.
        ConfigurationError: Configuration-related errors.
        DiceRollError: Invalid dice notation.
        AIControlError: AI backend failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from thaimaturgy.core.config import (
    AIProviderSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from thaimaturgy.core.exceptions import (
    AIAuthenticationError,
    AIConnectionError,
    AIContextLimitError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    AITimeoutError,
    ConfigurationError,
    DiceRollError,
    GameEngineError,
    IterationLimitError,
    SaveNotFoundError,
    StorageError,
    ThaimaturgyError,
    ToolExecutionError,
    ValidationError,
)
from thaimaturgy.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "ThaimaturgyError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Game engine exceptions
    "GameEngineError",
    "DiceRollError",
    "ToolExecutionError",
    "IterationLimitError",
    # AI control exceptions
    "AIControlError",
    "AIConnectionError",
    "AIAuthenticationError",
    "AITimeoutError",
    "AIResponseError",
    "AIRateLimitError",
    "AIContextLimitError",
    # Storage exceptions
    "StorageError",
    "SaveNotFoundError",
    # Configuration
    "Settings",
    "AIProviderSettings",
    "GameSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
