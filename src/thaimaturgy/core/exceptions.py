"""Custom exception hierarchy for Thaimaturgy.

Every error raised by the game engine, the tool layer, the AI backends or
the save store inherits from ThaimaturgyError, so the terminal front-end can
render any failure without crashing while still keeping the domain context
attached to it.

Example:
    >>> from thaimaturgy.core.exceptions import DiceRollError
    >>> raise DiceRollError("Invalid dice notation", expression="2x6")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from thaimaturgy.dm.orchestrator import OrchestratorResponse


class ThaimaturgyError(Exception):
    """Base exception for all Thaimaturgy errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(ThaimaturgyError):
    """Raised when application configuration is invalid or incomplete.

    This covers missing API keys, unknown provider names and settings
    that fail to load from the environment.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with the offending key.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(ThaimaturgyError):
    """Raised when user supplied data fails validation."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        super().__init__(message, details=combined_details)


# =============================================================================
# Game Engine Exceptions
# =============================================================================


class GameEngineError(ThaimaturgyError):
    """Base exception for game engine errors.

    Raised for dice parsing, tool execution and turn orchestration
    problems that are not caused by the AI backend itself.
    """


class DiceRollError(GameEngineError):
    """Raised when dice notation cannot be parsed or is out of range."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression is not None:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class ToolExecutionError(GameEngineError):
    """Raised by a tool handler when the requested change cannot be applied.

    The tool router converts this into an error outcome; it never escapes
    a turn.
    """

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if tool_name:
            combined_details["tool_name"] = tool_name
        super().__init__(message, details=combined_details)


class IterationLimitError(GameEngineError):
    """Raised when a turn exhausts its backend round-trip budget.

    The partial response gathered so far (token usage, latency and events)
    is kept on ``response`` so callers can still report it.

    Attributes:
        response: The partial orchestrator response, if available.
        iterations: Number of backend round-trips performed.
        tokens_used: Total tokens consumed across all round-trips.
        latency_ms: Total backend latency across all round-trips.
    """

    def __init__(
        self,
        message: str,
        *,
        iterations: int,
        tokens_used: int = 0,
        latency_ms: int = 0,
        response: OrchestratorResponse | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize iteration limit error with accumulated totals.

        Args:
            message: Human-readable error description.
            iterations: Number of backend round-trips performed.
            tokens_used: Total tokens consumed.
            latency_ms: Total backend latency in milliseconds.
            response: Partial orchestrator response.
            details: Optional dictionary containing additional error context.
        """
        self.iterations = iterations
        self.tokens_used = tokens_used
        self.latency_ms = latency_ms
        self.response = response
        combined_details = details or {}
        combined_details["iterations"] = iterations
        combined_details["tokens_used"] = tokens_used
        combined_details["latency_ms"] = latency_ms
        super().__init__(message, details=combined_details)


# =============================================================================
# AI Control Exceptions
# =============================================================================


class AIControlError(ThaimaturgyError):
    """Base exception for all AI backend errors.

    Raised when a chat request cannot be completed, including transport
    failures, API errors and unparseable responses.
    """

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AI control error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Name of the AI provider (e.g., 'openai', 'anthropic').
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AIConnectionError(AIControlError):
    """Raised when the AI service cannot be reached."""


class AIAuthenticationError(AIConnectionError):
    """Raised when the AI service rejects the configured API key."""


class AITimeoutError(AIConnectionError):
    """Raised when a request or a whole turn exceeds its deadline."""


class AIResponseError(AIControlError):
    """Raised when an AI response cannot be processed.

    This includes non-retryable API status errors and malformed payloads.
    """


class AIRateLimitError(AIControlError):
    """Raised when AI API rate limits are exceeded."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize rate limit error with retry context.

        Args:
            message: Human-readable error description.
            retry_after_seconds: Seconds to wait before retrying.
            model: Name of the AI model involved.
            provider: Name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        super().__init__(message, model=model, provider=provider, details=combined_details)


class AIContextLimitError(AIControlError):
    """Raised when the prompt exceeds the model's context window."""


# =============================================================================
# Storage Exceptions
# =============================================================================


class StorageError(ThaimaturgyError):
    """Raised when a saved game cannot be written or read."""

    def __init__(
        self,
        message: str,
        *,
        save_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if save_name:
            combined_details["save_name"] = save_name
        super().__init__(message, details=combined_details)


class SaveNotFoundError(StorageError):
    """Raised when a named save does not exist."""


__all__ = [
    "ThaimaturgyError",
    "ConfigurationError",
    "ValidationError",
    "GameEngineError",
    "DiceRollError",
    "ToolExecutionError",
    "IterationLimitError",
    "AIControlError",
    "AIConnectionError",
    "AIAuthenticationError",
    "AITimeoutError",
    "AIResponseError",
    "AIRateLimitError",
    "AIContextLimitError",
    "StorageError",
    "SaveNotFoundError",
]
