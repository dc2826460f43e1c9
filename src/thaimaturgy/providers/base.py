"""AI provider contract.

The orchestrator talks to every backend through one operation: send a chat
request (messages, tool catalog, model, temperature, token budget) and get
back a normalized chat response. Each backend translates to and from its own
wire format behind this contract.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from thaimaturgy.models.conversation import Message, ToolInvocation


if TYPE_CHECKING:
    from thaimaturgy.engine.tools import ToolDefinition


# =============================================================================
# Request / Response
# =============================================================================


@dataclass
class ChatRequest:
    """A chat completion request.

    Attributes:
        messages: Ordered messages, system prompt first.
        model: Model identifier.
        tools: Tools the model may call; empty for plain completions.
        temperature: Sampling temperature.
        max_tokens: Token budget for the response; 0 leaves it to the backend.
    """

    messages: list[Message]
    model: str
    tools: list[ToolDefinition] = field(default_factory=list)
    temperature: float = 0.8
    max_tokens: int = 0


@dataclass
class Usage:
    """Token usage reported by the backend."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class ChatResponse:
    """A normalized chat completion.

    Attributes:
        content: Assistant text, possibly empty when tools were called.
        tool_calls: Tool calls requested by the model.
        finish_reason: Why generation stopped (``stop``, ``tool_calls``, ``length``).
        usage: Token usage.
        model: Model that produced the response.
        latency_ms: Wall-clock time of the request in milliseconds.
    """

    content: str = ""
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    finish_reason: str = ""
    usage: Usage = field(default_factory=Usage)
    model: str = ""
    latency_ms: int = 0

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


# =============================================================================
# Provider Protocol
# =============================================================================


@runtime_checkable
class Provider(Protocol):
    """Protocol every AI backend implements."""

    @property
    def name(self) -> str:
        """Return the provider identifier (e.g., 'openai', 'anthropic')."""
        ...

    @property
    def supports_tools(self) -> bool:
        """Whether the backend supports function calling."""
        ...

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send a chat request.

        Args:
            request: The request to send.

        Returns:
            The normalized response.

        Raises:
            AIControlError: If the request fails.
        """
        ...


def retrying(
    retryable: tuple[type[BaseException], ...],
    max_retries: int,
) -> AsyncRetrying:
    """Build the retry policy shared by the backends.

    Transient failures (rate limits, dropped connections) are retried with
    exponential backoff; anything else fails on the first attempt.

    Args:
        retryable: SDK exception types worth retrying.
        max_retries: Retries after the first attempt.

    Returns:
        A tenacity retrying controller that re-raises the last error.
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(retryable),
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )


__all__ = [
    "ChatRequest",
    "ChatResponse",
    "Usage",
    "Provider",
    "retrying",
]
