"""Anthropic Claude chat backend.

The Messages API keeps the system prompt outside the message list, carries
tool calls as ``tool_use`` content blocks and expects tool results as
``tool_result`` blocks inside a user message. This module converts the
shared message shape to that format and normalizes responses back.
"""

from __future__ import annotations

import json
import time
from typing import Any

from anthropic import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
    AuthenticationError,
    BadRequestError,
    RateLimitError,
)

from thaimaturgy.core.constants import ANTHROPIC_DEFAULT_MAX_TOKENS
from thaimaturgy.core.exceptions import (
    AIAuthenticationError,
    AIConnectionError,
    AIContextLimitError,
    AIRateLimitError,
    AIResponseError,
    AITimeoutError,
)
from thaimaturgy.core.logging import get_logger
from thaimaturgy.models.conversation import Message, MessageRole, ToolInvocation
from thaimaturgy.providers.base import ChatRequest, ChatResponse, Usage, retrying


logger = get_logger(__name__)

_RETRYABLE = (RateLimitError, APIConnectionError)

_STOP_REASONS = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
    "max_tokens": "length",
}

# Anthropic caps sampling temperature at 1.0
_MAX_TEMPERATURE = 1.0


class AnthropicProvider:
    """Anthropic Messages API backend.

    Example:
        >>> provider = AnthropicProvider(api_key="sk-ant-...")
        >>> response = await provider.chat(request)
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        max_retries: int = 0,
        client: AsyncAnthropic | None = None,
    ) -> None:
        """Initialize the Anthropic provider.

        Args:
            api_key: Anthropic API key. Falls back to the SDK's own lookup.
            max_retries: Retries for rate limits and connection failures.
            client: Pre-configured client (for testing).
        """
        self._api_key = api_key
        self._max_retries = max_retries
        self._client: AsyncAnthropic | None = client

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def supports_tools(self) -> bool:
        return True

    def _get_client(self) -> AsyncAnthropic:
        """Get or create the async client."""
        if self._client is None:
            kwargs: dict[str, Any] = {"max_retries": 0}
            if self._api_key:
                kwargs["api_key"] = self._api_key
            self._client = AsyncAnthropic(**kwargs)
        return self._client

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _tool_use_block(call: ToolInvocation) -> dict[str, Any]:
        try:
            arguments = json.loads(call.arguments or "{}")
        except json.JSONDecodeError:
            arguments = {}
        return {"type": "tool_use", "id": call.id, "name": call.name, "input": arguments}

    def _convert_messages(self, messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
        """Split out the system prompt and convert the rest.

        Consecutive tool results are merged into one user message, since
        the API requires every result of a turn to follow the assistant's
        tool calls directly.

        Returns:
            Tuple of (system prompt, API messages).
        """
        system_parts: list[str] = []
        api_messages: list[dict[str, Any]] = []

        for message in messages:
            if message.role == MessageRole.SYSTEM:
                system_parts.append(message.content)
                continue

            if message.role == MessageRole.TOOL:
                block = {
                    "type": "tool_result",
                    "tool_use_id": message.tool_call_id,
                    "content": message.content,
                }
                previous = api_messages[-1] if api_messages else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and all(b.get("type") == "tool_result" for b in previous["content"])
                ):
                    previous["content"].append(block)
                else:
                    api_messages.append({"role": "user", "content": [block]})
                continue

            if message.role == MessageRole.ASSISTANT and message.tool_calls:
                blocks: list[dict[str, Any]] = []
                if message.content:
                    blocks.append({"type": "text", "text": message.content})
                blocks.extend(self._tool_use_block(call) for call in message.tool_calls)
                api_messages.append({"role": "assistant", "content": blocks})
                continue

            api_messages.append({"role": message.role.value, "content": message.content})

        return "\n\n".join(system_parts), api_messages

    def _build_payload(self, request: ChatRequest) -> dict[str, Any]:
        system, messages = self._convert_messages(request.messages)
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": messages,
            "max_tokens": request.max_tokens if request.max_tokens > 0 else ANTHROPIC_DEFAULT_MAX_TOKENS,
            "temperature": min(request.temperature, _MAX_TEMPERATURE),
        }
        if system:
            payload["system"] = system
        if request.tools:
            payload["tools"] = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.parameters,
                }
                for tool in request.tools
            ]
        return payload

    @staticmethod
    def _parse_response(response: Any) -> ChatResponse:
        text_parts: list[str] = []
        tool_calls: list[ToolInvocation] = []

        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolInvocation(id=block.id, name=block.name, arguments=json.dumps(block.input))
                )

        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens

        return ChatResponse(
            content="".join(text_parts),
            tool_calls=tool_calls,
            finish_reason=_STOP_REASONS.get(response.stop_reason or "", response.stop_reason or ""),
            usage=Usage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            model=response.model,
        )

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send a Messages API request.

        Args:
            request: The request to send.

        Returns:
            The normalized response with latency filled in.

        Raises:
            AIControlError: If the request fails after retries.
        """
        payload = self._build_payload(request)
        client = self._get_client()
        start = time.perf_counter()

        try:
            async for attempt in retrying(_RETRYABLE, self._max_retries):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            "Retrying Anthropic request",
                            attempt=attempt.retry_state.attempt_number,
                            model=request.model,
                        )
                    response = await client.messages.create(**payload)
        except AuthenticationError as exc:
            raise AIAuthenticationError(
                f"Anthropic rejected the API key: {exc}", provider="anthropic", model=request.model
            ) from exc
        except RateLimitError as exc:
            raise AIRateLimitError(
                f"Rate limit exceeded after {self._max_retries} retries",
                provider="anthropic",
                model=request.model,
            ) from exc
        except APITimeoutError as exc:
            raise AITimeoutError(
                f"Anthropic request timed out: {exc}", provider="anthropic", model=request.model
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to Anthropic: {exc}", provider="anthropic", model=request.model
            ) from exc
        except BadRequestError as exc:
            message = str(exc)
            if "prompt is too long" in message or "context" in message.lower():
                raise AIContextLimitError(message, provider="anthropic", model=request.model) from exc
            raise AIResponseError(
                f"Anthropic API error: {message}",
                provider="anthropic",
                model=request.model,
                details={"status_code": exc.status_code},
            ) from exc
        except APIStatusError as exc:
            raise AIResponseError(
                f"Anthropic API error: {exc}",
                provider="anthropic",
                model=request.model,
                details={"status_code": exc.status_code},
            ) from exc

        result = self._parse_response(response)
        result.latency_ms = int((time.perf_counter() - start) * 1000)

        logger.debug(
            "Anthropic response received",
            model=result.model,
            tool_calls=len(result.tool_calls),
            tokens=result.usage.total_tokens,
            latency_ms=result.latency_ms,
        )
        return result


__all__ = ["AnthropicProvider"]
