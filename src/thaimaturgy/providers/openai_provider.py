"""OpenAI chat backend.

Works with the OpenAI API and OpenAI-compatible servers through a custom
base URL. Tool calls use the native function calling format, so messages
and tools map almost one to one.
"""

from __future__ import annotations

import time
from typing import Any

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    BadRequestError,
    RateLimitError,
)

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


class OpenAIProvider:
    """OpenAI chat completions backend.

    Example:
        >>> provider = OpenAIProvider(api_key="sk-...")
        >>> response = await provider.chat(request)
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        max_retries: int = 0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the OpenAI provider.

        Args:
            api_key: OpenAI API key. Falls back to the SDK's own lookup.
            base_url: Custom base URL for OpenAI-compatible APIs.
            max_retries: Retries for rate limits and connection failures.
            client: Pre-configured client (for testing).
        """
        self._api_key = api_key
        self._base_url = base_url
        self._max_retries = max_retries
        self._client: AsyncOpenAI | None = client

    @property
    def name(self) -> str:
        return "openai"

    @property
    def supports_tools(self) -> bool:
        return True

    def _get_client(self) -> AsyncOpenAI:
        """Get or create the async client."""
        if self._client is None:
            kwargs: dict[str, Any] = {"max_retries": 0}
            if self._api_key:
                kwargs["api_key"] = self._api_key
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _convert_message(message: Message) -> dict[str, Any]:
        if message.role == MessageRole.TOOL:
            return {
                "role": "tool",
                "tool_call_id": message.tool_call_id,
                "content": message.content,
            }

        api_message: dict[str, Any] = {"role": message.role.value, "content": message.content}
        if message.role == MessageRole.ASSISTANT and message.tool_calls:
            api_message["content"] = message.content or None
            api_message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in message.tool_calls
            ]
        if message.name:
            api_message["name"] = message.name
        return api_message

    def _build_payload(self, request: ChatRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": [self._convert_message(m) for m in request.messages],
            "temperature": request.temperature,
        }
        if request.max_tokens > 0:
            payload["max_tokens"] = request.max_tokens
        if request.tools:
            payload["tools"] = [tool.to_openai_schema() for tool in request.tools]
        return payload

    @staticmethod
    def _parse_response(response: Any) -> ChatResponse:
        if not response.choices:
            raise AIResponseError("No choices in response", provider="openai", model=response.model)

        choice = response.choices[0]
        message = choice.message

        tool_calls = [
            ToolInvocation(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}")
            for tc in message.tool_calls or []
        ]

        usage = Usage()
        if response.usage:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return ChatResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason or "",
            usage=usage,
            model=response.model,
        )

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send a chat completion request.

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
                            "Retrying OpenAI request",
                            attempt=attempt.retry_state.attempt_number,
                            model=request.model,
                        )
                    response = await client.chat.completions.create(**payload)
        except AuthenticationError as exc:
            raise AIAuthenticationError(
                f"OpenAI rejected the API key: {exc}", provider="openai", model=request.model
            ) from exc
        except RateLimitError as exc:
            raise AIRateLimitError(
                f"Rate limit exceeded after {self._max_retries} retries",
                provider="openai",
                model=request.model,
            ) from exc
        except APITimeoutError as exc:
            raise AITimeoutError(f"OpenAI request timed out: {exc}", provider="openai", model=request.model) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to OpenAI: {exc}", provider="openai", model=request.model
            ) from exc
        except BadRequestError as exc:
            message = str(exc)
            if "context_length" in message or "maximum context" in message:
                raise AIContextLimitError(message, provider="openai", model=request.model) from exc
            raise AIResponseError(
                f"OpenAI API error: {message}",
                provider="openai",
                model=request.model,
                details={"status_code": exc.status_code},
            ) from exc
        except APIStatusError as exc:
            raise AIResponseError(
                f"OpenAI API error: {exc}",
                provider="openai",
                model=request.model,
                details={"status_code": exc.status_code},
            ) from exc

        result = self._parse_response(response)
        result.latency_ms = int((time.perf_counter() - start) * 1000)

        logger.debug(
            "OpenAI response received",
            model=result.model,
            tool_calls=len(result.tool_calls),
            tokens=result.usage.total_tokens,
            latency_ms=result.latency_ms,
        )
        return result


__all__ = ["OpenAIProvider"]
