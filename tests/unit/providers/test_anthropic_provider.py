"""Tests for the Anthropic chat backend."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from thaimaturgy.core.constants import ANTHROPIC_DEFAULT_MAX_TOKENS
from thaimaturgy.core.exceptions import AIAuthenticationError, AIConnectionError, AIRateLimitError
from thaimaturgy.engine.tools import get_tool_definitions
from thaimaturgy.models.conversation import Message, ToolInvocation
from thaimaturgy.providers.anthropic_provider import AnthropicProvider
from thaimaturgy.providers.base import ChatRequest


REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def message_response(*blocks: Any, stop_reason: str = "end_turn") -> Any:
    return SimpleNamespace(
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=30, output_tokens=12),
        stop_reason=stop_reason,
        model="claude-test",
    )


def text_block(text: str) -> Any:
    return SimpleNamespace(type="text", text=text)


def tool_block(block_id: str, name: str, arguments: dict[str, Any]) -> Any:
    return SimpleNamespace(type="tool_use", id=block_id, name=name, input=arguments)


@pytest.fixture
def client() -> MagicMock:
    mock = MagicMock()
    mock.messages.create = AsyncMock(return_value=message_response(text_block("Welcome.")))
    return mock


class TestPayload:
    """Tests for request conversion."""

    async def test_system_prompt_extracted(self, client: MagicMock) -> None:
        """Test the system prompt travels outside the message list."""
        request = ChatRequest(
            messages=[Message.system("You are the DM."), Message.user("Hello")],
            model="claude-test",
            tools=get_tool_definitions(),
        )

        await AnthropicProvider(client=client).chat(request)

        payload = client.messages.create.call_args.kwargs
        assert payload["system"] == "You are the DM."
        assert payload["messages"] == [{"role": "user", "content": "Hello"}]
        assert payload["max_tokens"] == ANTHROPIC_DEFAULT_MAX_TOKENS
        assert payload["tools"][0] == {
            "name": "roll_dice",
            "description": get_tool_definitions()[0].description,
            "input_schema": get_tool_definitions()[0].parameters,
        }

    async def test_temperature_clamped(self, client: MagicMock) -> None:
        """Test temperatures above 1.0 are clamped."""
        request = ChatRequest(messages=[Message.user("Hi")], model="claude-test", temperature=1.6, max_tokens=300)

        await AnthropicProvider(client=client).chat(request)

        payload = client.messages.create.call_args.kwargs
        assert payload["temperature"] == 1.0
        assert payload["max_tokens"] == 300
        assert "system" not in payload
        assert "tools" not in payload

    async def test_tool_blocks(self, client: MagicMock) -> None:
        """Test tool calls become tool_use blocks and results are merged."""
        calls = [
            ToolInvocation(id="toolu_1", name="roll_dice", arguments='{"notation": "1d20"}'),
            ToolInvocation(id="toolu_2", name="update_hp", arguments="not json"),
        ]
        request = ChatRequest(
            messages=[
                Message.user("Attack"),
                Message.assistant("Rolling...", calls),
                Message.tool("Rolled 1d20: [9] = 9", "toolu_1"),
                Message.tool("Error: Missing or invalid 'delta' parameter", "toolu_2"),
            ],
            model="claude-test",
        )

        await AnthropicProvider(client=client).chat(request)

        messages = client.messages.create.call_args.kwargs["messages"]
        assert len(messages) == 3
        assert messages[1] == {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Rolling..."},
                {"type": "tool_use", "id": "toolu_1", "name": "roll_dice", "input": {"notation": "1d20"}},
                {"type": "tool_use", "id": "toolu_2", "name": "update_hp", "input": {}},
            ],
        }
        assert messages[2] == {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "toolu_1", "content": "Rolled 1d20: [9] = 9"},
                {
                    "type": "tool_result",
                    "tool_use_id": "toolu_2",
                    "content": "Error: Missing or invalid 'delta' parameter",
                },
            ],
        }


class TestResponse:
    """Tests for response normalization."""

    async def test_text(self, client: MagicMock) -> None:
        """Test text blocks and usage."""
        response = await AnthropicProvider(client=client).chat(
            ChatRequest(messages=[Message.user("Hi")], model="claude-test")
        )

        assert response.content == "Welcome."
        assert response.finish_reason == "stop"
        assert response.usage.total_tokens == 42
        assert response.model == "claude-test"

    async def test_tool_use(self, client: MagicMock) -> None:
        """Test tool_use blocks become tool calls with JSON arguments."""
        client.messages.create.return_value = message_response(
            text_block("Let me roll."),
            tool_block("toolu_1", "roll_dice", {"notation": "2d6"}),
            stop_reason="tool_use",
        )

        response = await AnthropicProvider(client=client).chat(
            ChatRequest(messages=[Message.user("Hi")], model="claude-test")
        )

        assert response.content == "Let me roll."
        assert response.finish_reason == "tool_calls"
        assert len(response.tool_calls) == 1
        assert response.tool_calls[0].id == "toolu_1"
        assert response.tool_calls[0].arguments == '{"notation": "2d6"}'


class TestErrors:
    """Tests for SDK error mapping."""

    async def test_authentication(self, client: MagicMock) -> None:
        """Test bad keys map to AIAuthenticationError."""
        client.messages.create.side_effect = anthropic.AuthenticationError(
            "invalid x-api-key", response=httpx.Response(401, request=REQUEST), body=None
        )

        with pytest.raises(AIAuthenticationError):
            await AnthropicProvider(client=client).chat(ChatRequest(messages=[Message.user("Hi")], model="m"))

    async def test_rate_limit(self, client: MagicMock) -> None:
        """Test exhausted rate limit retries."""
        client.messages.create.side_effect = anthropic.RateLimitError(
            "rate limited", response=httpx.Response(429, request=REQUEST), body=None
        )

        with pytest.raises(AIRateLimitError):
            await AnthropicProvider(client=client, max_retries=0).chat(
                ChatRequest(messages=[Message.user("Hi")], model="m")
            )

        assert client.messages.create.await_count == 1

    async def test_connection(self, client: MagicMock) -> None:
        """Test connection failures map to AIConnectionError."""
        client.messages.create.side_effect = anthropic.APIConnectionError(request=REQUEST)

        with pytest.raises(AIConnectionError, match="Failed to connect to Anthropic"):
            await AnthropicProvider(client=client, max_retries=0).chat(
                ChatRequest(messages=[Message.user("Hi")], model="m")
            )
