"""Conversation history and the chat message types shared with AI backends.

The conversation holds only what the player said and what the Dungeon
Master answered. The system prompt is rebuilt every turn and tool traffic
lives only in the outgoing request for that turn, so neither is stored here.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from thaimaturgy.core.constants import CONVERSATION_MAX_SIZE


class MessageRole(StrEnum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolInvocation(BaseModel):
    """A tool call requested by the model.

    Attributes:
        id: Backend identifier correlating the call with its result.
        name: Name of the tool to run.
        arguments: Raw JSON object with the call arguments.
    """

    id: str
    name: str
    arguments: str = "{}"


class Message(BaseModel):
    """A chat message.

    Attributes:
        role: Who authored the message.
        content: Message text.
        name: Optional author name.
        tool_calls: Tool calls requested by an assistant message.
        tool_call_id: For tool messages, the call this result answers.
        timestamp: When the message was created.
    """

    role: MessageRole
    content: str = ""
    name: str | None = None
    tool_calls: list[ToolInvocation] = Field(default_factory=list)
    tool_call_id: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: list[ToolInvocation] | None = None) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool(cls, content: str, tool_call_id: str) -> Message:
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id)


class Conversation(BaseModel):
    """Bounded message history; the oldest messages are dropped when full."""

    model_config = ConfigDict(extra="ignore")

    max_size: int = Field(default=CONVERSATION_MAX_SIZE, ge=1)
    messages: deque[Message] = Field(default_factory=deque)

    def model_post_init(self, __context: Any) -> None:
        self.messages = deque(self.messages, maxlen=self.max_size)

    def add(self, message: Message) -> None:
        self.messages.append(message)

    def add_user_message(self, content: str) -> None:
        self.add(Message.user(content))

    def add_assistant_message(self, content: str) -> None:
        self.add(Message.assistant(content))

    def add_system_message(self, content: str) -> None:
        self.add(Message.system(content))

    def last(self, n: int) -> list[Message]:
        """Return the ``n`` most recent messages, or all of them if ``n`` is not positive."""
        if n <= 0 or n >= len(self.messages):
            return list(self.messages)
        return list(self.messages)[-n:]

    def clear(self) -> None:
        self.messages.clear()

    def __len__(self) -> int:
        return len(self.messages)


__all__ = [
    "MessageRole",
    "ToolInvocation",
    "Message",
    "Conversation",
]
