"""Running story memory for long sessions.

The conversation keeps only the most recent messages. Once it grows past a
threshold, a side-channel request condenses the story into a short summary
stored on the world state, and the system prompt carries that summary so
the Dungeon Master keeps continuity after old messages are dropped.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from thaimaturgy.core.constants import (
    MEMORY_SUMMARY_THRESHOLD,
    SUMMARY_MAX_TOKENS,
    SUMMARY_TEMPERATURE,
    SUMMARY_TIMEOUT_SECONDS,
)
from thaimaturgy.core.exceptions import AIControlError, AITimeoutError
from thaimaturgy.core.logging import get_logger
from thaimaturgy.dm.prompts import SUMMARY_REQUEST_PROMPT, SUMMARY_SYSTEM_PROMPT
from thaimaturgy.models.conversation import Conversation, Message, MessageRole
from thaimaturgy.providers.base import ChatRequest


if TYPE_CHECKING:
    from thaimaturgy.providers.base import Provider


logger = get_logger(__name__)


class MemorySummarizer:
    """Condenses a conversation into a story summary.

    Attributes:
        threshold: Conversation length at which summaries are produced.
        timeout: Deadline for one summary request, in seconds.
    """

    def __init__(
        self,
        *,
        threshold: int = MEMORY_SUMMARY_THRESHOLD,
        timeout: float = SUMMARY_TIMEOUT_SECONDS,
    ) -> None:
        self.threshold = threshold
        self.timeout = timeout

    def should_summarize(self, conversation: Conversation) -> bool:
        return len(conversation) >= self.threshold

    def build_request(self, conversation: Conversation, model: str) -> ChatRequest:
        """Build the summary request from the conversation history.

        Only the text of user and assistant messages is sent; tools are not
        offered.
        """
        messages = [Message.system(SUMMARY_SYSTEM_PROMPT)]
        for message in conversation.messages:
            if message.role == MessageRole.ASSISTANT:
                messages.append(Message.assistant(message.content))
            else:
                messages.append(Message.user(message.content))
        messages.append(Message.user(SUMMARY_REQUEST_PROMPT))

        return ChatRequest(
            messages=messages,
            model=model,
            temperature=SUMMARY_TEMPERATURE,
            max_tokens=SUMMARY_MAX_TOKENS,
        )

    async def summarize(self, provider: Provider, conversation: Conversation, model: str) -> str:
        """Request a summary of the conversation.

        Args:
            provider: Backend to ask.
            conversation: History to summarize.
            model: Model identifier.

        Returns:
            The summary text.

        Raises:
            AITimeoutError: If the request exceeds the deadline.
            AIControlError: If the request fails.
        """
        request = self.build_request(conversation, model)
        try:
            response = await asyncio.wait_for(provider.chat(request), timeout=self.timeout)
        except TimeoutError as exc:
            raise AITimeoutError(
                f"Memory summary timed out after {self.timeout:g}s",
                provider=provider.name,
                model=model,
            ) from exc
        except AIControlError:
            raise
        except Exception as exc:
            raise AIControlError(
                f"Memory summary failed: {exc}",
                provider=provider.name,
                model=model,
            ) from exc

        logger.info(
            "Memory summary updated",
            messages=len(conversation),
            summary_length=len(response.content),
            tokens=response.usage.total_tokens,
        )
        return response.content


__all__ = ["MemorySummarizer"]
