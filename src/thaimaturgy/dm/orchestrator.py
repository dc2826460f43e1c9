"""DM Orchestrator - the conversation loop behind every turn.

One player input runs this loop:
1. INPUT: The text is appended to the conversation
2. PROMPT: The system prompt is rebuilt from the current game state
3. BACKEND: Messages and the tool catalog are sent to the AI provider
4. TOOLS: Requested tool calls run through the ToolRouter and their
   results are sent back, up to the iteration limit
5. NARRATIVE: The final text is recorded as the assistant's reply

Python owns the game state. The model only proposes changes through tools,
and the router applies them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from thaimaturgy.core.constants import (
    MAX_TOOL_ITERATIONS,
    MEMORY_SUMMARY_THRESHOLD,
    SUMMARY_TIMEOUT_SECONDS,
    TURN_TIMEOUT_SECONDS,
)
from thaimaturgy.core.exceptions import (
    AIControlError,
    AITimeoutError,
    ConfigurationError,
    IterationLimitError,
)
from thaimaturgy.core.logging import get_logger
from thaimaturgy.dm.memory import MemorySummarizer
from thaimaturgy.dm.prompts import START_GAME_PROMPT, build_system_prompt
from thaimaturgy.engine.dice import DiceRoller
from thaimaturgy.engine.tools import ToolOutcome, ToolRouter
from thaimaturgy.models.conversation import Message
from thaimaturgy.models.events import Event
from thaimaturgy.models.session import GameSession
from thaimaturgy.providers.base import ChatRequest, ChatResponse, Provider


logger = get_logger(__name__)


# =============================================================================
# Orchestrator Response
# =============================================================================


@dataclass
class OrchestratorResponse:
    """Result of processing one player input."""

    narrative: str = ""
    """The Dungeon Master's reply."""

    events: list[Event] = field(default_factory=list)
    """Events recorded by tools this turn, plus an error event per failed tool."""

    tool_outcomes: list[ToolOutcome] = field(default_factory=list)
    """Outcomes of every tool call, in execution order."""

    tokens_used: int = 0
    """Total tokens across all backend round-trips."""

    latency_ms: int = 0
    """Total backend latency across all round-trips."""

    iterations: int = 0
    """Backend round-trips performed."""


# =============================================================================
# Orchestrator
# =============================================================================


class Orchestrator:
    """Runs Dungeon Master turns for a game session.

    A session must only have one turn in flight at a time; callers
    serialize input.

    Example:
        >>> orchestrator = Orchestrator(session, create_provider())
        >>> response = await orchestrator.process_input("I open the door")
        >>> print(response.narrative)
    """

    def __init__(
        self,
        session: GameSession,
        provider: Provider | None = None,
        *,
        roller: DiceRoller | None = None,
        turn_timeout: float = TURN_TIMEOUT_SECONDS,
        summary_timeout: float = SUMMARY_TIMEOUT_SECONDS,
        summary_threshold: int = MEMORY_SUMMARY_THRESHOLD,
        max_iterations: int = MAX_TOOL_ITERATIONS,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            session: The session to play.
            provider: AI backend; turns fail until one is set.
            roller: Dice roller for tool rolls; defaults to the shared one.
            turn_timeout: Deadline for a whole turn, in seconds.
            summary_timeout: Deadline for a memory summary, in seconds.
            summary_threshold: Conversation length that triggers summaries.
            max_iterations: Backend round-trips allowed per input.
        """
        self.session = session
        self.provider = provider
        self.router = ToolRouter(session, roller=roller)
        self.memory = MemorySummarizer(threshold=summary_threshold, timeout=summary_timeout)
        self.turn_timeout = turn_timeout
        self.max_iterations = max_iterations

        logger.info(
            "Orchestrator initialized",
            provider=provider.name if provider else None,
            model=session.config.model,
        )

    def set_provider(self, provider: Provider | None) -> None:
        """Swap the AI backend between turns."""
        self.provider = provider
        logger.info("Provider changed", provider=provider.name if provider else None)

    # -------------------------------------------------------------------------
    # Prompt
    # -------------------------------------------------------------------------

    def build_system_prompt(self) -> str:
        """Build the system prompt from the current game state."""
        return build_system_prompt(self.session.state, self.session.config)

    def _build_messages(self) -> list[Message]:
        messages = [Message.system(self.build_system_prompt())]
        messages.extend(
            Message(role=m.role, content=m.content, name=m.name, tool_call_id=m.tool_call_id)
            for m in self.session.state.conversation.messages
        )
        return messages

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    async def process_input(self, text: str) -> OrchestratorResponse:
        """Run one Dungeon Master turn for a player input.

        The input is recorded before the backend is called and stays in the
        conversation even if the turn fails.

        Args:
            text: What the player said or did.

        Returns:
            OrchestratorResponse with the narrative and turn totals.

        Raises:
            ConfigurationError: If no provider is configured.
            AITimeoutError: If the turn exceeds its deadline.
            AIControlError: If a backend request fails.
            IterationLimitError: If the model keeps calling tools past the limit.
        """
        provider = self.provider
        if provider is None:
            raise ConfigurationError("No AI provider configured", config_key="provider")

        self.session.state.conversation.add_user_message(text)
        logger.info("Processing player input", input_preview=text[:100])

        try:
            return await asyncio.wait_for(self._run_turn(provider), timeout=self.turn_timeout)
        except TimeoutError as exc:
            logger.warning("Turn timed out", timeout=self.turn_timeout)
            raise AITimeoutError(
                f"AI request failed: turn timed out after {self.turn_timeout:g}s",
                provider=provider.name,
                model=self.session.config.model,
            ) from exc

    async def _run_turn(self, provider: Provider) -> OrchestratorResponse:
        config = self.session.config
        request = ChatRequest(
            messages=self._build_messages(),
            model=config.model,
            tools=self.router.get_tool_definitions(),
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
        response = OrchestratorResponse()

        for iteration in range(1, self.max_iterations + 1):
            reply = await self._chat(provider, request)
            response.iterations = iteration
            response.tokens_used += reply.usage.total_tokens
            response.latency_ms += reply.latency_ms

            if not reply.has_tool_calls:
                response.narrative = reply.content
                self.session.state.conversation.add_assistant_message(reply.content)
                self.session.mark_modified()

                logger.info(
                    "Turn completed",
                    iterations=iteration,
                    tool_calls=len(response.tool_outcomes),
                    tokens=response.tokens_used,
                    latency_ms=response.latency_ms,
                )
                return response

            request.messages.append(Message.assistant(reply.content, reply.tool_calls))
            for invocation in reply.tool_calls:
                outcome = self.router.execute(invocation)
                response.tool_outcomes.append(outcome)
                response.events.extend(outcome.events)
                if not outcome.success:
                    response.events.append(Event.error(outcome.error))
                request.messages.append(Message.tool(outcome.message_content, invocation.id))

        logger.warning(
            "Tool iteration limit reached",
            iterations=response.iterations,
            tokens=response.tokens_used,
        )
        raise IterationLimitError(
            "Maximum tool iterations reached",
            iterations=response.iterations,
            tokens_used=response.tokens_used,
            latency_ms=response.latency_ms,
            response=response,
        )

    async def _chat(self, provider: Provider, request: ChatRequest) -> ChatResponse:
        try:
            return await provider.chat(request)
        except AIControlError as exc:
            logger.error("AI request failed", provider=provider.name, error=exc.message)
            raise
        except Exception as exc:
            logger.exception("AI request failed", provider=provider.name)
            raise AIControlError(
                f"AI request failed: {exc}",
                provider=provider.name,
                model=request.model,
            ) from exc

    async def start_new_game(self) -> OrchestratorResponse:
        """Ask the Dungeon Master to open the adventure."""
        character = self.session.state.character
        intro = START_GAME_PROMPT.format(
            name=character.name,
            race=character.race,
            class_name=character.class_name,
        )
        return await self.process_input(intro)

    # -------------------------------------------------------------------------
    # Memory
    # -------------------------------------------------------------------------

    async def update_memory_summary(self) -> bool:
        """Refresh the running story summary when the conversation is long enough.

        Returns:
            True if a new summary was stored, False if below the threshold
            or no provider is configured.

        Raises:
            AIControlError: If the summary request fails or times out.
        """
        conversation = self.session.state.conversation
        if self.provider is None or not self.memory.should_summarize(conversation):
            return False

        summary = await self.memory.summarize(self.provider, conversation, self.session.config.model)
        self.session.state.world.memory_summary = summary
        self.session.mark_modified()
        return True

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_status(self) -> dict[str, Any]:
        """Return a read-only snapshot for display."""
        state = self.session.state
        return {
            "provider": self.provider.name if self.provider else None,
            "model": self.session.config.model,
            "temperature": self.session.config.temperature,
            "character": state.character.summary(),
            "location": state.world.current_location.name,
            "conversation": len(state.conversation),
            "events": len(state.event_log),
        }


__all__ = [
    "OrchestratorResponse",
    "Orchestrator",
]
