"""Game state, per-session configuration and the live game session.

GameState is what gets saved. GameSession wraps it with the runtime
configuration and the modified flag the front-end uses to decide when to
save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

from thaimaturgy.core.constants import (
    CONVERSATION_MAX_SIZE,
    DEFAULT_MAX_TOKENS,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_TEMPERATURE,
    EVENT_LOG_MAX_SIZE,
)
from thaimaturgy.core.logging import get_logger
from thaimaturgy.models.character import Character
from thaimaturgy.models.conversation import Conversation
from thaimaturgy.models.events import EventLog
from thaimaturgy.models.world import WorldState


if TYPE_CHECKING:
    from thaimaturgy.core.config import Settings


logger = get_logger(__name__)


class GameConfig(BaseModel):
    """Runtime settings of a play session, adjustable with slash commands.

    Attributes:
        provider: AI backend name.
        model: Model identifier sent with each request.
        temperature: Sampling temperature (0-2).
        language: Language of the default Dungeon Master prompt.
        max_tokens: Token budget per response.
        system_prompt: Custom prompt replacing the default one.
        default_setting: World setting for new games.
        auto_save: Save after every completed turn.
    """

    model_config = ConfigDict(validate_assignment=True)

    provider: Literal["openai", "anthropic"] = "openai"
    model: str = DEFAULT_OPENAI_MODEL
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    language: Literal["en", "es"] = "en"
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    system_prompt: str = ""
    default_setting: str = "fantasy"
    auto_save: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> GameConfig:
        """Build a session config from application settings."""
        return cls(
            provider=settings.ai.provider,
            model=settings.ai.resolved_model(),
            temperature=settings.game.temperature,
            language=settings.game.language,
            max_tokens=settings.game.max_tokens,
            default_setting=settings.game.default_setting,
            auto_save=settings.game.auto_save,
        )

    def active_system_prompt(self) -> str:
        """Return the custom prompt if one is set, else the language default."""
        if self.system_prompt:
            return self.system_prompt
        from thaimaturgy.dm.prompts import get_default_system_prompt

        return get_default_system_prompt(self.language)


class GameState(BaseModel):
    """The complete saved state of one adventure."""

    save_name: str = ""
    character: Character
    world: WorldState = Field(default_factory=WorldState)
    conversation: Conversation = Field(default_factory=Conversation)
    event_log: EventLog = Field(default_factory=EventLog)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    play_time_seconds: float = 0.0

    @classmethod
    def new_game(
        cls,
        save_name: str,
        character: Character,
        setting: str = "fantasy",
        *,
        conversation_size: int = CONVERSATION_MAX_SIZE,
        event_log_size: int = EVENT_LOG_MAX_SIZE,
    ) -> GameState:
        """Start a fresh adventure for a character."""
        return cls(
            save_name=save_name,
            character=character,
            world=WorldState(setting=setting),
            conversation=Conversation(max_size=conversation_size),
            event_log=EventLog(max_size=event_log_size),
        )

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def summary(self) -> str:
        return f"{self.character.summary()} | {self.world.current_location.name}"


@dataclass
class GameSession:
    """A game state being played, with its runtime configuration.

    Only one turn may run against a session at a time; the front-end
    serializes player input.
    """

    state: GameState
    config: GameConfig = field(default_factory=GameConfig)
    started_at: datetime = field(default_factory=datetime.now)
    is_modified: bool = False

    def mark_modified(self) -> None:
        """Flag unsaved changes and bump the state's update time."""
        self.is_modified = True
        self.state.touch()

    def mark_saved(self) -> None:
        self.is_modified = False

    def add_play_time(self) -> None:
        """Fold the time since the last call into the saved play time."""
        now = datetime.now()
        self.state.play_time_seconds += (now - self.started_at).total_seconds()
        self.started_at = now


__all__ = [
    "GameConfig",
    "GameState",
    "GameSession",
]
