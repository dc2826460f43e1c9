"""Thaimaturgy - a text adventure narrated by an AI Dungeon Master.

ARCHITECTURE:
- Python owns TRUTH (character sheet, world state, every dice roll)
- The LLM handles NARRATION and proposes changes through tool calls
- The LLM never mutates state or generates random numbers itself

Example:
    >>> from thaimaturgy import GameSession, GameState, Character, Orchestrator
    >>> from thaimaturgy.providers import create_provider
    >>>
    >>> hero = Character(name="Thorin", race="Dwarf", class_name="Fighter")
    >>> session = GameSession(state=GameState.new_game("thorin", hero))
    >>>
    >>> dm = Orchestrator(session, create_provider())
    >>> response = await dm.process_input("I search the room for traps")
    >>> print(response.narrative)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic schemas for the character, world, conversation and events.
    engine: Dice, the tool router and slash commands.
    providers: OpenAI and Anthropic backends behind one chat contract.
    dm: Turn orchestration, prompts and story memory.
    storage: SQLite saved games.
    cli: Typer command line and the interactive play loop.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Core
from thaimaturgy.core.config import Settings, get_settings
from thaimaturgy.core.exceptions import ThaimaturgyError
from thaimaturgy.core.logging import configure_logging, get_logger

# Game state (The Source of Truth)
from thaimaturgy.models import (
    Character,
    Event,
    GameConfig,
    GameSession,
    GameState,
    WorldState,
)

# Engine
from thaimaturgy.engine import DiceRoller, ToolRouter, parse_command, roll

# DM Orchestrator
from thaimaturgy.dm import Orchestrator, OrchestratorResponse


__all__ = [
    "__version__",
    # Core
    "Settings",
    "get_settings",
    "ThaimaturgyError",
    "configure_logging",
    "get_logger",
    # Models
    "Character",
    "Event",
    "GameConfig",
    "GameSession",
    "GameState",
    "WorldState",
    # Engine
    "DiceRoller",
    "ToolRouter",
    "parse_command",
    "roll",
    # DM
    "Orchestrator",
    "OrchestratorResponse",
]
