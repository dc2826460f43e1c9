"""Game state models.

Pydantic models for the character sheet, the world, the conversation and
the event log, plus the session aggregate that ties them together.
"""

from __future__ import annotations

from thaimaturgy.models.character import (
    Ability,
    AbilityScores,
    Character,
    Condition,
    InventoryItem,
    Skill,
    modifier,
    modifier_string,
)
from thaimaturgy.models.conversation import Conversation, Message, MessageRole, ToolInvocation
from thaimaturgy.models.events import Event, EventLog, EventType
from thaimaturgy.models.session import GameConfig, GameSession, GameState
from thaimaturgy.models.world import NPC, Location, Quest, WorldState


__all__ = [
    # Character
    "Ability",
    "AbilityScores",
    "Character",
    "Condition",
    "InventoryItem",
    "Skill",
    "modifier",
    "modifier_string",
    # World
    "Location",
    "Quest",
    "NPC",
    "WorldState",
    # Conversation
    "MessageRole",
    "Message",
    "ToolInvocation",
    "Conversation",
    # Events
    "EventType",
    "Event",
    "EventLog",
    # Session
    "GameConfig",
    "GameState",
    "GameSession",
]
