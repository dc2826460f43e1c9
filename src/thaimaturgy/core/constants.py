"""Application-wide constants for Thaimaturgy.

Game rule numbers, engine limits and AI request defaults shared by the
dice engine, the tool router, the orchestrator and configuration.
"""

from __future__ import annotations

# =============================================================================
# Dice Engine Limits
# =============================================================================

MIN_DICE_COUNT = 1
"""Fewest dice a single notation may roll."""

MAX_DICE_COUNT = 100
"""Most dice a single notation may roll."""

MIN_DICE_SIDES = 1
"""Smallest die size accepted (a d0 is rejected)."""

MAX_DICE_SIDES = 1000
"""Largest die size accepted."""

ABILITY_SCORE_DICE = 4
"""Dice rolled when generating an ability score (the lowest is dropped)."""

ABILITY_SCORE_NOTATION = "4d6 drop lowest"
"""Notation recorded on generated ability score rolls."""

# =============================================================================
# Character Defaults
# =============================================================================

DEFAULT_ABILITY_SCORE = 10
"""Ability score of a freshly created character."""

DEFAULT_HIT_POINTS = 10
"""Starting current and maximum hit points."""

DEFAULT_ARMOR_CLASS = 10
"""Starting armor class."""

DEFAULT_SPEED = 30
"""Walking speed in feet."""

DEFAULT_PROFICIENCY_BONUS = 2
"""Proficiency bonus at level 1."""

STANDARD_SKILLS: tuple[tuple[str, str], ...] = (
    ("Acrobatics", "DEX"),
    ("Animal Handling", "WIS"),
    ("Arcana", "INT"),
    ("Athletics", "STR"),
    ("Deception", "CHA"),
    ("History", "INT"),
    ("Insight", "WIS"),
    ("Intimidation", "CHA"),
    ("Investigation", "INT"),
    ("Medicine", "WIS"),
    ("Nature", "INT"),
    ("Perception", "WIS"),
    ("Performance", "CHA"),
    ("Persuasion", "CHA"),
    ("Religion", "INT"),
    ("Sleight of Hand", "DEX"),
    ("Stealth", "DEX"),
    ("Survival", "WIS"),
)
"""The eighteen standard skills and the ability each one uses."""

# =============================================================================
# Session Limits
# =============================================================================

CONVERSATION_MAX_SIZE = 50
"""Messages kept in a conversation before the oldest are dropped."""

EVENT_LOG_MAX_SIZE = 100
"""Events kept in the event log before the oldest are dropped."""

# =============================================================================
# Orchestration
# =============================================================================

MAX_TOOL_ITERATIONS = 5
"""Backend round-trips allowed for a single player input."""

MEMORY_SUMMARY_THRESHOLD = 10
"""Conversation length at which the running story summary is refreshed."""

SUMMARY_TEMPERATURE = 0.3
"""Sampling temperature for summary requests."""

SUMMARY_MAX_TOKENS = 1000
"""Token budget for summary requests."""

TURN_TIMEOUT_SECONDS = 60.0
"""Deadline for a whole narration turn."""

SUMMARY_TIMEOUT_SECONDS = 30.0
"""Deadline for a memory summary request."""

# =============================================================================
# AI Request Defaults
# =============================================================================

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
"""Default OpenAI chat model."""

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
"""Default Anthropic chat model."""

DEFAULT_TEMPERATURE = 0.8
"""Sampling temperature for narration."""

DEFAULT_MAX_TOKENS = 2048
"""Token budget for narration responses."""

ANTHROPIC_DEFAULT_MAX_TOKENS = 4096
"""Anthropic requires max_tokens; used when a request leaves it unset."""
