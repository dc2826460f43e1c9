"""Game engine module for Thaimaturgy.

Everything the Dungeon Master cannot be trusted to do itself runs here:

Submodules:
    dice: Dice notation parsing and rolling
    tools: Tool catalog and the router that applies tool calls to the session
    tool_arguments: Typed argument models for each tool
    commands: Slash command parsing and execution

Example:
    >>> from thaimaturgy.engine import DiceRoller, parse_command
    >>>
    >>> roller = DiceRoller(seed=42)
    >>> roller.roll("2d6+3").total
    >>> parse_command("/inv add rope").type
"""

from __future__ import annotations

# =============================================================================
# Dice Rolling
# =============================================================================
from thaimaturgy.engine.dice import (
    DiceRoll,
    DiceRoller,
    get_default_roller,
    parse_dice,
    roll,
)

# =============================================================================
# Tools
# =============================================================================
from thaimaturgy.engine.tools import (
    TOOL_DEFINITIONS,
    ToolDefinition,
    ToolOutcome,
    ToolRouter,
    get_tool,
    get_tool_definitions,
    get_tools_as_openai_schema,
)

# =============================================================================
# Commands
# =============================================================================
from thaimaturgy.engine.commands import (
    HELP_TEXT,
    Command,
    CommandHandler,
    CommandResult,
    CommandType,
    parse_command,
)


__all__ = [
    # Dice
    "DiceRoll",
    "DiceRoller",
    "get_default_roller",
    "parse_dice",
    "roll",
    # Tools
    "TOOL_DEFINITIONS",
    "ToolDefinition",
    "ToolOutcome",
    "ToolRouter",
    "get_tool",
    "get_tool_definitions",
    "get_tools_as_openai_schema",
    # Commands
    "HELP_TEXT",
    "Command",
    "CommandHandler",
    "CommandResult",
    "CommandType",
    "parse_command",
]
