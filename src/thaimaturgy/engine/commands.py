"""Slash commands typed by the player.

Input starting with ``/`` or ``:`` is a command; anything else is narration
for the Dungeon Master. Commands that only touch the local game state
(character edits, inventory, conditions, dice, settings) run here. Commands
that need the front-end (new game, save, load, editing the system prompt,
narration) come back as an ``action`` for the caller to carry out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from thaimaturgy.core.exceptions import DiceRollError
from thaimaturgy.core.logging import get_logger
from thaimaturgy.engine.dice import DiceRoller, get_default_roller
from thaimaturgy.models.character import Ability, InventoryItem, modifier_string
from thaimaturgy.models.events import Event


if TYPE_CHECKING:
    from thaimaturgy.models.session import GameSession


logger = get_logger(__name__)


# =============================================================================
# Parsing
# =============================================================================


class CommandType(StrEnum):
    """Kinds of player input."""

    UNKNOWN = "unknown"
    HELP = "help"
    NEW = "new"
    SAVE = "save"
    LOAD = "load"
    QUIT = "quit"
    CHAR_SET = "char_set"
    INV_ADD = "inv_add"
    INV_REMOVE = "inv_remove"
    COND_ADD = "cond_add"
    COND_REMOVE = "cond_remove"
    PROVIDER = "provider"
    MODEL = "model"
    TEMP = "temp"
    SYSTEM = "system"
    ROLL = "roll"
    STATUS = "status"
    INVENTORY = "inventory"
    QUESTS = "quests"
    LOOK = "look"
    NARRATION = "narration"


@dataclass
class Command:
    """A parsed line of player input.

    Attributes:
        type: What the input asks for.
        raw: The input as typed, whitespace-trimmed.
        args: Positional arguments after the command word.
        params: ``key=value`` pairs for ``/char set``.
    """

    type: CommandType
    raw: str
    args: list[str] = field(default_factory=list)
    params: dict[str, str] = field(default_factory=dict)


_SIMPLE_COMMANDS: dict[str, CommandType] = {
    "help": CommandType.HELP,
    "h": CommandType.HELP,
    "?": CommandType.HELP,
    "new": CommandType.NEW,
    "n": CommandType.NEW,
    "save": CommandType.SAVE,
    "s": CommandType.SAVE,
    "load": CommandType.LOAD,
    "l": CommandType.LOAD,
    "quit": CommandType.QUIT,
    "q": CommandType.QUIT,
    "exit": CommandType.QUIT,
    "provider": CommandType.PROVIDER,
    "p": CommandType.PROVIDER,
    "model": CommandType.MODEL,
    "m": CommandType.MODEL,
    "temp": CommandType.TEMP,
    "temperature": CommandType.TEMP,
    "system": CommandType.SYSTEM,
    "roll": CommandType.ROLL,
    "r": CommandType.ROLL,
    "status": CommandType.STATUS,
    "st": CommandType.STATUS,
    "quests": CommandType.QUESTS,
    "quest": CommandType.QUESTS,
    "look": CommandType.LOOK,
}

_ADD_WORDS = ("add", "a")
_REMOVE_WORDS = ("rm", "remove", "r")


def _parse_key_values(args: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key:
            params[key.lower()] = value
    return params


def parse_command(text: str) -> Command | None:
    """Parse a line of player input.

    Args:
        text: Raw input.

    Returns:
        The parsed Command, or None for blank input.
    """
    text = text.strip()
    if not text:
        return None

    if not text.startswith(("/", ":")):
        return Command(type=CommandType.NARRATION, raw=text, args=[text])

    parts = text[1:].split()
    if not parts:
        return None

    name = parts[0].lower()
    args = parts[1:]

    if name in ("char", "character", "c"):
        if args and args[0] == "set":
            return Command(type=CommandType.CHAR_SET, raw=text, params=_parse_key_values(args[1:]))
        return Command(type=CommandType.STATUS, raw=text)

    if name in ("inv", "inventory", "i"):
        if args and args[0] in _ADD_WORDS:
            return Command(type=CommandType.INV_ADD, raw=text, args=args[1:])
        if args and args[0] in _REMOVE_WORDS:
            return Command(type=CommandType.INV_REMOVE, raw=text, args=args[1:])
        return Command(type=CommandType.INVENTORY, raw=text)

    if name in ("cond", "condition"):
        if args and args[0] in _ADD_WORDS:
            return Command(type=CommandType.COND_ADD, raw=text, args=args[1:])
        if args and args[0] in _REMOVE_WORDS:
            return Command(type=CommandType.COND_REMOVE, raw=text, args=args[1:])
        return Command(type=CommandType.UNKNOWN, raw=text, args=parts)

    command_type = _SIMPLE_COMMANDS.get(name)
    if command_type is None:
        return Command(type=CommandType.UNKNOWN, raw=text, args=parts)
    return Command(type=command_type, raw=text, args=args)


# =============================================================================
# Execution
# =============================================================================


@dataclass
class CommandResult:
    """Outcome of a command.

    Attributes:
        success: Whether the command did what was asked.
        message: Short status line.
        response: Longer text block to display (help, status, inventory).
        events: Events the command recorded.
        should_quit: The player asked to leave.
        action: Front-end action to perform (new, save, load,
            system_prompt, narration), if any.
    """

    success: bool = True
    message: str = ""
    response: str = ""
    events: list[Event] = field(default_factory=list)
    should_quit: bool = False
    action: str | None = None


HELP_TEXT = """
COMMANDS:
  /help, /h, /?         Show this help
  /new, /n              Start new campaign
  /save [name], /s      Save current game
  /load [name], /l      Load saved game
  /quit, /q             Exit game

CHARACTER:
  /char set <key>=<val> Set character attributes
                        Keys: name, race, class, level,
                              str, dex, con, int, wis, cha,
                              hp, maxhp, ac, gold
  /status, /st          Show character status
  /inv, /i              Show inventory
  /inv add <item>       Add item to inventory
  /inv rm <item>        Remove item from inventory
  /cond add <cond>      Add condition
  /cond rm <cond>       Remove condition

GAMEPLAY:
  /roll <dice>          Roll dice (e.g., /roll 2d6+3)
  /look                 Describe current location
  /quests               Show active quests

SETTINGS:
  /provider <name>      Set LLM provider (openai/anthropic)
  /model <id>           Set model ID
  /temp <0-2>           Set temperature
  /system               Edit system prompt

Type any text without / to interact with the DM.
"""

# /char set keys mapped to character fields
_CHAR_TEXT_FIELDS = {"name": "name", "race": "race", "class": "class_name"}
_CHAR_INT_FIELDS = {
    "level": "level",
    "hp": "current_hp",
    "maxhp": "max_hp",
    "ac": "ac",
    "gold": "gold",
}
_CHAR_ABILITY_KEYS = {
    "str": Ability.STR,
    "dex": Ability.DEX,
    "con": Ability.CON,
    "int": Ability.INT,
    "wis": Ability.WIS,
    "cha": Ability.CHA,
}

_PROVIDERS = ("openai", "anthropic")


class CommandHandler:
    """Executes slash commands against a game session.

    Events produced by a command are added to the session's event log and
    returned on the result.
    """

    def __init__(self, session: GameSession, *, roller: DiceRoller | None = None) -> None:
        self.session = session
        self._roller = roller or get_default_roller()

    def execute(self, command: Command) -> CommandResult:
        """Run a parsed command.

        Args:
            command: The command to run.

        Returns:
            CommandResult describing what happened.
        """
        result = CommandResult()
        handler = getattr(self, f"_cmd_{command.type.value}")
        handler(command, result)

        for event in result.events:
            self.session.state.event_log.add(event)

        logger.debug("Command executed", command=command.type.value, success=result.success)
        return result

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def _cmd_help(self, command: Command, result: CommandResult) -> None:
        result.response = HELP_TEXT

    def _cmd_quit(self, command: Command, result: CommandResult) -> None:
        result.should_quit = True
        result.message = "Farewell, adventurer..."

    def _cmd_save(self, command: Command, result: CommandResult) -> None:
        if command.args:
            self.session.state.save_name = command.args[0]
        result.action = "save"
        result.message = f"Saving game as '{self.session.state.save_name}'..."

    def _cmd_load(self, command: Command, result: CommandResult) -> None:
        result.action = "load"
        if command.args:
            result.message = command.args[0]

    def _cmd_new(self, command: Command, result: CommandResult) -> None:
        result.action = "new"

    def _cmd_system(self, command: Command, result: CommandResult) -> None:
        result.action = "system_prompt"

    def _cmd_narration(self, command: Command, result: CommandResult) -> None:
        result.action = "narration"
        result.message = command.args[0]

    def _cmd_unknown(self, command: Command, result: CommandResult) -> None:
        result.success = False
        result.message = f"Unknown command: {command.raw}. Type /help for available commands."

    # -------------------------------------------------------------------------
    # Character
    # -------------------------------------------------------------------------

    def _cmd_char_set(self, command: Command, result: CommandResult) -> None:
        character = self.session.state.character
        applied: list[str] = []
        rejected: list[str] = []
        for key, value in command.params.items():
            try:
                if key in _CHAR_TEXT_FIELDS:
                    setattr(character, _CHAR_TEXT_FIELDS[key], value)
                elif key in _CHAR_INT_FIELDS:
                    setattr(character, _CHAR_INT_FIELDS[key], int(value))
                elif key in _CHAR_ABILITY_KEYS:
                    character.abilities.set(_CHAR_ABILITY_KEYS[key], int(value))
                else:
                    rejected.append(key)
                    continue
            except (ValueError, PydanticValidationError):
                logger.debug("Rejected character value", key=key, value=value)
                rejected.append(key)
                continue
            applied.append(key)

        if applied:
            self.session.mark_modified()
            result.events.append(Event.system_message("Character stats updated"))
            result.message = "Character updated"
        else:
            result.success = False
            result.message = "No character changes"
        if rejected:
            result.message += f" (invalid: {', '.join(rejected)})"

    def _cmd_inv_add(self, command: Command, result: CommandResult) -> None:
        if not command.args:
            return
        item = " ".join(command.args)
        self.session.state.character.add_item(InventoryItem(name=item, quantity=1))
        self.session.mark_modified()
        result.events.append(Event.item_add(item, 1))
        result.message = f"Added {item} to inventory"

    def _cmd_inv_remove(self, command: Command, result: CommandResult) -> None:
        if not command.args:
            return
        item = " ".join(command.args)
        if not self.session.state.character.remove_item(item, 1):
            result.success = False
            result.message = f"Item '{item}' not found in inventory"
            return
        self.session.mark_modified()
        result.events.append(Event.item_remove(item, 1))
        result.message = f"Removed {item} from inventory"

    def _cmd_cond_add(self, command: Command, result: CommandResult) -> None:
        if not command.args:
            return
        condition = " ".join(command.args)
        self.session.state.character.add_condition(condition)
        self.session.mark_modified()
        result.events.append(Event.condition_add(condition))
        result.message = f"Condition added: {condition}"

    def _cmd_cond_remove(self, command: Command, result: CommandResult) -> None:
        if not command.args:
            return
        condition = " ".join(command.args)
        self.session.state.character.remove_condition(condition)
        self.session.mark_modified()
        result.events.append(Event.condition_remove(condition))
        result.message = f"Condition removed: {condition}"

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def _cmd_provider(self, command: Command, result: CommandResult) -> None:
        config = self.session.config
        if not command.args:
            result.message = f"Current provider: {config.provider}"
            return
        provider = command.args[0].lower()
        if provider not in _PROVIDERS:
            result.success = False
            result.message = "Invalid provider. Use 'openai' or 'anthropic'"
            return
        config.provider = provider
        result.message = f"Provider set to: {provider}"
        result.events.append(Event.system_message(result.message))

    def _cmd_model(self, command: Command, result: CommandResult) -> None:
        config = self.session.config
        if not command.args:
            result.message = f"Current model: {config.model}"
            return
        config.model = command.args[0]
        result.message = f"Model set to: {config.model}"
        result.events.append(Event.system_message(result.message))

    def _cmd_temp(self, command: Command, result: CommandResult) -> None:
        config = self.session.config
        if not command.args:
            result.message = f"Current temperature: {config.temperature:.1f}"
            return
        try:
            temperature = float(command.args[0])
        except ValueError:
            temperature = -1.0
        if not 0.0 <= temperature <= 2.0:
            result.success = False
            result.message = "Invalid temperature. Use a value between 0 and 2"
            return
        config.temperature = temperature
        result.message = f"Temperature set to: {temperature:.1f}"

    # -------------------------------------------------------------------------
    # Gameplay
    # -------------------------------------------------------------------------

    def _cmd_roll(self, command: Command, result: CommandResult) -> None:
        if not command.args:
            roll = self._roller.roll_d20()
            result.message = f"Rolling d20: {roll.result_string()}"
            result.events.append(Event.dice_roll(roll.notation, roll.rolls, roll.total, roll.modifier))
            return

        try:
            roll = self._roller.roll(command.args[0])
        except DiceRollError as e:
            result.success = False
            result.message = e.message
            return

        result.message = f"Rolling {roll}: {roll.result_string()}"
        if roll.is_critical_hit:
            result.message += " CRITICAL HIT!"
        elif roll.is_critical_fail:
            result.message += " CRITICAL FAIL!"
        result.events.append(Event.dice_roll(roll.notation, roll.rolls, roll.total, roll.modifier))

    def _cmd_status(self, command: Command, result: CommandResult) -> None:
        result.response = self.status_text()

    def _cmd_inventory(self, command: Command, result: CommandResult) -> None:
        result.response = self.inventory_text()

    def _cmd_quests(self, command: Command, result: CommandResult) -> None:
        result.response = self.quests_text()

    def _cmd_look(self, command: Command, result: CommandResult) -> None:
        result.response = self.look_text()

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    def status_text(self) -> str:
        c = self.session.state.character
        a = c.abilities

        def score(value: int) -> str:
            return f"{value:2d} ({modifier_string(value)})"

        lines = [
            f"{c.name} - Level {c.level} {c.race} {c.class_name}",
            f"HP: {c.current_hp}/{c.max_hp}  AC: {c.ac}  Speed: {c.speed}",
            "",
            "ABILITIES:",
            f"  STR: {score(a.strength)}  DEX: {score(a.dexterity)}  CON: {score(a.constitution)}",
            f"  INT: {score(a.intelligence)}  WIS: {score(a.wisdom)}  CHA: {score(a.charisma)}",
        ]
        if c.conditions:
            lines += ["", f"CONDITIONS: {', '.join(c.conditions)}"]
        lines += ["", f"Gold: {c.gold}  XP: {c.xp}"]
        return "\n".join(lines) + "\n"

    def inventory_text(self) -> str:
        inventory = self.session.state.character.inventory
        if not inventory:
            return "Your inventory is empty."
        lines = ["INVENTORY:"]
        for item in inventory:
            if item.quantity > 1:
                lines.append(f"  - {item.name} (x{item.quantity})")
            else:
                lines.append(f"  - {item.name}")
        return "\n".join(lines) + "\n"

    def quests_text(self) -> str:
        quests = self.session.state.world.active_quests()
        if not quests:
            return "No active quests."
        lines = ["ACTIVE QUESTS:"]
        for quest in quests:
            lines.append(f"  [{quest.status}] {quest.name}")
            if quest.description:
                lines.append(f"        {quest.description}")
        return "\n".join(lines) + "\n"

    def look_text(self) -> str:
        location = self.session.state.world.current_location
        text = f"LOCATION: {location.name}\n\n{location.description}"
        if location.exits:
            text += f"\n\nExits: {', '.join(location.exits)}"
        return text


__all__ = [
    "CommandType",
    "Command",
    "CommandResult",
    "CommandHandler",
    "HELP_TEXT",
    "parse_command",
]
