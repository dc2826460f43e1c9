"""Dungeon Master tools: the catalog offered to the model and the router
that executes its calls.

The catalog is fixed and ordered. It is sent verbatim with every chat
request as the set of functions the model may call. The router decodes
each call's JSON arguments into a typed model, runs the handler against
the session and returns a ToolOutcome. Bad arguments, unknown tools and
domain failures such as removing a missing item become error outcomes,
never exceptions, so the model can react to them in the story.

Tools:
    roll_dice: Roll dice notation
    update_hp: Damage or heal the character
    add_item: Add items to the inventory
    remove_item: Remove items from the inventory
    set_condition: Apply or clear a condition
    update_gold: Give or take gold
    award_xp: Award experience points
    set_location: Move the character
    add_quest: Add or update a quest
    skill_check: Roll a d20 skill check against a DC
    saving_throw: Roll a d20 saving throw against a DC
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from pydantic import ValidationError as PydanticValidationError

from thaimaturgy.core.exceptions import DiceRollError, ToolExecutionError
from thaimaturgy.core.logging import get_logger
from thaimaturgy.engine.dice import DiceRoller, get_default_roller
from thaimaturgy.engine.tool_arguments import (
    AddItemArgs,
    AddQuestArgs,
    AwardXPArgs,
    RemoveItemArgs,
    RollDiceArgs,
    SavingThrowArgs,
    SetConditionArgs,
    SetLocationArgs,
    SkillCheckArgs,
    ToolArguments,
    UpdateGoldArgs,
    UpdateHPArgs,
)
from thaimaturgy.models.character import Ability, InventoryItem, modifier
from thaimaturgy.models.conversation import ToolInvocation
from thaimaturgy.models.events import Event
from thaimaturgy.models.world import Location, Quest


if TYPE_CHECKING:
    from thaimaturgy.models.session import GameSession


logger = get_logger(__name__)


# =============================================================================
# Tool Catalog
# =============================================================================


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool offered to the model.

    Attributes:
        name: Function name the model calls.
        description: Human-readable description for the model.
        parameters: JSON schema of the arguments object.
    """

    name: str
    description: str
    parameters: dict[str, Any]

    def to_openai_schema(self) -> dict[str, Any]:
        """Render in OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def _schema(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


def _string(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def _integer(description: str) -> dict[str, Any]:
    return {"type": "integer", "description": description}


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="roll_dice",
        description=(
            "Roll dice using standard notation (e.g., '1d20', '2d6+3', '4d6'). "
            "Use this for attack rolls, skill checks, saving throws, and damage."
        ),
        parameters=_schema(
            {
                "notation": _string("Dice notation like '1d20', '2d6+3', '1d8-1'"),
                "reason": _string("Why the roll is being made (e.g., 'Attack roll', 'Perception check')"),
            },
            ["notation"],
        ),
    ),
    ToolDefinition(
        name="update_hp",
        description="Modify the player's hit points. Use positive values for healing, negative for damage.",
        parameters=_schema(
            {
                "delta": _integer("Amount to change HP (positive for healing, negative for damage)"),
                "reason": _string("What caused the HP change"),
            },
            ["delta", "reason"],
        ),
    ),
    ToolDefinition(
        name="add_item",
        description="Add an item to the player's inventory.",
        parameters=_schema(
            {
                "item": _string("Name of the item"),
                "quantity": _integer("How many to add (default: 1)"),
            },
            ["item"],
        ),
    ),
    ToolDefinition(
        name="remove_item",
        description="Remove an item from the player's inventory.",
        parameters=_schema(
            {
                "item": _string("Name of the item to remove"),
                "quantity": _integer("How many to remove (default: 1)"),
            },
            ["item"],
        ),
    ),
    ToolDefinition(
        name="set_condition",
        description="Add or remove a condition on the player character.",
        parameters=_schema(
            {
                "condition": _string("The condition name (e.g., 'Poisoned', 'Prone', 'Frightened')"),
                "add": {"type": "boolean", "description": "True to add the condition, false to remove it"},
            },
            ["condition", "add"],
        ),
    ),
    ToolDefinition(
        name="update_gold",
        description="Change the player's gold amount.",
        parameters=_schema(
            {
                "delta": _integer("Amount to change (positive to give, negative to take)"),
                "reason": _string("Why gold is changing"),
            },
            ["delta", "reason"],
        ),
    ),
    ToolDefinition(
        name="award_xp",
        description="Award experience points to the player.",
        parameters=_schema(
            {
                "amount": _integer("XP to award"),
                "reason": _string("What earned the XP"),
            },
            ["amount"],
        ),
    ),
    ToolDefinition(
        name="set_location",
        description="Update the player's current location.",
        parameters=_schema(
            {
                "name": _string("Name of the new location"),
                "description": _string("Description of the location"),
                "exits": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Available exits/directions",
                },
            },
            ["name", "description"],
        ),
    ),
    ToolDefinition(
        name="add_quest",
        description="Add a new quest or update an existing quest.",
        parameters=_schema(
            {
                "id": _string("Unique quest identifier"),
                "name": _string("Quest name"),
                "description": _string("Quest description"),
                "status": _string("Quest status: 'active', 'completed', 'failed'"),
            },
            ["id", "name", "status"],
        ),
    ),
    ToolDefinition(
        name="skill_check",
        description="Perform a skill check for the player against a DC.",
        parameters=_schema(
            {
                "skill": _string("Skill name (e.g., 'Perception', 'Stealth')"),
                "dc": _integer("Difficulty class"),
            },
            ["skill", "dc"],
        ),
    ),
    ToolDefinition(
        name="saving_throw",
        description="Perform a saving throw for the player against a DC.",
        parameters=_schema(
            {
                "ability": _string("Ability for the save (STR, DEX, CON, INT, WIS, CHA)"),
                "dc": _integer("Difficulty class"),
            },
            ["ability", "dc"],
        ),
    ),
)


def get_tool_definitions() -> list[ToolDefinition]:
    """Return the tool catalog in its fixed order."""
    return list(TOOL_DEFINITIONS)


def get_tool(name: str) -> ToolDefinition | None:
    """Get a tool definition by name."""
    return next((tool for tool in TOOL_DEFINITIONS if tool.name == name), None)


def get_tools_as_openai_schema() -> list[dict[str, Any]]:
    """Get all tools in OpenAI function calling schema format."""
    return [tool.to_openai_schema() for tool in TOOL_DEFINITIONS]


# =============================================================================
# Tool Outcome
# =============================================================================


@dataclass
class ToolOutcome:
    """Result of executing one tool call.

    Attributes:
        call_id: Identifier of the invocation this answers.
        tool_name: Name of the tool that was called.
        content: Result text on success.
        error: Error text on failure.
        events: Events the call recorded.
    """

    call_id: str
    tool_name: str
    content: str = ""
    error: str = ""
    events: list[Event] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.error

    @property
    def message_content(self) -> str:
        """Text sent back to the model, with errors explicitly marked."""
        if self.error:
            return f"Error: {self.error}"
        return self.content


# =============================================================================
# Tool Router
# =============================================================================


_Handler = Callable[[Any], str]


def _critical_note(roll_is_hit: bool, roll_is_fail: bool, hit: str, fail: str) -> str:
    if roll_is_hit:
        return f" [{hit}]"
    if roll_is_fail:
        return f" [{fail}]"
    return ""


class ToolRouter:
    """Executes tool calls against a game session.

    Every handler that changes the character or the world marks the session
    modified. Dice rolls, skill checks and saving throws only record events.

    Example:
        >>> router = ToolRouter(session, roller=DiceRoller(seed=7))
        >>> outcome = router.execute(ToolInvocation(id="c1", name="roll_dice",
        ...                                         arguments='{"notation": "1d20"}'))
    """

    def __init__(self, session: GameSession, *, roller: DiceRoller | None = None) -> None:
        """Initialize the router.

        Args:
            session: Session whose state the tools read and mutate.
            roller: Dice roller for rolls and checks; defaults to the shared one.
        """
        self._session = session
        self._roller = roller or get_default_roller()
        self._recorded: list[Event] = []
        self._handlers: dict[str, tuple[type[ToolArguments], _Handler]] = {
            "roll_dice": (RollDiceArgs, self._roll_dice),
            "update_hp": (UpdateHPArgs, self._update_hp),
            "add_item": (AddItemArgs, self._add_item),
            "remove_item": (RemoveItemArgs, self._remove_item),
            "set_condition": (SetConditionArgs, self._set_condition),
            "update_gold": (UpdateGoldArgs, self._update_gold),
            "award_xp": (AwardXPArgs, self._award_xp),
            "set_location": (SetLocationArgs, self._set_location),
            "add_quest": (AddQuestArgs, self._add_quest),
            "skill_check": (SkillCheckArgs, self._skill_check),
            "saving_throw": (SavingThrowArgs, self._saving_throw),
        }

    @property
    def session(self) -> GameSession:
        return self._session

    @session.setter
    def session(self, session: GameSession) -> None:
        self._session = session

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return get_tool_definitions()

    def execute(self, invocation: ToolInvocation) -> ToolOutcome:
        """Decode and run one tool call.

        Args:
            invocation: The call requested by the model.

        Returns:
            ToolOutcome with the result text or an error message.
        """
        outcome = ToolOutcome(call_id=invocation.id, tool_name=invocation.name)

        try:
            raw_args = json.loads(invocation.arguments or "{}")
        except json.JSONDecodeError as e:
            outcome.error = f"Failed to parse arguments: {e}"
            return self._finish(outcome)
        if not isinstance(raw_args, dict):
            outcome.error = f"Failed to parse arguments: expected a JSON object, got {type(raw_args).__name__}"
            return self._finish(outcome)

        entry = self._handlers.get(invocation.name)
        if entry is None:
            outcome.error = f"Unknown tool: {invocation.name}"
            return self._finish(outcome)

        args_model, handler = entry
        try:
            args = args_model.model_validate(raw_args)
        except PydanticValidationError as e:
            outcome.error = _describe_invalid_argument(e)
            return self._finish(outcome)

        self._recorded = []
        try:
            outcome.content = handler(args)
        except (ToolExecutionError, DiceRollError) as e:
            outcome.error = e.message
        except Exception as e:
            logger.exception("Tool handler failed", tool=invocation.name)
            outcome.error = f"Tool '{invocation.name}' failed: {e}"
        outcome.events = self._recorded
        self._recorded = []

        return self._finish(outcome)

    def _finish(self, outcome: ToolOutcome) -> ToolOutcome:
        if outcome.success:
            logger.info("Tool executed", tool=outcome.tool_name, call_id=outcome.call_id)
        else:
            logger.warning(
                "Tool call failed",
                tool=outcome.tool_name,
                call_id=outcome.call_id,
                error=outcome.error,
            )
        return outcome

    def _record(self, event: Event) -> None:
        self._session.state.event_log.add(event)
        self._recorded.append(event)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _roll_dice(self, args: RollDiceArgs) -> str:
        roll = self._roller.roll(args.notation)

        event = Event.dice_roll(roll.notation, roll.rolls, roll.total, roll.modifier)
        if args.reason:
            event.message = f"{args.reason} - {event.message}"
        self._record(event)

        note = _critical_note(roll.is_critical_hit, roll.is_critical_fail, "CRITICAL HIT!", "CRITICAL FAIL!")
        return f"Rolled {roll}: {roll.result_string()}{note}"

    def _update_hp(self, args: UpdateHPArgs) -> str:
        reason = args.reason or "unknown"
        character = self._session.state.character
        if args.delta < 0:
            character.take_damage(-args.delta)
        else:
            character.heal(args.delta)
        self._session.mark_modified()

        self._record(Event.hp_change(args.delta, reason, character.current_hp, character.max_hp))
        return f"HP changed by {args.delta} ({reason}). Current: {character.current_hp}/{character.max_hp}"

    def _add_item(self, args: AddItemArgs) -> str:
        quantity = args.quantity or 1
        self._session.state.character.add_item(InventoryItem(name=args.item, quantity=quantity))
        self._session.mark_modified()

        self._record(Event.item_add(args.item, quantity))
        return f"Added {quantity}x {args.item} to inventory"

    def _remove_item(self, args: RemoveItemArgs) -> str:
        quantity = args.quantity or 1
        if not self._session.state.character.remove_item(args.item, quantity):
            raise ToolExecutionError(f"Item '{args.item}' not found in inventory", tool_name="remove_item")
        self._session.mark_modified()

        self._record(Event.item_remove(args.item, quantity))
        return f"Removed {quantity}x {args.item} from inventory"

    def _set_condition(self, args: SetConditionArgs) -> str:
        character = self._session.state.character
        if args.add:
            character.add_condition(args.condition)
            self._record(Event.condition_add(args.condition))
        else:
            character.remove_condition(args.condition)
            self._record(Event.condition_remove(args.condition))
        # Marked even when the condition set did not change.
        self._session.mark_modified()

        action = "added" if args.add else "removed"
        return f"Condition '{args.condition}' {action}"

    def _update_gold(self, args: UpdateGoldArgs) -> str:
        reason = args.reason or "transaction"
        character = self._session.state.character
        character.gold = max(0, character.gold + args.delta)
        self._session.mark_modified()

        self._record(Event.gold_change(args.delta, reason, character.gold))
        return f"Gold changed by {args.delta} ({reason}). Total: {character.gold}"

    def _award_xp(self, args: AwardXPArgs) -> str:
        character = self._session.state.character
        character.xp += args.amount
        self._session.mark_modified()

        event = Event.xp_gain(args.amount, character.xp)
        if args.reason:
            event.message = f"{args.reason} - {event.message}"
        self._record(event)
        return f"Awarded {args.amount} XP. Total: {character.xp}"

    def _set_location(self, args: SetLocationArgs) -> str:
        location = Location(
            name=args.name,
            description=args.description or "",
            exits=list(args.exits or []),
        )
        self._session.state.world.set_location(location)
        self._session.mark_modified()

        self._record(Event.location_change(args.name))
        return f"Moved to: {args.name}"

    def _add_quest(self, args: AddQuestArgs) -> str:
        status = args.status or "active"
        world = self._session.state.world

        if world.update_quest_status(args.id, status):
            self._record(Event.quest_update(args.name, status))
        else:
            world.add_quest(
                Quest(id=args.id, name=args.name, description=args.description or "", status=status)
            )
            self._record(Event.quest_add(args.name))
        self._session.mark_modified()

        return f"Quest '{args.name}' set to '{status}'"

    def _skill_check(self, args: SkillCheckArgs) -> str:
        bonus = self._session.state.character.skill_bonus(args.skill)
        roll = self._roller.roll_d20()
        natural = roll.rolls[0]
        total = natural + bonus
        success = total >= args.dc

        self._record(Event.skill_check(args.skill, args.dc, natural, bonus, success))

        result = "SUCCESS" if success else "FAILED"
        note = _critical_note(roll.is_critical_hit, roll.is_critical_fail, "NATURAL 20!", "NATURAL 1!")
        return f"{args.skill} check (DC {args.dc}): {natural} + {bonus} = {total} [{result}]{note}"

    def _saving_throw(self, args: SavingThrowArgs) -> str:
        name = args.ability.upper()
        try:
            ability = Ability(name)
        except ValueError:
            raise ToolExecutionError(f"Invalid ability: {name}", tool_name="saving_throw") from None

        bonus = modifier(self._session.state.character.abilities.get(ability))
        roll = self._roller.roll_d20()
        natural = roll.rolls[0]
        total = natural + bonus
        success = total >= args.dc

        self._record(Event.saving_throw(name, args.dc, natural, bonus, success))

        result = "SUCCESS" if success else "FAILED"
        note = _critical_note(roll.is_critical_hit, roll.is_critical_fail, "NATURAL 20!", "NATURAL 1!")
        return f"{name} save (DC {args.dc}): {natural} + {bonus} = {total} [{result}]{note}"


def _describe_invalid_argument(error: PydanticValidationError) -> str:
    """Name the first offending field of a failed argument decode."""
    for detail in error.errors():
        if detail["loc"]:
            return f"Missing or invalid '{detail['loc'][0]}' parameter"
    return "Missing or invalid parameters"


__all__ = [
    "ToolDefinition",
    "ToolOutcome",
    "ToolRouter",
    "TOOL_DEFINITIONS",
    "get_tool_definitions",
    "get_tool",
    "get_tools_as_openai_schema",
]
