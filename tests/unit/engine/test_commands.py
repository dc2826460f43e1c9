"""Tests for slash command parsing and execution."""

from __future__ import annotations

from typing import Any

import pytest

from thaimaturgy.engine.commands import (
    HELP_TEXT,
    Command,
    CommandHandler,
    CommandType,
    parse_command,
)
from thaimaturgy.models.events import EventType
from thaimaturgy.models.session import GameSession
from thaimaturgy.models.world import Location, Quest


def run(session: GameSession, text: str, roller: Any = None) -> Any:
    command = parse_command(text)
    assert command is not None
    return CommandHandler(session, roller=roller).execute(command)


class TestParseCommand:
    """Tests for parse_command."""

    @pytest.mark.parametrize("text", ["", "   ", "/", ":  "])
    def test_blank_input(self, text: str) -> None:
        """Test blank input and bare prefixes parse to nothing."""
        assert parse_command(text) is None

    def test_narration(self) -> None:
        """Test plain text is narration carrying the whole line."""
        command = parse_command("  I open the door slowly  ")

        assert command == Command(
            type=CommandType.NARRATION,
            raw="I open the door slowly",
            args=["I open the door slowly"],
        )

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("/help", CommandType.HELP),
            ("/?", CommandType.HELP),
            (":h", CommandType.HELP),
            ("/N", CommandType.NEW),
            ("/exit", CommandType.QUIT),
            ("/temperature", CommandType.TEMP),
            ("/r 1d6", CommandType.ROLL),
            ("/st", CommandType.STATUS),
            ("/quest", CommandType.QUESTS),
            ("/look", CommandType.LOOK),
            ("/system", CommandType.SYSTEM),
            ("/char", CommandType.STATUS),
            ("/i", CommandType.INVENTORY),
        ],
    )
    def test_aliases(self, text: str, expected: CommandType) -> None:
        """Test command words and their aliases."""
        command = parse_command(text)
        assert command is not None
        assert command.type == expected

    def test_args_split_on_whitespace(self) -> None:
        """Test arguments after the command word."""
        command = parse_command("/save  my   game")

        assert command.type == CommandType.SAVE
        assert command.args == ["my", "game"]

    def test_char_set_params(self) -> None:
        """Test key=value pairs with lower-cased keys."""
        command = parse_command("/char set Name=Thorin hp=20 junk =5")

        assert command.type == CommandType.CHAR_SET
        assert command.params == {"name": "Thorin", "hp": "20"}

    @pytest.mark.parametrize(
        ("text", "expected", "args"),
        [
            ("/inv add Healing Potion", CommandType.INV_ADD, ["Healing", "Potion"]),
            ("/i a Rope", CommandType.INV_ADD, ["Rope"]),
            ("/inventory rm Rope", CommandType.INV_REMOVE, ["Rope"]),
            ("/inv r Rope", CommandType.INV_REMOVE, ["Rope"]),
            ("/cond add Poisoned", CommandType.COND_ADD, ["Poisoned"]),
            ("/condition remove Poisoned", CommandType.COND_REMOVE, ["Poisoned"]),
        ],
    )
    def test_subcommands(self, text: str, expected: CommandType, args: list[str]) -> None:
        """Test inventory and condition subcommands."""
        command = parse_command(text)

        assert command.type == expected
        assert command.args == args

    def test_cond_without_subcommand_is_unknown(self) -> None:
        """Test /cond alone is not a valid command."""
        assert parse_command("/cond").type == CommandType.UNKNOWN

    def test_unknown_command(self) -> None:
        """Test unrecognized words keep their parts."""
        command = parse_command("/dance wildly")

        assert command.type == CommandType.UNKNOWN
        assert command.args == ["dance", "wildly"]


class TestSessionCommands:
    """Tests for commands handled by the front-end."""

    def test_help(self, session: GameSession) -> None:
        """Test /help returns the help block."""
        result = run(session, "/help")

        assert result.success
        assert result.response == HELP_TEXT

    def test_quit(self, session: GameSession) -> None:
        """Test /quit asks to leave."""
        result = run(session, "/q")

        assert result.should_quit
        assert result.message == "Farewell, adventurer..."

    def test_save_renames(self, session: GameSession) -> None:
        """Test /save with a name changes the save name."""
        result = run(session, "/save tavern-run")

        assert result.action == "save"
        assert session.state.save_name == "tavern-run"
        assert result.message == "Saving game as 'tavern-run'..."

    def test_save_without_name(self, session: GameSession) -> None:
        """Test /save keeps the current save name."""
        result = run(session, "/s")

        assert session.state.save_name == "aria-save"
        assert result.action == "save"

    def test_load(self, session: GameSession) -> None:
        """Test /load passes the requested name along."""
        result = run(session, "/load other")

        assert result.action == "load"
        assert result.message == "other"

    @pytest.mark.parametrize(("text", "action"), [("/new", "new"), ("/system", "system_prompt")])
    def test_front_end_actions(self, session: GameSession, text: str, action: str) -> None:
        """Test commands delegated to the front-end."""
        assert run(session, text).action == action

    def test_narration_action(self, session: GameSession) -> None:
        """Test narration is handed back with its text."""
        result = run(session, "I look around")

        assert result.action == "narration"
        assert result.message == "I look around"

    def test_unknown(self, session: GameSession) -> None:
        """Test unknown commands fail with a hint."""
        result = run(session, "/dance")

        assert not result.success
        assert result.message == "Unknown command: /dance. Type /help for available commands."


class TestCharacterCommands:
    """Tests for character sheet commands."""

    def test_char_set(self, session: GameSession) -> None:
        """Test setting text, numeric and ability fields."""
        result = run(session, "/char set name=Thorin class=Cleric level=3 maxhp=30 hp=25 str=18 ac=16 gold=99")

        character = session.state.character
        assert result.message == "Character updated"
        assert character.name == "Thorin"
        assert character.class_name == "Cleric"
        assert character.level == 3
        assert (character.current_hp, character.max_hp) == (25, 30)
        assert character.abilities.strength == 18
        assert character.ac == 16
        assert character.gold == 99
        assert session.is_modified
        assert result.events[0].message == "Character stats updated"

    def test_char_set_ignores_bad_values(self, session: GameSession) -> None:
        """Test invalid values are skipped while valid ones apply."""
        result = run(session, "/char set level=three ac=15 color=blue")

        assert session.state.character.level == 1
        assert session.state.character.ac == 15
        assert result.success
        assert result.message == "Character updated (invalid: level, color)"

    def test_char_set_all_rejected(self, session: GameSession) -> None:
        """Test a set with no valid values changes nothing and says so."""
        result = run(session, "/char set level=three")

        assert not result.success
        assert result.message == "No character changes (invalid: level)"
        assert not session.is_modified
        assert result.events == []

    def test_inv_add_joins_words(self, session: GameSession) -> None:
        """Test multi-word item names."""
        result = run(session, "/inv add Healing Potion")

        assert result.message == "Added Healing Potion to inventory"
        assert session.state.character.get_item("Healing Potion").quantity == 1
        assert result.events[0].type == EventType.ITEM_ADD

    def test_inv_remove(self, session: GameSession) -> None:
        """Test removing one item from a stack."""
        run(session, "/inv add Rope")
        result = run(session, "/inv rm Rope")

        assert result.message == "Removed Rope from inventory"
        assert session.state.character.inventory == []

    def test_inv_remove_missing(self, session: GameSession) -> None:
        """Test removing an item the character lacks."""
        result = run(session, "/inv rm Lantern")

        assert not result.success
        assert result.message == "Item 'Lantern' not found in inventory"
        assert not session.is_modified

    def test_inv_add_without_item_does_nothing(self, session: GameSession) -> None:
        """Test a bare /inv add changes nothing."""
        result = run(session, "/inv add")

        assert result.message == ""
        assert session.state.character.inventory == []

    def test_conditions(self, session: GameSession) -> None:
        """Test adding and removing conditions."""
        added = run(session, "/cond add Poisoned")
        assert added.message == "Condition added: Poisoned"
        assert session.state.character.conditions == ["Poisoned"]

        removed = run(session, "/cond rm Poisoned")
        assert removed.message == "Condition removed: Poisoned"
        assert session.state.character.conditions == []

    def test_command_events_logged(self, session: GameSession) -> None:
        """Test command events land in the session's event log."""
        run(session, "/cond add Prone")

        assert session.state.event_log.last(1)[0].message == "Condition applied: Prone"


class TestSettingsCommands:
    """Tests for provider, model and temperature commands."""

    def test_provider_query(self, session: GameSession) -> None:
        """Test /provider alone shows the current provider."""
        assert run(session, "/provider").message == "Current provider: openai"

    def test_provider_set(self, session: GameSession) -> None:
        """Test switching provider."""
        result = run(session, "/provider Anthropic")

        assert result.message == "Provider set to: anthropic"
        assert session.config.provider == "anthropic"
        assert result.events[0].type == EventType.SYSTEM_MESSAGE

    def test_provider_invalid(self, session: GameSession) -> None:
        """Test unknown providers are rejected."""
        result = run(session, "/provider gemini")

        assert not result.success
        assert result.message == "Invalid provider. Use 'openai' or 'anthropic'"
        assert session.config.provider == "openai"

    def test_model(self, session: GameSession) -> None:
        """Test setting the model."""
        assert run(session, "/model gpt-4o").message == "Model set to: gpt-4o"
        assert run(session, "/model").message == "Current model: gpt-4o"

    def test_temperature(self, session: GameSession) -> None:
        """Test setting and showing the temperature."""
        assert run(session, "/temp").message == "Current temperature: 0.8"
        assert run(session, "/temp 1.5").message == "Temperature set to: 1.5"
        assert session.config.temperature == 1.5

    @pytest.mark.parametrize("value", ["2.5", "-1", "warm"])
    def test_temperature_invalid(self, session: GameSession, value: str) -> None:
        """Test out-of-range and non-numeric temperatures."""
        result = run(session, f"/temp {value}")

        assert not result.success
        assert result.message == "Invalid temperature. Use a value between 0 and 2"
        assert session.config.temperature == 0.8


class TestGameplayCommands:
    """Tests for dice and informational commands."""

    def test_roll_default_d20(self, session: GameSession, fixed_roller: Any) -> None:
        """Test /roll alone rolls a d20."""
        result = run(session, "/roll", roller=fixed_roller(11))

        assert result.message == "Rolling d20: [11] = 11"
        assert result.events[0].type == EventType.DICE_ROLL

    def test_roll_notation(self, session: GameSession, fixed_roller: Any) -> None:
        """Test rolling explicit notation."""
        result = run(session, "/roll 2d6+3", roller=fixed_roller(4, 5))

        assert result.message == "Rolling 2d6+3: [4+5]+3 = 12"

    def test_roll_critical(self, session: GameSession, fixed_roller: Any) -> None:
        """Test critical results are announced."""
        assert run(session, "/roll 1d20", roller=fixed_roller(20)).message.endswith(" CRITICAL HIT!")
        assert run(session, "/roll 1d20", roller=fixed_roller(1)).message.endswith(" CRITICAL FAIL!")

    def test_roll_invalid(self, session: GameSession) -> None:
        """Test bad notation fails without events."""
        result = run(session, "/roll 2x6")

        assert not result.success
        assert result.message.startswith("Invalid dice notation")
        assert result.events == []

    def test_status(self, session: GameSession) -> None:
        """Test the character status block."""
        session.state.character.add_condition("Poisoned")
        text = run(session, "/status").response

        assert text.startswith("Aria - Level 1 Elf Ranger\nHP: 12/12  AC: 14  Speed: 30\n")
        assert "STR: 16 (+3)  DEX: 14 (+2)  CON: 12 (+1)" in text
        assert "INT: 10 (+0)  WIS: 13 (+1)  CHA:  8 (-1)" in text
        assert "CONDITIONS: Poisoned" in text
        assert text.endswith("Gold: 15  XP: 0\n")

    def test_status_without_conditions(self, session: GameSession) -> None:
        """Test the conditions line is omitted when there are none."""
        assert "CONDITIONS" not in run(session, "/status").response

    def test_inventory(self, session: GameSession) -> None:
        """Test inventory listing with stack sizes."""
        assert run(session, "/inv").response == "Your inventory is empty."

        run(session, "/inv add Torch")
        run(session, "/inv add Torch")
        run(session, "/inv add Rope")

        assert run(session, "/inv").response == "INVENTORY:\n  - Torch (x2)\n  - Rope\n"

    def test_quests(self, session: GameSession) -> None:
        """Test only open quests are listed."""
        world = session.state.world
        assert run(session, "/quests").response == "No active quests."

        world.add_quest(Quest(id="q1", name="Find the Cat", description="Lost in the sewers"))
        world.add_quest(Quest(id="q2", name="Old Errand", status="completed"))
        world.add_quest(Quest(id="q3", name="Guard Duty", status="in_progress"))

        assert run(session, "/quests").response == (
            "ACTIVE QUESTS:\n"
            "  [active] Find the Cat\n"
            "        Lost in the sewers\n"
            "  [in_progress] Guard Duty\n"
        )

    def test_look(self, session: GameSession) -> None:
        """Test the location description."""
        assert run(session, "/look").response == (
            "LOCATION: Unknown\n\nYou find yourself in an unfamiliar place..."
        )

        session.state.world.set_location(Location(name="Crypt", description="Cold stone.", exits=["up", "east"]))

        assert run(session, "/look").response == "LOCATION: Crypt\n\nCold stone.\n\nExits: up, east"
