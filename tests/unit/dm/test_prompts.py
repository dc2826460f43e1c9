"""Tests for Dungeon Master prompt assembly."""

from __future__ import annotations

from thaimaturgy.dm.prompts import (
    DEFAULT_SYSTEM_PROMPT_EN,
    DEFAULT_SYSTEM_PROMPT_ES,
    TURN_INSTRUCTIONS,
    build_system_prompt,
    format_character_state,
    format_world_state,
    get_default_system_prompt,
)
from thaimaturgy.models.character import Character, InventoryItem
from thaimaturgy.models.session import GameConfig, GameState
from thaimaturgy.models.world import Location, Quest, WorldState


class TestDefaultPrompts:
    """Tests for the built-in persona prompts."""

    def test_language_selection(self) -> None:
        """Test Spanish is selectable and English is the fallback."""
        assert get_default_system_prompt("es") == DEFAULT_SYSTEM_PROMPT_ES
        assert get_default_system_prompt("en") == DEFAULT_SYSTEM_PROMPT_EN
        assert get_default_system_prompt("fr") == DEFAULT_SYSTEM_PROMPT_EN


class TestCharacterSection:
    """Tests for the character state section."""

    def test_core_lines(self, character: Character) -> None:
        """Test the sheet lines."""
        text = format_character_state(character)

        assert "Name: Aria\n" in text
        assert "Race: Elf, Class: Ranger, Level: 1" in text
        assert "HP: 12/12, AC: 14, Speed: 30 ft" in text
        assert "Abilities: STR 16 (+3), DEX 14 (+2), CON 12 (+1), INT 10 (+0), WIS 13 (+1), CHA 8 (-1)" in text
        assert "Gold: 15, XP: 0" in text

    def test_optional_lines_omitted(self, character: Character) -> None:
        """Test conditions and inventory only appear when present."""
        text = format_character_state(character)

        assert "Conditions:" not in text
        assert "Inventory:" not in text

    def test_conditions_and_inventory(self, character: Character) -> None:
        """Test conditions and stacked items are listed."""
        character.add_condition("Poisoned")
        character.add_item(InventoryItem(name="Arrow", quantity=20))
        character.add_item(InventoryItem(name="Rope"))

        text = format_character_state(character)

        assert "Conditions: Poisoned" in text
        assert "Inventory: Arrow (x20), Rope" in text


class TestWorldSection:
    """Tests for the world state section."""

    def test_location_and_time(self) -> None:
        """Test location, description and time."""
        world = WorldState()
        world.set_location(Location(name="Crypt", description="Cold stone."))

        text = format_world_state(world)

        assert text == "Setting: fantasy\nLocation: Crypt\nDescription: Cold stone.\nTime: Day 1, morning\n"

    def test_active_quests_only_when_present(self) -> None:
        """Test the quest block lists open quests only."""
        world = WorldState()
        assert "Active Quests" not in format_world_state(world)

        world.add_quest(Quest(id="q1", name="Find the Cat", description="Lost in the sewers"))
        world.add_quest(Quest(id="q2", name="Old Errand", status="completed"))

        text = format_world_state(world)
        assert "Active Quests:\n  - Find the Cat: Lost in the sewers" in text
        assert "Old Errand" not in text


class TestBuildSystemPrompt:
    """Tests for the full system prompt."""

    def test_section_order(self, game_state: GameState) -> None:
        """Test persona, character, world and instructions in order."""
        prompt = build_system_prompt(game_state, GameConfig())

        assert prompt.startswith(DEFAULT_SYSTEM_PROMPT_EN)
        character_at = prompt.index("=== CURRENT CHARACTER STATE ===")
        world_at = prompt.index("=== CURRENT WORLD STATE ===")
        instructions_at = prompt.index("=== INSTRUCTIONS ===")
        assert character_at < world_at < instructions_at
        assert prompt.endswith(TURN_INSTRUCTIONS)
        assert "=== STORY SO FAR ===" not in prompt

    def test_memory_summary_included(self, game_state: GameState) -> None:
        """Test the story summary appears when present."""
        game_state.world.memory_summary = "Aria rescued the miller's son."

        prompt = build_system_prompt(game_state, GameConfig())

        assert "=== STORY SO FAR ===\nAria rescued the miller's son." in prompt
        assert prompt.index("=== STORY SO FAR ===") < prompt.index("=== INSTRUCTIONS ===")

    def test_custom_prompt(self, game_state: GameState) -> None:
        """Test a custom persona replaces the default."""
        prompt = build_system_prompt(game_state, GameConfig(system_prompt="You narrate noir mysteries."))

        assert prompt.startswith("You narrate noir mysteries.")
        assert DEFAULT_SYSTEM_PROMPT_EN not in prompt
