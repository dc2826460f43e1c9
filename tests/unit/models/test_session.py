"""Tests for game state, configuration and sessions."""

from __future__ import annotations

import time

import pytest
from pydantic import ValidationError

from thaimaturgy.core.config import Settings
from thaimaturgy.core.constants import DEFAULT_ANTHROPIC_MODEL
from thaimaturgy.dm.prompts import get_default_system_prompt
from thaimaturgy.models.character import Character
from thaimaturgy.models.session import GameConfig, GameSession, GameState
from thaimaturgy.models.world import Quest


class TestGameConfig:
    """Tests for GameConfig."""

    def test_defaults(self) -> None:
        """Test default session settings."""
        config = GameConfig()

        assert config.provider == "openai"
        assert config.temperature == 0.8
        assert config.auto_save is True

    def test_assignment_is_validated(self) -> None:
        """Test invalid assignments are rejected."""
        config = GameConfig()

        with pytest.raises(ValidationError):
            config.temperature = 3.0
        with pytest.raises(ValidationError):
            config.provider = "gemini"  # type: ignore[assignment]

    def test_active_system_prompt(self) -> None:
        """Test the custom prompt replaces the language default."""
        config = GameConfig(language="es")
        assert config.active_system_prompt() == get_default_system_prompt("es")

        config.system_prompt = "You are a grumpy narrator."
        assert config.active_system_prompt() == "You are a grumpy narrator."

    @pytest.mark.usefixtures("clean_env")
    def test_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test building a config from application settings."""
        monkeypatch.setenv("THAIM_PROVIDER", "anthropic")
        monkeypatch.setenv("THAIM_GAME_TEMPERATURE", "0.3")
        monkeypatch.setenv("THAIM_GAME_AUTO_SAVE", "false")

        config = GameConfig.from_settings(Settings())

        assert config.provider == "anthropic"
        assert config.model == DEFAULT_ANTHROPIC_MODEL
        assert config.temperature == 0.3
        assert config.auto_save is False


class TestGameState:
    """Tests for GameState."""

    def test_new_game(self, character: Character) -> None:
        """Test a new game starts empty with the chosen bounds."""
        state = GameState.new_game("run-1", character, "sci-fi", conversation_size=10, event_log_size=20)

        assert state.save_name == "run-1"
        assert state.world.setting == "sci-fi"
        assert state.conversation.max_size == 10
        assert state.event_log.max_size == 20
        assert len(state.conversation) == 0
        assert state.play_time_seconds == 0.0

    def test_summary(self, game_state: GameState) -> None:
        """Test the save summary."""
        assert game_state.summary() == "Aria - Level 1 Elf Ranger | HP: 12/12 | AC: 14 | Unknown"

    def test_json_round_trip(self, game_state: GameState) -> None:
        """Test the whole state survives JSON serialization."""
        game_state.world.add_quest(Quest(id="q1", name="Find the Cat"))
        game_state.conversation.add_user_message("Hello")
        game_state.conversation.add_assistant_message("Greetings.")

        restored = GameState.model_validate_json(game_state.model_dump_json())

        assert restored.character == game_state.character
        assert restored.world.get_quest("q1").name == "Find the Cat"
        assert [m.content for m in restored.conversation.messages] == ["Hello", "Greetings."]
        assert restored.created_at == game_state.created_at


class TestGameSession:
    """Tests for GameSession."""

    def test_starts_unmodified(self, session: GameSession) -> None:
        """Test a fresh session has nothing to save."""
        assert not session.is_modified

    def test_mark_modified_and_saved(self, session: GameSession) -> None:
        """Test the modified flag lifecycle."""
        before = session.state.updated_at
        session.mark_modified()

        assert session.is_modified
        assert session.state.updated_at >= before

        session.mark_saved()
        assert not session.is_modified

    def test_add_play_time(self, session: GameSession) -> None:
        """Test elapsed time accumulates into the state."""
        time.sleep(0.01)
        session.add_play_time()
        first = session.state.play_time_seconds

        assert first > 0
        session.add_play_time()
        assert session.state.play_time_seconds >= first
