"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Thaimaturgy test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from thaimaturgy.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo logging configuration done by a test (e.g. a CLI invocation).

    The CLI binds structlog and the root logger to the stderr stream it sees,
    which under CliRunner is a temporary stream closed after the invocation.
    """
    import logging
    import sys

    import structlog

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    structlog.reset_defaults()
    # Module-level loggers cache the assembled logger (and its stream) on
    # first use; drop those caches so the next test starts fresh.
    for name, module in list(sys.modules.items()):
        if name.startswith("thaimaturgy"):
            proxy = getattr(module, "logger", None)
            if isinstance(proxy, structlog._config.BoundLoggerLazyProxy):
                proxy.__dict__.pop("bind", None)
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without API keys, overrides or a stray .env file."""
    monkeypatch.chdir(tmp_path)
    for key in (
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "THAIM_OPENAI_API_KEY",
        "THAIM_ANTHROPIC_API_KEY",
        "THAIM_PROVIDER",
        "THAIM_MODEL",
        "THAIM_DATA_DIR",
        "THAIM_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_env_vars(clean_env: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "THAIM_OPENAI_API_KEY": "test-openai-key",
        "THAIM_ANTHROPIC_API_KEY": "test-anthropic-key",
        "THAIM_DATA_DIR": str(tmp_path / "data"),
        "THAIM_DEBUG": "true",
        "THAIM_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def character() -> Any:
    """Create a level 1 character with known ability scores.

    Returns:
        Character with STR 16, DEX 14, CON 12, INT 10, WIS 13, CHA 8,
        proficient in Perception.
    """
    from thaimaturgy.models.character import AbilityScores, Character

    hero = Character(
        name="Aria",
        race="Elf",
        class_name="Ranger",
        abilities=AbilityScores(
            strength=16,
            dexterity=14,
            constitution=12,
            intelligence=10,
            wisdom=13,
            charisma=8,
        ),
        max_hp=12,
        current_hp=12,
        ac=14,
        gold=15,
    )
    for skill in hero.skills:
        if skill.name == "Perception":
            skill.proficient = True
    return hero


@pytest.fixture
def game_state(character: Any) -> Any:
    """Create a fresh game state for the sample character."""
    from thaimaturgy.models.session import GameState

    return GameState.new_game("aria-save", character)


@pytest.fixture
def session(game_state: Any) -> Any:
    """Create a game session with default configuration."""
    from thaimaturgy.models.session import GameConfig, GameSession

    return GameSession(state=game_state, config=GameConfig())


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> Any:
    """Create a DiceRoller with a fixed seed for reproducible tests.

    Returns:
        DiceRoller instance with fixed seed.
    """
    from thaimaturgy.engine.dice import DiceRoller

    return DiceRoller(seed=42)


class FixedRandom:
    """Random source returning queued values from ``randint``."""

    def __init__(self, values: list[int]) -> None:
        self.values = list(values)

    def randint(self, low: int, high: int) -> int:
        value = self.values.pop(0)
        assert low <= value <= high
        return value


@pytest.fixture
def fixed_roller() -> Any:
    """Build a DiceRoller whose dice come up as the given values."""
    from thaimaturgy.engine.dice import DiceRoller

    def build(*values: int) -> DiceRoller:
        return DiceRoller(rng=FixedRandom(list(values)))  # type: ignore[arg-type]

    return build


# =============================================================================
# Provider Fixtures
# =============================================================================


class ScriptedProvider:
    """Provider returning queued responses and recording every request.

    Queue ChatResponse objects, or exceptions to raise, in the order the
    backend should produce them.
    """

    def __init__(self, responses: list[Any] | None = None, *, name: str = "scripted") -> None:
        self.responses = list(responses or [])
        self.requests: list[Any] = []
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def supports_tools(self) -> bool:
        return True

    async def chat(self, request: Any) -> Any:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError("ScriptedProvider ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


def make_response(
    content: str = "",
    tool_calls: list[tuple[str, str, str]] | None = None,
    *,
    tokens: int = 10,
    latency_ms: int = 5,
) -> Any:
    """Build a ChatResponse; tool calls are (id, name, arguments) tuples."""
    from thaimaturgy.models.conversation import ToolInvocation
    from thaimaturgy.providers.base import ChatResponse, Usage

    invocations = [
        ToolInvocation(id=call_id, name=name, arguments=arguments)
        for call_id, name, arguments in tool_calls or []
    ]
    return ChatResponse(
        content=content,
        tool_calls=invocations,
        finish_reason="tool_calls" if invocations else "stop",
        usage=Usage(prompt_tokens=tokens // 2, completion_tokens=tokens - tokens // 2, total_tokens=tokens),
        model="test-model",
        latency_ms=latency_ms,
    )


@pytest.fixture
def scripted_provider() -> Any:
    """Build a ScriptedProvider from a list of responses."""

    def build(*responses: Any) -> ScriptedProvider:
        return ScriptedProvider(list(responses))

    return build


@pytest.fixture
def chat_response() -> Any:
    """Expose make_response to tests."""
    return make_response
