"""Main CLI application for Thaimaturgy."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

import typer

from thaimaturgy import __version__
from thaimaturgy.cli.display import (
    console,
    display_error,
    display_events,
    display_info,
    display_narrative,
    display_response,
    display_save_list,
    display_status,
    display_success,
    display_turn_stats,
    display_warning,
    display_welcome,
    progress_spinner,
    prompt_input,
)
from thaimaturgy.core.config import Settings, get_settings
from thaimaturgy.core.exceptions import (
    AIControlError,
    ConfigurationError,
    DiceRollError,
    IterationLimitError,
    StorageError,
    ThaimaturgyError,
)
from thaimaturgy.core.logging import bind_context, configure_logging, get_logger
from thaimaturgy.dm.orchestrator import Orchestrator, OrchestratorResponse
from thaimaturgy.engine.commands import Command, CommandHandler, CommandType, parse_command
from thaimaturgy.engine.dice import DiceRoller, get_default_roller
from thaimaturgy.models.character import Ability, Character, modifier
from thaimaturgy.models.conversation import MessageRole
from thaimaturgy.models.session import GameConfig, GameSession, GameState
from thaimaturgy.providers.base import Provider
from thaimaturgy.providers.factory import create_provider
from thaimaturgy.storage.database import Database


logger = get_logger(__name__)

app = typer.Typer(
    name="thaimaturgy",
    help="A text adventure narrated by an AI Dungeon Master",
    add_completion=False,
)


# =============================================================================
# Game Setup
# =============================================================================


def create_character(
    name: str,
    race: str = "Human",
    class_name: str = "Fighter",
    *,
    roller: DiceRoller | None = None,
) -> Character:
    """Create a level 1 character with rolled ability scores.

    Scores are rolled 4d6-drop-lowest in STR, DEX, CON, INT, WIS, CHA
    order. Hit points are 10 + CON modifier, armor class and initiative
    follow DEX.
    """
    roller = roller or get_default_roller()
    character = Character(name=name, race=race, class_name=class_name)
    for ability, score in zip(Ability, roller.roll_ability_scores()):
        character.abilities.set(ability, score)

    constitution = modifier(character.abilities.constitution)
    dexterity = modifier(character.abilities.dexterity)
    character.max_hp = max(1, 10 + constitution)
    character.current_hp = character.max_hp
    character.ac = 10 + dexterity
    character.initiative = dexterity
    return character


def _connect_provider(name: str, settings: Settings) -> Provider | None:
    try:
        return create_provider(name, settings=settings)
    except ConfigurationError as e:
        display_warning(f"{e.message}. Narration is disabled until a provider is configured.")
        return None


class GameRunner:
    """Interactive play loop tying the session, orchestrator and storage together."""

    def __init__(
        self,
        session: GameSession,
        *,
        settings: Settings,
        database: Database,
        provider: Provider | None,
    ) -> None:
        self.settings = settings
        self.database = database
        # One loop for the whole session; SDK clients pool connections per loop.
        self._loop = asyncio.Runner()
        self._attach(session, provider)

    def _attach(self, session: GameSession, provider: Provider | None) -> None:
        self.session = session
        self.orchestrator = Orchestrator(
            session,
            provider,
            turn_timeout=self.settings.ai.turn_timeout_seconds,
            summary_timeout=self.settings.ai.summary_timeout_seconds,
            summary_threshold=self.settings.game.summary_threshold,
        )
        self.commands = CommandHandler(session)
        bind_context(save_name=session.state.save_name)

    def new_state(self, character: Character) -> GameState:
        return GameState.new_game(
            character.name,
            character,
            self.session.config.default_setting,
            conversation_size=self.settings.game.conversation_size,
            event_log_size=self.settings.game.event_log_size,
        )

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def run(self, *, opening: bool = False) -> None:
        display_welcome(self.session.state.save_name)
        display_status(self.orchestrator.get_status())

        if opening:
            self._run_turn(self.orchestrator.start_new_game())
        else:
            self._show_last_narration()

        while True:
            console.print()
            try:
                text = prompt_input()
            except (EOFError, KeyboardInterrupt):
                console.print()
                self._quit()
                return

            command = parse_command(text)
            if command is None:
                continue
            if not self.handle(command):
                return

    def handle(self, command: Command) -> bool:
        """Execute one parsed input. Returns False when the player quits."""
        result = self.commands.execute(command)

        if result.should_quit:
            display_info(result.message)
            self._quit()
            return False

        if result.response:
            display_response(result.response)

        if result.action == "narration":
            self._run_turn(self.orchestrator.process_input(result.message))
        elif result.action == "save":
            display_info(result.message)
            self.save()
        elif result.action == "load":
            self._load(result.message)
        elif result.action == "new":
            self._new_game()
        elif result.action == "system_prompt":
            self._edit_system_prompt()
        elif result.message:
            if result.success:
                display_info(result.message)
            else:
                display_error(result.message)

        if command.type == CommandType.PROVIDER and result.success and command.args:
            self._switch_provider()
        return True

    def _run(self, coroutine: Coroutine[Any, Any, Any]) -> Any:
        return self._loop.run(coroutine)

    def close(self) -> None:
        """Shut down the session event loop."""
        self._loop.close()

    def _run_turn(self, coroutine: Coroutine[Any, Any, OrchestratorResponse]) -> None:
        try:
            with progress_spinner():
                response = self._run(coroutine)
        except KeyboardInterrupt:
            # Effects applied before the interrupt are kept.
            logger.info("Turn cancelled by player")
            display_warning("Turn cancelled.")
            if self.session.is_modified and self.session.config.auto_save:
                self.save(quiet=True)
            return
        except IterationLimitError as e:
            display_events(e.response.events)
            display_error(e.message)
            return
        except ThaimaturgyError as e:
            display_error(e.message)
            return

        display_events(response.events)
        display_narrative(response.narrative)
        display_turn_stats(response.tokens_used, response.latency_ms)

        self._update_memory()
        if self.session.config.auto_save:
            self.save(quiet=True)

    def _update_memory(self) -> None:
        try:
            self._run(self.orchestrator.update_memory_summary())
        except KeyboardInterrupt:
            display_warning("Story summary cancelled.")
        except AIControlError as e:
            logger.warning("Memory summary failed", error=e.message)
            display_warning(f"Could not update the story summary: {e.message}")

    def _show_last_narration(self) -> None:
        for message in reversed(self.session.state.conversation.messages):
            if message.role == MessageRole.ASSISTANT:
                display_narrative(message.content)
                return

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def save(self, *, quiet: bool = False) -> bool:
        self.session.add_play_time()
        try:
            self.database.save_game(self.session.state)
        except StorageError as e:
            display_error(f"Failed to save game: {e.message}")
            return False
        self.session.mark_saved()
        if not quiet:
            display_success("Game saved.")
        return True

    def _quit(self) -> None:
        if self.session.is_modified and self.session.config.auto_save:
            self.save(quiet=True)
        self.close()

    def _load(self, name: str) -> None:
        if not name:
            display_save_list(self.database.list_saves())
            name = prompt_input("Save to load: ").strip()
            if not name:
                return
        try:
            state = self.database.load_game(name)
        except StorageError as e:
            display_error(f"Failed to load game: {e.message}")
            return

        self._attach(GameSession(state=state, config=self.session.config), self.orchestrator.provider)
        display_success("Game loaded.")
        display_status(self.orchestrator.get_status())
        self._show_last_narration()

    def _new_game(self) -> None:
        name = prompt_input("Character name: ").strip()
        if not name:
            return
        race = prompt_input("Race [Human]: ").strip() or "Human"
        class_name = prompt_input("Class [Fighter]: ").strip() or "Fighter"

        state = self.new_state(create_character(name, race, class_name))
        self._attach(GameSession(state=state, config=self.session.config), self.orchestrator.provider)
        display_welcome(state.save_name)
        self._run_turn(self.orchestrator.start_new_game())

    def _edit_system_prompt(self) -> None:
        display_response(self.session.config.active_system_prompt())
        text = prompt_input("New system prompt (blank restores the default): ").strip()
        self.session.config.system_prompt = text
        display_info("System prompt updated." if text else "Default system prompt restored.")

    def _switch_provider(self) -> None:
        config = self.session.config
        config.model = self.settings.ai.resolved_model(config.provider)
        self.orchestrator.set_provider(_connect_provider(config.provider, self.settings))
        display_info(f"Model set to: {config.model}")


# =============================================================================
# Commands
# =============================================================================


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"thaimaturgy {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Thaimaturgy - a text adventure narrated by an AI Dungeon Master.

    Use 'thaimaturgy play' to start a new adventure or continue a saved one.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)


@app.command()
def play(
    save: str | None = typer.Option(None, "--save", "-s", help="Saved game to continue"),
    name: str | None = typer.Option(None, "--name", "-n", help="Name of a new character"),
    race: str = typer.Option("Human", "--race", "-r", help="Race of a new character"),
    class_name: str = typer.Option("Fighter", "--class", "-c", help="Class of a new character"),
    setting: str | None = typer.Option(None, "--setting", help="World setting for a new game"),
    provider: str | None = typer.Option(None, "--provider", "-p", help="AI provider (openai, anthropic)"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model identifier"),
) -> None:
    """Start a new adventure, or continue one with --save."""
    settings = get_settings()
    database = Database(settings.storage.database_path)

    config = GameConfig.from_settings(settings)
    try:
        if provider:
            config.provider = provider.strip().lower()
            config.model = settings.ai.resolved_model(config.provider)
        if model:
            config.model = model
        if setting:
            config.default_setting = setting
    except ValueError as e:
        display_error(f"Invalid option: {e}")
        raise typer.Exit(1) from e

    opening = False
    if save:
        try:
            state = database.load_game(save)
        except StorageError as e:
            display_error(e.message)
            raise typer.Exit(1) from e
    else:
        character_name = name or prompt_input("Character name: ").strip()
        if not character_name:
            display_error("A character needs a name.")
            raise typer.Exit(1)
        state = GameState.new_game(
            character_name,
            create_character(character_name, race, class_name),
            config.default_setting,
            conversation_size=settings.game.conversation_size,
            event_log_size=settings.game.event_log_size,
        )
        opening = True

    session = GameSession(state=state, config=config)
    runner = GameRunner(
        session,
        settings=settings,
        database=database,
        provider=_connect_provider(config.provider, settings),
    )
    try:
        runner.run(opening=opening and runner.orchestrator.provider is not None)
    finally:
        runner.close()


@app.command()
def roll(
    notation: str = typer.Argument("d20", help="Dice notation, e.g. 2d6+3"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for a reproducible roll"),
) -> None:
    """Roll dice without starting a game."""
    roller = DiceRoller(seed=seed) if seed is not None else get_default_roller()
    try:
        result = roller.roll(notation)
    except DiceRollError as e:
        display_error(e.message)
        raise typer.Exit(1) from e

    message = f"Rolling {result}: {result.result_string()}"
    if result.is_critical_hit:
        message += " CRITICAL HIT!"
    elif result.is_critical_fail:
        message += " CRITICAL FAIL!"
    console.print(message, highlight=False, markup=False)


@app.command()
def saves() -> None:
    """List saved games."""
    database = Database(get_settings().storage.database_path)
    display_save_list(database.list_saves())


@app.command()
def delete(
    name: str = typer.Argument(..., help="Name of the save to delete"),
) -> None:
    """Delete a saved game."""
    database = Database(get_settings().storage.database_path)
    if not database.delete_game(name):
        display_error(f"Save not found: {name}")
        raise typer.Exit(1)
    display_success(f"Deleted save '{name}'.")


if __name__ == "__main__":
    app()
