"""Rich display helpers for CLI output."""

from __future__ import annotations

from collections.abc import Generator, Iterable
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from thaimaturgy.models.events import Event, EventType
from thaimaturgy.storage.database import SaveInfo


# Shared console instance
console = Console()


EVENT_STYLES: dict[EventType, str] = {
    EventType.DICE_ROLL: "bold magenta",
    EventType.SKILL_CHECK: "magenta",
    EventType.SAVING_THROW: "magenta",
    EventType.HP_CHANGE: "red",
    EventType.ITEM_ADD: "green",
    EventType.ITEM_REMOVE: "yellow",
    EventType.CONDITION_ADD: "yellow",
    EventType.CONDITION_REMOVE: "green",
    EventType.QUEST_ADD: "cyan",
    EventType.QUEST_UPDATE: "cyan",
    EventType.LOCATION_CHANGE: "blue",
    EventType.GOLD_CHANGE: "yellow",
    EventType.XP_GAIN: "green",
    EventType.ERROR: "bold red",
}


def display_welcome(save_name: str | None = None) -> None:
    title = "[bold cyan]Thaimaturgy[/bold cyan]"
    if save_name:
        title += f" - {save_name}"

    console.print()
    console.print(Panel(title, subtitle="Type /help for commands", style="cyan"))
    console.print()


def display_narrative(text: str) -> None:
    """Display the Dungeon Master's narration.

    Args:
        text: Narrative text to display.
    """
    panel = Panel(
        text,
        title="Dungeon Master",
        border_style="dim",
        padding=(1, 2),
    )
    console.print(panel)


def display_events(events: Iterable[Event]) -> None:
    """Print one line per game event, colored by type."""
    for event in events:
        style = EVENT_STYLES.get(event.type, "dim")
        console.print(f"  [{style}]* {event.message}[/{style}]", highlight=False)


def display_response(text: str) -> None:
    """Display a command's text block (status, inventory, help)."""
    console.print(text, highlight=False, markup=False)


def display_error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)


def display_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)


def display_success(message: str) -> None:
    console.print(f"[bold green]{message}[/bold green]", highlight=False)


def display_info(message: str) -> None:
    console.print(f"[dim]{message}[/dim]", highlight=False)


def display_turn_stats(tokens: int, latency_ms: int) -> None:
    display_info(f"Tokens: {tokens} | Latency: {latency_ms}ms")


def display_save_list(saves: list[SaveInfo]) -> None:
    """Display saved games as a table.

    Args:
        saves: Listing entries, most recent first.
    """
    if not saves:
        console.print("[dim]No saved games found.[/dim]")
        return

    table = Table(title="Saved Games")
    table.add_column("Name", style="cyan")
    table.add_column("Character", style="white")
    table.add_column("Level", justify="right")
    table.add_column("Location", style="green")
    table.add_column("Played", justify="right")
    table.add_column("Updated", style="dim")

    for save in saves:
        table.add_row(
            save.name,
            f"{save.character_name} ({save.class_name})",
            str(save.level),
            save.location,
            f"{int(save.play_time_seconds // 60)} min",
            save.updated_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def display_status(status: dict[str, Any]) -> None:
    """Display the orchestrator status snapshot."""
    console.print(
        f"[dim]{status['character']} | {status['location']} | "
        f"{status['provider'] or 'no provider'}:{status['model']} "
        f"(temp {status['temperature']:.1f})[/dim]",
        highlight=False,
    )


def prompt_input(prompt: str = "> ") -> str:
    """Get input from user with styled prompt.

    Args:
        prompt: Prompt string.

    Returns:
        User input.
    """
    return console.input(f"[bold cyan]{prompt}[/bold cyan]")


@contextmanager
def progress_spinner(description: str = "The Dungeon Master is thinking...") -> Generator[None, None, None]:
    """Show a transient spinner while a request is in flight."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        yield


__all__ = [
    "console",
    "EVENT_STYLES",
    "display_welcome",
    "display_narrative",
    "display_events",
    "display_response",
    "display_error",
    "display_warning",
    "display_success",
    "display_info",
    "display_turn_stats",
    "display_save_list",
    "display_status",
    "prompt_input",
    "progress_spinner",
]
