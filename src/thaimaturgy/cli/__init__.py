"""Command line interface: the typer app and the interactive play loop."""

from thaimaturgy.cli.main import GameRunner, app, create_character

__all__ = [
    "GameRunner",
    "app",
    "create_character",
]
