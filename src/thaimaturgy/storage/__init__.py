"""Storage module for Thaimaturgy persistence.

Provides SQLite-based storage for saved games (character, world,
conversation and event log).
"""

from thaimaturgy.storage.database import (
    Database,
    SaveInfo,
    get_database,
)

__all__ = [
    "Database",
    "SaveInfo",
    "get_database",
]
