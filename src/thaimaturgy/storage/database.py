"""SQLite persistence layer for Thaimaturgy.

Saved games are stored one row per save name. The full GameState is kept as
JSON, alongside a few denormalized columns used to list saves without
decoding every state.

Storage location: ~/.thaimaturgy/thaimaturgy.db (see THAIM_DATA_DIR)
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from thaimaturgy.core.config import get_settings
from thaimaturgy.core.exceptions import SaveNotFoundError, StorageError
from thaimaturgy.core.logging import get_logger
from thaimaturgy.models.session import GameState


logger = get_logger(__name__)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class SaveInfo:
    """Listing entry for a saved game.

    Attributes:
        name: Save name (unique).
        character_name: Name of the saved character.
        class_name: Character class.
        level: Character level.
        location: Current location name.
        play_time_seconds: Accumulated play time.
        created_at: When the save was first written.
        updated_at: When the save was last written.
    """

    name: str
    character_name: str
    class_name: str
    level: int
    location: str
    play_time_seconds: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> SaveInfo:
        """Create from database row."""
        return cls(
            name=row[0],
            character_name=row[1],
            class_name=row[2],
            level=row[3],
            location=row[4],
            play_time_seconds=row[5],
            created_at=datetime.fromisoformat(row[6]),
            updated_at=datetime.fromisoformat(row[7]),
        )

    def summary(self) -> str:
        minutes = int(self.play_time_seconds // 60)
        return (
            f"{self.name}: {self.character_name} (Level {self.level} {self.class_name}) "
            f"at {self.location}, {minutes} min played"
        )


# =============================================================================
# Database Class
# =============================================================================


class Database:
    """SQLite database of saved games."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path | None = None) -> None:
        """Initialize database.

        Args:
            db_path: Path to database file. If None, uses the configured location.
        """
        if db_path is None:
            self.db_path = get_settings().storage.database_path
        else:
            self.db_path = Path(db_path)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

        logger.info("Database initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open save database: {exc}", details={"path": str(self.db_path)}) from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS saves (
                    name TEXT PRIMARY KEY,
                    character_name TEXT NOT NULL,
                    class_name TEXT NOT NULL,
                    level INTEGER NOT NULL,
                    location TEXT NOT NULL,
                    play_time_seconds REAL NOT NULL DEFAULT 0,
                    state_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_saves_updated
                ON saves(updated_at DESC)
            """)

            cursor.execute("""
                INSERT OR REPLACE INTO schema_version (version) VALUES (?)
            """, (self.SCHEMA_VERSION,))

    # =========================================================================
    # Save Operations
    # =========================================================================

    def save_game(self, state: GameState) -> SaveInfo:
        """Write a game state under its save name, replacing any previous save.

        Args:
            state: The state to save. Its ``save_name`` must be set.

        Returns:
            Listing entry for the written save.

        Raises:
            StorageError: If the state has no save name or the write fails.
        """
        if not state.save_name:
            raise StorageError("Cannot save a game without a save name")

        now = datetime.now()
        character = state.character
        state_json = state.model_dump_json()

        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT created_at FROM saves WHERE name = ?", (state.save_name,))
                row = cursor.fetchone()
                created_at = datetime.fromisoformat(row[0]) if row else now

                cursor.execute("""
                    INSERT OR REPLACE INTO saves
                    (name, character_name, class_name, level, location,
                     play_time_seconds, state_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (state.save_name, character.name, character.class_name, character.level,
                      state.world.current_location.name, state.play_time_seconds, state_json,
                      created_at.isoformat(), now.isoformat()))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to save game: {exc}", save_name=state.save_name) from exc

        logger.info("Game saved", save_name=state.save_name, size=len(state_json))

        return SaveInfo(
            name=state.save_name,
            character_name=character.name,
            class_name=character.class_name,
            level=character.level,
            location=state.world.current_location.name,
            play_time_seconds=state.play_time_seconds,
            created_at=created_at,
            updated_at=now,
        )

    def load_game(self, name: str) -> GameState:
        """Load a saved game state.

        Args:
            name: Save name.

        Returns:
            The restored GameState.

        Raises:
            SaveNotFoundError: If no save has that name.
            StorageError: If the stored state cannot be decoded.
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT state_json FROM saves WHERE name = ?", (name,))
            row = cursor.fetchone()

        if row is None:
            raise SaveNotFoundError(f"Save not found: {name}", save_name=name)

        try:
            state = GameState.model_validate_json(row[0])
        except PydanticValidationError as exc:
            raise StorageError(f"Save '{name}' is corrupted: {exc}", save_name=name) from exc

        logger.info("Game loaded", save_name=name)
        return state

    def list_saves(self) -> list[SaveInfo]:
        """Get all saves, most recently updated first."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT name, character_name, class_name, level, location,
                       play_time_seconds, created_at, updated_at
                FROM saves ORDER BY updated_at DESC
            """)

            return [SaveInfo.from_row(tuple(row)) for row in cursor.fetchall()]

    def delete_game(self, name: str) -> bool:
        """Delete a save.

        Args:
            name: Save name.

        Returns:
            True if deleted, False if not found.
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM saves WHERE name = ?", (name,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Save deleted", save_name=name)

        return deleted

    def save_exists(self, name: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM saves WHERE name = ?", (name,))
            return cursor.fetchone() is not None

    def get_save_count(self) -> int:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM saves")
            return cursor.fetchone()[0]


# =============================================================================
# Singleton Instance
# =============================================================================


_database_instance: Database | None = None


def get_database() -> Database:
    """Get the global database instance.

    Returns:
        Database singleton instance.
    """
    global _database_instance

    if _database_instance is None:
        _database_instance = Database()

    return _database_instance


__all__ = [
    "Database",
    "SaveInfo",
    "get_database",
]
