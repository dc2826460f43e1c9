"""World state model: location, time, quests, NPCs and story memory."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from thaimaturgy.models.character import GameModel


ACTIVE_QUEST_STATUSES = frozenset({"active", "in_progress"})


class Location(GameModel):
    """The place the character currently stands."""

    name: str
    description: str = ""
    exits: list[str] = Field(default_factory=list)


class Quest(GameModel):
    """A quest tracked by the Dungeon Master.

    Status is free text; ``active`` and ``in_progress`` count as open.
    """

    id: str
    name: str
    description: str = ""
    status: str = "active"
    giver: str = ""

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_QUEST_STATUSES


class NPC(GameModel):
    """A non-player character the story has introduced."""

    name: str
    description: str = ""
    disposition: str = "neutral"
    is_alive: bool = True


def _starting_location() -> Location:
    return Location(
        name="Unknown",
        description="You find yourself in an unfamiliar place...",
    )


class WorldState(GameModel):
    """Everything about the world outside the character sheet.

    Attributes:
        setting: Genre or campaign setting, e.g. ``fantasy``.
        current_location: Where the character is.
        time_of_day: Free-text time of day.
        day_number: In-game day counter, starting at 1.
        quests: Quests in the order they were added.
        npcs: Known NPCs by name.
        flags: Boolean story flags.
        variables: String story variables.
        memory_summary: Running summary of the story so far.
    """

    setting: str = "fantasy"
    current_location: Location = Field(default_factory=_starting_location)
    time_of_day: str = "morning"
    weather: str = ""
    day_number: int = 1
    quests: list[Quest] = Field(default_factory=list)
    npcs: dict[str, NPC] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict)
    variables: dict[str, str] = Field(default_factory=dict)
    memory_summary: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def add_quest(self, quest: Quest) -> None:
        self.quests.append(quest)
        self.touch()

    def get_quest(self, quest_id: str) -> Quest | None:
        return next((quest for quest in self.quests if quest.id == quest_id), None)

    def update_quest_status(self, quest_id: str, status: str) -> bool:
        """Set the status of an existing quest.

        Returns:
            False if no quest has that id.
        """
        quest = self.get_quest(quest_id)
        if quest is None:
            return False
        quest.status = status
        self.touch()
        return True

    def active_quests(self) -> list[Quest]:
        return [quest for quest in self.quests if quest.is_active]

    def set_location(self, location: Location) -> None:
        self.current_location = location
        self.touch()

    def set_flag(self, key: str, value: bool) -> None:
        self.flags[key] = value
        self.touch()

    def get_flag(self, key: str) -> bool:
        return self.flags.get(key, False)

    def set_variable(self, key: str, value: str) -> None:
        self.variables[key] = value
        self.touch()

    def get_variable(self, key: str) -> str:
        return self.variables.get(key, "")

    def add_npc(self, npc: NPC) -> None:
        self.npcs[npc.name] = npc
        self.touch()

    def summary(self) -> str:
        return f"{self.setting} - Day {self.day_number}, {self.time_of_day} at {self.current_location.name}"


__all__ = [
    "ACTIVE_QUEST_STATUSES",
    "Location",
    "Quest",
    "NPC",
    "WorldState",
]
