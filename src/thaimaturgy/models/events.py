"""Game events: the audit trail of everything that changed during play.

Events are produced by tool handlers, slash commands and the orchestrator.
They feed the event panel of the terminal UI and never drive game logic.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from thaimaturgy.core.constants import EVENT_LOG_MAX_SIZE


class EventType(StrEnum):
    """Kinds of game events."""

    NARRATION = "narration"
    DICE_ROLL = "dice_roll"
    HP_CHANGE = "hp_change"
    ITEM_ADD = "item_add"
    ITEM_REMOVE = "item_remove"
    CONDITION_ADD = "condition_add"
    CONDITION_REMOVE = "condition_remove"
    QUEST_ADD = "quest_add"
    QUEST_UPDATE = "quest_update"
    LOCATION_CHANGE = "location_change"
    GOLD_CHANGE = "gold_change"
    XP_GAIN = "xp_gain"
    LEVEL_UP = "level_up"
    STAT_CHANGE = "stat_change"
    SKILL_CHECK = "skill_check"
    SAVING_THROW = "saving_throw"
    ATTACK = "attack"
    COMBAT_START = "combat_start"
    COMBAT_END = "combat_end"
    REST = "rest"
    TIME_PASS = "time_pass"
    NPC_INTERACTION = "npc_interaction"
    SYSTEM_MESSAGE = "system_message"
    ERROR = "error"


class Event(BaseModel):
    """A single rendered game event with its structured payload."""

    type: EventType
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def dice_roll(cls, notation: str, rolls: list[int], total: int, modifier: int) -> Event:
        return cls(
            type=EventType.DICE_ROLL,
            message=f"Rolled {notation}: {rolls} = {total}",
            data={"notation": notation, "rolls": list(rolls), "total": total, "modifier": modifier},
        )

    @classmethod
    def hp_change(cls, delta: int, reason: str, current_hp: int, max_hp: int) -> Event:
        if delta > 0:
            message = f"Healed {delta} HP ({reason}) [{current_hp}/{max_hp}]"
        else:
            message = f"Took {-delta} damage ({reason}) [{current_hp}/{max_hp}]"
        return cls(
            type=EventType.HP_CHANGE,
            message=message,
            data={"delta": delta, "reason": reason, "current_hp": current_hp, "max_hp": max_hp},
        )

    @classmethod
    def item_add(cls, item: str, quantity: int) -> Event:
        return cls(
            type=EventType.ITEM_ADD,
            message=f"Added {quantity}x {item} to inventory",
            data={"item": item, "quantity": quantity},
        )

    @classmethod
    def item_remove(cls, item: str, quantity: int) -> Event:
        return cls(
            type=EventType.ITEM_REMOVE,
            message=f"Removed {quantity}x {item} from inventory",
            data={"item": item, "quantity": quantity},
        )

    @classmethod
    def condition_add(cls, condition: str) -> Event:
        return cls(type=EventType.CONDITION_ADD, message=f"Condition applied: {condition}")

    @classmethod
    def condition_remove(cls, condition: str) -> Event:
        return cls(type=EventType.CONDITION_REMOVE, message=f"Condition removed: {condition}")

    @classmethod
    def quest_add(cls, quest_name: str) -> Event:
        return cls(type=EventType.QUEST_ADD, message=f"New quest: {quest_name}")

    @classmethod
    def quest_update(cls, quest_name: str, status: str) -> Event:
        return cls(type=EventType.QUEST_UPDATE, message=f"Quest '{quest_name}' updated: {status}")

    @classmethod
    def location_change(cls, location: str) -> Event:
        return cls(type=EventType.LOCATION_CHANGE, message=f"Traveled to: {location}")

    @classmethod
    def gold_change(cls, delta: int, reason: str, total: int) -> Event:
        if delta > 0:
            message = f"Gained {delta} gold ({reason}) [Total: {total}]"
        else:
            message = f"Spent {-delta} gold ({reason}) [Total: {total}]"
        return cls(
            type=EventType.GOLD_CHANGE,
            message=message,
            data={"delta": delta, "reason": reason, "total": total},
        )

    @classmethod
    def xp_gain(cls, amount: int, total: int) -> Event:
        return cls(type=EventType.XP_GAIN, message=f"Gained {amount} XP [Total: {total}]")

    @classmethod
    def level_up(cls, new_level: int, class_name: str) -> Event:
        return cls(type=EventType.LEVEL_UP, message=f"Level up! Now Level {new_level} {class_name}")

    @classmethod
    def skill_check(cls, skill: str, dc: int, roll: int, bonus: int, success: bool) -> Event:
        result = "SUCCESS" if success else "FAILED"
        return cls(
            type=EventType.SKILL_CHECK,
            message=f"{skill} check (DC {dc}): {roll} + {bonus} = {roll + bonus} [{result}]",
            data={"skill": skill, "dc": dc, "roll": roll, "bonus": bonus, "success": success},
        )

    @classmethod
    def saving_throw(cls, ability: str, dc: int, roll: int, bonus: int, success: bool) -> Event:
        result = "SUCCESS" if success else "FAILED"
        return cls(
            type=EventType.SAVING_THROW,
            message=f"{ability} save (DC {dc}): {roll} + {bonus} = {roll + bonus} [{result}]",
            data={"ability": ability, "dc": dc, "roll": roll, "bonus": bonus, "success": success},
        )

    @classmethod
    def system_message(cls, message: str) -> Event:
        return cls(type=EventType.SYSTEM_MESSAGE, message=message)

    @classmethod
    def error(cls, message: str) -> Event:
        return cls(type=EventType.ERROR, message=f"ERROR: {message}")


class EventLog(BaseModel):
    """Bounded event history; the oldest events are dropped when full."""

    model_config = ConfigDict(extra="ignore")

    max_size: int = Field(default=EVENT_LOG_MAX_SIZE, ge=1)
    events: deque[Event] = Field(default_factory=deque)

    def model_post_init(self, __context: Any) -> None:
        self.events = deque(self.events, maxlen=self.max_size)

    def add(self, event: Event) -> None:
        self.events.append(event)

    def last(self, n: int) -> list[Event]:
        """Return the ``n`` most recent events, or all of them if ``n`` is not positive."""
        if n <= 0 or n >= len(self.events):
            return list(self.events)
        return list(self.events)[-n:]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)


__all__ = [
    "EventType",
    "Event",
    "EventLog",
]
