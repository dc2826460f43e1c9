"""Typed argument models for the Dungeon Master tools.

Tool arguments arrive from the model as a JSON object. Each tool decodes
them once into one of these models at the router boundary, so handlers only
ever see well-typed values. JSON numbers for integer parameters may arrive
as floats and are truncated; strings are never coerced to numbers.
"""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictBool, StrictStr, Strict


def _truncate_float(value: Any) -> Any:
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return value


ToolInt = Annotated[int, BeforeValidator(_truncate_float), Strict()]
"""Integer parameter accepting JSON floats, truncated toward zero."""

Quantity = Annotated[int, BeforeValidator(_truncate_float), Strict(), Field(ge=1)]
"""Item count; at least one."""


class ToolArguments(BaseModel):
    """Base class for tool argument models; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class RollDiceArgs(ToolArguments):
    notation: StrictStr
    reason: StrictStr | None = None


class UpdateHPArgs(ToolArguments):
    delta: ToolInt
    reason: StrictStr | None = None


class AddItemArgs(ToolArguments):
    item: StrictStr
    quantity: Quantity | None = None


class RemoveItemArgs(ToolArguments):
    item: StrictStr
    quantity: Quantity | None = None


class SetConditionArgs(ToolArguments):
    condition: StrictStr
    add: StrictBool


class UpdateGoldArgs(ToolArguments):
    delta: ToolInt
    reason: StrictStr | None = None


class AwardXPArgs(ToolArguments):
    amount: ToolInt
    reason: StrictStr | None = None


class SetLocationArgs(ToolArguments):
    name: StrictStr
    description: StrictStr | None = None
    exits: list[StrictStr] | None = None


class AddQuestArgs(ToolArguments):
    """Arguments of ``add_quest``.

    ``status`` is listed as required in the published schema but models
    routinely omit it, so it falls back to ``active``.
    """

    id: StrictStr
    name: StrictStr
    description: StrictStr | None = None
    status: StrictStr | None = None


class SkillCheckArgs(ToolArguments):
    skill: StrictStr
    dc: ToolInt


class SavingThrowArgs(ToolArguments):
    ability: StrictStr
    dc: ToolInt


__all__ = [
    "ToolInt",
    "Quantity",
    "ToolArguments",
    "RollDiceArgs",
    "UpdateHPArgs",
    "AddItemArgs",
    "RemoveItemArgs",
    "SetConditionArgs",
    "UpdateGoldArgs",
    "AwardXPArgs",
    "SetLocationArgs",
    "AddQuestArgs",
    "SkillCheckArgs",
    "SavingThrowArgs",
]
