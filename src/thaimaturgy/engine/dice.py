"""Dice notation parsing and rolling.

Supports the tabletop notation ``[count]d<sides>[+|-modifier]`` (for example
``d20``, ``2d6+3`` or ``1d8-1``), critical detection for single d20 rolls
and 4d6-drop-lowest ability score generation.

Unseeded rollers share one process-wide random generator. Seeded rollers
own an independent ``random.Random`` so two rollers built with the same
seed produce the same sequence without touching global state.

Example:
    >>> roller = DiceRoller(seed=42)
    >>> result = roller.roll("2d6+3")
    >>> print(result.result_string())
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field

from thaimaturgy.core.constants import (
    ABILITY_SCORE_DICE,
    ABILITY_SCORE_NOTATION,
    MAX_DICE_COUNT,
    MAX_DICE_SIDES,
    MIN_DICE_COUNT,
    MIN_DICE_SIDES,
)
from thaimaturgy.core.exceptions import DiceRollError
from thaimaturgy.core.logging import get_logger


logger = get_logger(__name__)

DICE_PATTERN = re.compile(r"^(\d+)?d(\d+)([+-]\d+)?$")

# Process-wide generator shared by every unseeded roller
_shared_rng = random.Random()


# =============================================================================
# Dice Roll
# =============================================================================


@dataclass
class DiceRoll:
    """A parsed dice specification and, once rolled, its results.

    Attributes:
        notation: The normalized notation the roll was parsed from.
        count: Number of dice in ``rolls``.
        sides: Number of sides on each die.
        modifier: Signed flat modifier added to the dice sum.
        rolls: Individual die results in the order drawn (kept dice only).
        total: Sum of the kept dice plus the modifier.
        dropped: Dice discarded by a drop-lowest roll.
    """

    notation: str
    count: int
    sides: int
    modifier: int = 0
    rolls: list[int] = field(default_factory=list)
    total: int = 0
    dropped: list[int] = field(default_factory=list)

    @property
    def is_rolled(self) -> bool:
        """Whether the roll has been executed."""
        return bool(self.rolls)

    @property
    def is_critical_hit(self) -> bool:
        """A natural 20 on a single d20."""
        return self._is_single_d20() and self.rolls[0] == 20

    @property
    def is_critical_fail(self) -> bool:
        """A natural 1 on a single d20."""
        return self._is_single_d20() and self.rolls[0] == 1

    def _is_single_d20(self) -> bool:
        return self.count == 1 and self.sides == 20 and len(self.rolls) > 0

    def result_string(self) -> str:
        """Render the rolled dice, e.g. ``[4+5]+3 = 12``.

        Returns:
            The individual results joined by ``+`` in brackets, the signed
            modifier when non-zero, and the total.
        """
        dice = "+".join(str(r) for r in self.rolls)
        if self.modifier:
            return f"[{dice}]{self.modifier:+d} = {self.total}"
        return f"[{dice}] = {self.total}"

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.count}d{self.sides}+{self.modifier}"
        if self.modifier < 0:
            return f"{self.count}d{self.sides}{self.modifier}"
        return f"{self.count}d{self.sides}"


def parse_dice(notation: str) -> DiceRoll:
    """Parse dice notation into an unrolled DiceRoll.

    Matching is case-insensitive and ignores surrounding whitespace.
    The dice count defaults to 1 when omitted.

    Args:
        notation: Dice notation such as ``1d20``, ``d8`` or ``2d6-1``.

    Returns:
        DiceRoll with count, sides and modifier set and no results.

    Raises:
        DiceRollError: If the notation is malformed or out of range.
    """
    normalized = notation.strip().lower()
    match = DICE_PATTERN.match(normalized)
    if match is None:
        raise DiceRollError(
            f"Invalid dice notation: {normalized!r} (expected format: NdM or NdM+K)",
            expression=notation,
        )

    count_text, sides_text, modifier_text = match.groups()
    count = int(count_text) if count_text else 1
    sides = int(sides_text)
    modifier = int(modifier_text) if modifier_text else 0

    if not MIN_DICE_COUNT <= count <= MAX_DICE_COUNT:
        raise DiceRollError(
            f"Number of dice must be between {MIN_DICE_COUNT} and {MAX_DICE_COUNT}",
            expression=notation,
        )
    if not MIN_DICE_SIDES <= sides <= MAX_DICE_SIDES:
        raise DiceRollError(
            f"Dice sides must be between {MIN_DICE_SIDES} and {MAX_DICE_SIDES}",
            expression=notation,
        )

    return DiceRoll(notation=normalized, count=count, sides=sides, modifier=modifier)


# =============================================================================
# Dice Roller
# =============================================================================


class DiceRoller:
    """Rolls dice from a random source.

    Example:
        >>> roller = DiceRoller()
        >>> result = roller.roll("1d20+5")
        >>> print(f"Total: {result.total}")
    """

    def __init__(self, *, seed: int | None = None, rng: random.Random | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Seed for an independent, reproducible generator.
            rng: Explicit random source; takes precedence over ``seed``.
        """
        if rng is not None:
            self._rng = rng
        elif seed is not None:
            self._rng = random.Random(seed)
        else:
            self._rng = _shared_rng
        self._seed = seed
        logger.debug("DiceRoller initialized", seed=seed, shared=self._rng is _shared_rng)

    def execute(self, dice: DiceRoll) -> DiceRoll:
        """Roll a parsed specification, overwriting any previous results.

        Args:
            dice: The specification to roll.

        Returns:
            The same DiceRoll with ``rolls`` and ``total`` populated.
        """
        dice.rolls = [self._rng.randint(1, dice.sides) for _ in range(dice.count)]
        dice.dropped = []
        dice.total = sum(dice.rolls) + dice.modifier

        logger.info(
            "Dice rolled",
            notation=str(dice),
            rolls=dice.rolls,
            total=dice.total,
        )
        return dice

    def roll(self, notation: str) -> DiceRoll:
        """Parse and roll dice notation.

        Args:
            notation: Dice notation (e.g., '1d20+5', '2d6+3').

        Returns:
            The rolled DiceRoll.

        Raises:
            DiceRollError: If the notation is invalid.
        """
        return self.execute(parse_dice(notation))

    def roll_dice(self, count: int, sides: int, modifier: int = 0) -> DiceRoll:
        """Roll dice from explicit components."""
        dice = DiceRoll(notation="", count=count, sides=sides, modifier=modifier)
        dice.notation = str(dice)
        return self.execute(dice)

    def roll_d20(self, modifier: int = 0) -> DiceRoll:
        """Roll a single d20 with an optional modifier."""
        return self.roll_dice(1, 20, modifier)

    def roll_ability_score(self) -> DiceRoll:
        """Roll 4d6 and drop the lowest die.

        When several dice tie for lowest, only the first of them in roll
        order is dropped.

        Returns:
            DiceRoll with the three kept dice in ``rolls`` (``count`` is 3),
            the discarded die in ``dropped`` and their sum (3-18) as
            ``total``.
        """
        rolls = [self._rng.randint(1, 6) for _ in range(ABILITY_SCORE_DICE)]

        min_index = 0
        for index, value in enumerate(rolls):
            if value < rolls[min_index]:
                min_index = index

        kept = [value for index, value in enumerate(rolls) if index != min_index]
        result = DiceRoll(
            notation=ABILITY_SCORE_NOTATION,
            count=len(kept),
            sides=6,
            rolls=kept,
            total=sum(kept),
            dropped=[rolls[min_index]],
        )
        logger.debug("Ability score rolled", rolls=rolls, dropped=rolls[min_index], total=result.total)
        return result

    def roll_ability_scores(self) -> list[int]:
        """Roll a full set of six ability scores."""
        return [self.roll_ability_score().total for _ in range(6)]


_default_roller = DiceRoller()


def get_default_roller() -> DiceRoller:
    """Return the process-wide roller backed by the shared generator."""
    return _default_roller


def roll(notation: str) -> DiceRoll:
    """Roll dice using the default roller.

    Args:
        notation: Dice notation.

    Returns:
        The rolled DiceRoll.
    """
    return _default_roller.roll(notation)


__all__ = [
    "DICE_PATTERN",
    "DiceRoll",
    "DiceRoller",
    "parse_dice",
    "get_default_roller",
    "roll",
]
