"""Player character model.

The character sheet is the part of the game state the AI mutates most
often: hit points, inventory, conditions, gold and experience all change
through tool calls. Ability modifiers and skill bonuses are derived here so
every check uses the same arithmetic.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from thaimaturgy.core.constants import (
    DEFAULT_ABILITY_SCORE,
    DEFAULT_ARMOR_CLASS,
    DEFAULT_HIT_POINTS,
    DEFAULT_PROFICIENCY_BONUS,
    DEFAULT_SPEED,
    STANDARD_SKILLS,
)


class GameModel(BaseModel):
    """Base class for mutable game state models."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
    )


# =============================================================================
# Abilities
# =============================================================================


class Ability(StrEnum):
    """The six ability scores, by their standard abbreviation."""

    STR = "STR"
    DEX = "DEX"
    CON = "CON"
    INT = "INT"
    WIS = "WIS"
    CHA = "CHA"

    @property
    def full_name(self) -> str:
        return _ABILITY_NAMES[self]


_ABILITY_NAMES = {
    Ability.STR: "Strength",
    Ability.DEX: "Dexterity",
    Ability.CON: "Constitution",
    Ability.INT: "Intelligence",
    Ability.WIS: "Wisdom",
    Ability.CHA: "Charisma",
}

_ABILITY_FIELDS = {
    Ability.STR: "strength",
    Ability.DEX: "dexterity",
    Ability.CON: "constitution",
    Ability.INT: "intelligence",
    Ability.WIS: "wisdom",
    Ability.CHA: "charisma",
}


def modifier(score: int) -> int:
    """Calculate the ability modifier for a score, ``floor((score - 10) / 2)``."""
    return (score - 10) // 2


def modifier_string(score: int) -> str:
    """Render a score's modifier with an explicit sign, e.g. ``+2`` or ``-1``."""
    return f"{modifier(score):+d}"


class AbilityScores(GameModel):
    """The six ability scores of a character."""

    strength: int = Field(default=DEFAULT_ABILITY_SCORE, description="Physical power")
    dexterity: int = Field(default=DEFAULT_ABILITY_SCORE, description="Agility and reflexes")
    constitution: int = Field(default=DEFAULT_ABILITY_SCORE, description="Health and stamina")
    intelligence: int = Field(default=DEFAULT_ABILITY_SCORE, description="Reasoning and memory")
    wisdom: int = Field(default=DEFAULT_ABILITY_SCORE, description="Perception and insight")
    charisma: int = Field(default=DEFAULT_ABILITY_SCORE, description="Force of personality")

    def get(self, ability: Ability | str) -> int:
        """Return the score for an ability."""
        return getattr(self, _ABILITY_FIELDS[Ability(ability)])

    def set(self, ability: Ability | str, value: int) -> None:
        """Set the score for an ability."""
        setattr(self, _ABILITY_FIELDS[Ability(ability)], value)


# =============================================================================
# Sheet Entries
# =============================================================================


class Skill(GameModel):
    """A skill, the ability it uses and the character's training in it."""

    name: str
    ability: Ability
    proficient: bool = False
    expert: bool = False


class InventoryItem(GameModel):
    """A stack of identical items carried by the character."""

    name: str
    quantity: int = 1
    weight: float = 0.0
    equipped: bool = False


class Condition(StrEnum):
    """Standard conditions. The AI may also apply names outside this list."""

    BLINDED = "Blinded"
    CHARMED = "Charmed"
    DEAFENED = "Deafened"
    EXHAUSTED = "Exhausted"
    FRIGHTENED = "Frightened"
    GRAPPLED = "Grappled"
    INCAPACITATED = "Incapacitated"
    INVISIBLE = "Invisible"
    PARALYZED = "Paralyzed"
    PETRIFIED = "Petrified"
    POISONED = "Poisoned"
    PRONE = "Prone"
    RESTRAINED = "Restrained"
    STUNNED = "Stunned"
    UNCONSCIOUS = "Unconscious"


def default_skills() -> list[Skill]:
    """Build the standard skill list with no training."""
    return [Skill(name=name, ability=Ability(ability)) for name, ability in STANDARD_SKILLS]


# =============================================================================
# Character
# =============================================================================


class Character(GameModel):
    """The player character sheet.

    Attributes:
        name: Character name.
        race: Character race.
        class_name: Character class.
        level: Character level.
        abilities: The six ability scores.
        max_hp: Maximum hit points.
        current_hp: Current hit points, between 0 and ``max_hp``.
        temp_hp: Temporary hit points, lost before current hit points.
        proficiency_bonus: Bonus added to proficient skills.
        skills: Skill list used for skill checks.
        inventory: Item stacks, one per distinct name.
        conditions: Active condition names, without duplicates.
        gold: Gold pieces, never negative.
        xp: Experience points.
    """

    name: str
    race: str = "Human"
    class_name: str = "Fighter"
    level: int = 1
    background: str = "Adventurer"
    alignment: str = "Neutral"

    abilities: AbilityScores = Field(default_factory=AbilityScores)

    max_hp: int = DEFAULT_HIT_POINTS
    current_hp: int = DEFAULT_HIT_POINTS
    temp_hp: int = 0

    ac: int = DEFAULT_ARMOR_CLASS
    initiative: int = 0
    speed: int = DEFAULT_SPEED
    proficiency_bonus: int = DEFAULT_PROFICIENCY_BONUS

    skills: list[Skill] = Field(default_factory=default_skills)
    inventory: list[InventoryItem] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)

    gold: int = 0
    xp: int = 0
    notes: str = ""

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def ability_modifier(self, ability: Ability | str) -> int:
        """Return the modifier of one of the character's abilities."""
        return modifier(self.abilities.get(ability))

    def skill_bonus(self, skill_name: str) -> int:
        """Return the total bonus for a skill check.

        The ability modifier plus twice the proficiency bonus for expertise,
        or the proficiency bonus when merely proficient. The skill name must
        match exactly; unknown skills have no bonus.

        Args:
            skill_name: Name of the skill, e.g. ``Perception``.

        Returns:
            The bonus to add to the d20.
        """
        for skill in self.skills:
            if skill.name == skill_name:
                bonus = self.ability_modifier(skill.ability)
                if skill.expert:
                    bonus += self.proficiency_bonus * 2
                elif skill.proficient:
                    bonus += self.proficiency_bonus
                return bonus
        return 0

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def add_item(self, item: InventoryItem) -> None:
        """Add an item, merging into an existing stack with the same name."""
        for existing in self.inventory:
            if existing.name == item.name:
                existing.quantity += item.quantity
                return
        self.inventory.append(item)

    def remove_item(self, name: str, quantity: int = 1) -> bool:
        """Remove items from a stack.

        The whole stack goes when ``quantity`` covers it.

        Args:
            name: Exact item name.
            quantity: How many to remove.

        Returns:
            False if no stack with that name exists.
        """
        for index, existing in enumerate(self.inventory):
            if existing.name == name:
                if existing.quantity <= quantity:
                    del self.inventory[index]
                else:
                    existing.quantity -= quantity
                return True
        return False

    def get_item(self, name: str) -> InventoryItem | None:
        return next((item for item in self.inventory if item.name == name), None)

    # -------------------------------------------------------------------------
    # Conditions
    # -------------------------------------------------------------------------

    def add_condition(self, condition: str) -> None:
        if condition not in self.conditions:
            self.conditions.append(condition)

    def remove_condition(self, condition: str) -> None:
        if condition in self.conditions:
            self.conditions.remove(condition)

    def has_condition(self, condition: str) -> bool:
        return condition in self.conditions

    # -------------------------------------------------------------------------
    # Hit Points
    # -------------------------------------------------------------------------

    def take_damage(self, damage: int) -> None:
        """Apply damage. Temp HP absorbs damage first; HP floors at 0."""
        if damage <= 0:
            return
        if self.temp_hp > 0:
            absorbed = min(self.temp_hp, damage)
            self.temp_hp -= absorbed
            damage -= absorbed
        self.current_hp = max(0, self.current_hp - damage)

    def heal(self, amount: int) -> None:
        """Restore hit points, capped at maximum."""
        if amount <= 0:
            return
        self.current_hp = min(self.max_hp, self.current_hp + amount)

    @property
    def is_alive(self) -> bool:
        return self.current_hp > 0

    def summary(self) -> str:
        """One-line summary, e.g. ``Aria - Level 3 Elf Ranger | HP: 20/24 | AC: 15``."""
        return (
            f"{self.name} - Level {self.level} {self.race} {self.class_name} | "
            f"HP: {self.current_hp}/{self.max_hp} | AC: {self.ac}"
        )


__all__ = [
    "GameModel",
    "Ability",
    "AbilityScores",
    "Skill",
    "InventoryItem",
    "Condition",
    "Character",
    "modifier",
    "modifier_string",
    "default_skills",
]
