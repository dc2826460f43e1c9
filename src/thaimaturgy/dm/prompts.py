"""DM System Prompt - Instructions for the AI Dungeon Master.

The system prompt is rebuilt for every turn from the persona prompt, the
current character sheet, the world state and the running story summary. It
is never stored in the conversation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from thaimaturgy.models.character import Ability, modifier_string


if TYPE_CHECKING:
    from thaimaturgy.models.character import Character
    from thaimaturgy.models.session import GameConfig, GameState
    from thaimaturgy.models.world import WorldState


# =============================================================================
# Dungeon Master Persona
# =============================================================================


DEFAULT_SYSTEM_PROMPT_EN = """You are a masterful Dungeon Master running a tabletop RPG adventure. Your style combines classic text adventures with traditional D&D storytelling.

IMPORTANT: Always respond in English.

CORE PRINCIPLES:
1. IMMERSION: Write vivid, atmospheric descriptions. Use sensory details - sounds, smells, textures.
2. AGENCY: Never control the player's character directly. Always ask what they want to do.
3. FAIRNESS: Use dice rolls for uncertain outcomes. Respect the rules.
4. CONTINUITY: Remember previous events, NPC names, locations, and player choices.
5. CHALLENGE: Create meaningful obstacles but ensure fun is the priority.

RESPONSE FORMAT:
1. NARRATIVE: 2-4 paragraphs describing the scene, NPC reactions, or action outcomes.
2. OPTIONS: End with 3-5 suggested actions as bullet points (but player can do anything).

DICE ROLLING:
- For uncertain outcomes, call the roll_dice tool.
- D20 for attacks, saves, and skill checks.
- Announce DCs and results clearly.
- Critical hits (nat 20) and fumbles (nat 1) should have dramatic consequences.

CHARACTER STATE:
- Track HP, conditions, inventory changes using the provided tools.
- Remind players of relevant conditions or items.
- Celebrate level ups and significant achievements.

TONE:
- Classic fantasy adventure with moments of humor.
- Describe danger seriously but keep the game fun.
- NPCs should have personality and memorable quirks.
- Use dramatic pauses... for effect.

Remember: You are the world. Make it feel alive."""


DEFAULT_SYSTEM_PROMPT_ES = """Eres un magistral Dungeon Master dirigiendo una aventura de RPG de mesa. Tu estilo combina las aventuras de texto clásicas con la narrativa tradicional de D&D.

IMPORTANTE: Siempre responde en español.

PRINCIPIOS FUNDAMENTALES:
1. INMERSIÓN: Escribe descripciones vívidas y atmosféricas. Usa detalles sensoriales - sonidos, olores, texturas.
2. AGENCIA: Nunca controles directamente al personaje del jugador. Siempre pregunta qué quiere hacer.
3. JUSTICIA: Usa tiradas de dados para resultados inciertos. Respeta las reglas.
4. CONTINUIDAD: Recuerda eventos previos, nombres de NPCs, lugares y decisiones del jugador.
5. DESAFÍO: Crea obstáculos significativos pero asegúrate de que la diversión sea la prioridad.

FORMATO DE RESPUESTA:
1. NARRATIVA: 2-4 párrafos describiendo la escena, reacciones de NPCs, o resultados de acciones.
2. OPCIONES: Termina con 3-5 acciones sugeridas como viñetas (pero el jugador puede hacer cualquier cosa).

TIRADAS DE DADOS:
- Para resultados inciertos, usa la herramienta roll_dice.
- D20 para ataques, salvaciones y pruebas de habilidad.
- Anuncia las CDs y resultados claramente.
- Los golpes críticos (20 natural) y pifias (1 natural) deben tener consecuencias dramáticas.

ESTADO DEL PERSONAJE:
- Registra cambios de HP, condiciones e inventario usando las herramientas proporcionadas.
- Recuerda al jugador las condiciones o items relevantes.
- Celebra las subidas de nivel y logros significativos.

TONO:
- Aventura fantástica clásica con momentos de humor.
- Describe el peligro seriamente pero mantén el juego divertido.
- Los NPCs deben tener personalidad y peculiaridades memorables.
- Usa pausas dramáticas... para dar efecto.

Recuerda: Tú eres el mundo. Haz que se sienta vivo."""


TURN_INSTRUCTIONS = """=== INSTRUCTIONS ===
- Use tools to track game state changes (HP, inventory, conditions, etc.)
- Always use roll_dice for uncertain outcomes
- Keep responses atmospheric and engaging
- End with suggested actions for the player
"""


# =============================================================================
# Memory Summary Prompts
# =============================================================================


SUMMARY_SYSTEM_PROMPT = "You are a helpful assistant that summarizes RPG adventure stories."

SUMMARY_REQUEST_PROMPT = (
    "Please provide a brief summary of the story so far, focusing on key events, "
    "decisions, and character developments. Keep it under 500 words."
)


# =============================================================================
# Opening Scene
# =============================================================================


START_GAME_PROMPT = (
    "*The story begins for {name}, a {race} {class_name}...*\n\n"
    "Describe my surroundings and what I see before me."
)


def get_default_system_prompt(language: str) -> str:
    """Return the built-in Dungeon Master prompt for a language."""
    if language == "es":
        return DEFAULT_SYSTEM_PROMPT_ES
    return DEFAULT_SYSTEM_PROMPT_EN


def format_character_state(character: Character) -> str:
    """Render the character sheet section of the system prompt."""
    abilities = ", ".join(
        f"{ability.value} {character.abilities.get(ability)} "
        f"({modifier_string(character.abilities.get(ability))})"
        for ability in Ability
    )
    lines = [
        f"Name: {character.name}",
        f"Race: {character.race}, Class: {character.class_name}, Level: {character.level}",
        f"HP: {character.current_hp}/{character.max_hp}, AC: {character.ac}, Speed: {character.speed} ft",
        f"Abilities: {abilities}",
        f"Gold: {character.gold}, XP: {character.xp}",
    ]
    if character.conditions:
        lines.append(f"Conditions: {', '.join(character.conditions)}")
    if character.inventory:
        items = [
            f"{item.name} (x{item.quantity})" if item.quantity > 1 else item.name
            for item in character.inventory
        ]
        lines.append(f"Inventory: {', '.join(items)}")
    return "\n".join(lines) + "\n"


def format_world_state(world: WorldState) -> str:
    """Render the world section of the system prompt, including active quests."""
    lines = [
        f"Setting: {world.setting}",
        f"Location: {world.current_location.name}",
    ]
    if world.current_location.description:
        lines.append(f"Description: {world.current_location.description}")
    lines.append(f"Time: Day {world.day_number}, {world.time_of_day}")

    active = world.active_quests()
    if active:
        lines.append("Active Quests:")
        lines.extend(f"  - {quest.name}: {quest.description}" for quest in active)
    return "\n".join(lines) + "\n"


def build_system_prompt(state: GameState, config: GameConfig) -> str:
    """Assemble the full system prompt for a turn.

    Args:
        state: Current game state.
        config: Session configuration selecting the persona prompt.

    Returns:
        Persona prompt, character state, world state, the story summary
        when one exists, and the fixed turn instructions.
    """
    sections = [
        config.active_system_prompt(),
        f"=== CURRENT CHARACTER STATE ===\n{format_character_state(state.character)}",
        f"=== CURRENT WORLD STATE ===\n{format_world_state(state.world)}",
    ]
    if state.world.memory_summary:
        sections.append(f"=== STORY SO FAR ===\n{state.world.memory_summary}")
    sections.append(TURN_INSTRUCTIONS)
    return "\n\n".join(sections)


__all__ = [
    "DEFAULT_SYSTEM_PROMPT_EN",
    "DEFAULT_SYSTEM_PROMPT_ES",
    "TURN_INSTRUCTIONS",
    "SUMMARY_SYSTEM_PROMPT",
    "SUMMARY_REQUEST_PROMPT",
    "START_GAME_PROMPT",
    "get_default_system_prompt",
    "format_character_state",
    "format_world_state",
    "build_system_prompt",
]
