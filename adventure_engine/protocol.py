"""Adventure update protocol: response schema, prompts and response parsing.

Two request shapes share one response schema:

  start adventure    genre + character description
  advance adventure  previous story, chosen action, inventory, quest,
                     health, enemy, genre, character description

Prompts are Handlebars templates (pybars). Every interpolated value uses
the triple-stash form so quotes and ampersands reach the model unescaped.

parse_update() is the only way model output becomes a GameUpdate. Anything
that is not valid JSON for the schema raises ProtocolError after the raw
payload has been logged.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

import pybars
from pydantic import ValidationError

from adventure_engine.genres import art_style_for, prompt_genre
from adventure_engine.models import Enemy, GameUpdate, InventoryItem

logger = logging.getLogger(__name__)

_compiler = pybars.Compiler()


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


class ProtocolError(ValueError):
    """Raised when a model response does not match the update schema."""


# ── Response schema ─────────────────────────────────────

_ITEM_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING", "description": "The name of the new item acquired."},
        "description": {
            "type": "STRING",
            "description": (
                "A brief, narrative description of the item's immediate effect on the "
                "player (e.g., 'You feel a surge of energy')."
            ),
        },
    },
    "required": ["name", "description"],
}

_LORE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "type": {
            "type": "STRING",
            "enum": ["Creature", "Character", "Item"],
            "description": "The category of the lore entry.",
        },
        "name": {"type": "STRING", "description": "The name of the creature, character, or item."},
        "description": {
            "type": "STRING",
            "description": "A brief, encyclopedic description for the lore book.",
        },
    },
    "required": ["type", "name", "description"],
}

GAME_UPDATE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "storyText": {
            "type": "STRING",
            "description": (
                "The next paragraph of the story (about 100-150 words), including combat "
                "descriptions if an enemy is present."
            ),
        },
        "choices": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": (
                "An array of exactly 3 short, distinct action choices for the user. These "
                "should be combat-oriented if an enemy is present."
            ),
        },
        "newInventoryItems": {
            "type": "ARRAY",
            "items": _ITEM_SCHEMA,
            "description": "An array of any new items the user acquires. Can be empty.",
        },
        "updatedQuest": {"type": "STRING", "description": "A concise update to the user's current quest."},
        "imagePrompt": {
            "type": "STRING",
            "description": (
                "A detailed, vivid prompt for an image generator based on the story text, "
                "excluding character descriptions."
            ),
        },
        "playerHealth": {
            "type": "INTEGER",
            "description": "The player's new health value (0-100) after the events of this turn.",
        },
        "enemy": {
            "type": "OBJECT",
            "nullable": True,
            "description": (
                "Details of a new or existing enemy in combat. Set to null if combat is "
                "not active or ends."
            ),
            "properties": {
                "name": {"type": "STRING", "description": "The enemy's name."},
                "health": {
                    "type": "INTEGER",
                    "description": "The enemy's current health. Must be greater than 0.",
                },
            },
            "required": ["name", "health"],
        },
        "newLoreEntries": {
            "type": "ARRAY",
            "items": _LORE_SCHEMA,
            "description": (
                "An array of new lore/bestiary entries for any significant characters, "
                "creatures, or items introduced for the first time in this story segment. "
                "Can be empty."
            ),
        },
        "initialCombatEffect": {
            "type": "OBJECT",
            "nullable": True,
            "description": (
                "A summary of a passive effect that occurs when combat first begins. Must "
                "be null if combat is not starting this turn."
            ),
            "properties": {
                "description": {
                    "type": "STRING",
                    "description": (
                        "A short summary of the effect for a notification (e.g., 'The "
                        "bandit's ambush costs you 10 health!')."
                    ),
                },
            },
            "required": ["description"],
        },
    },
    "required": [
        "storyText",
        "choices",
        "newInventoryItems",
        "updatedQuest",
        "imagePrompt",
        "playerHealth",
        "enemy",
        "newLoreEntries",
        "initialCombatEffect",
    ],
}


# ── Prompt templates ────────────────────────────────────

START_TEMPLATE = (
    "You are starting a new choose-your-own-adventure game in the {{{genre}}} genre. "
    'The player\'s character is: "{{{character}}}". The player starts with 100 health. '
    "Create the opening scene where this character wakes up in a mysterious location with "
    "no memory. Your response MUST be a JSON object that conforms to the provided schema. "
    "The initial quest should be to discover their identity. Set playerHealth to 100. "
    "There is no enemy at the start, so the 'enemy' field must be null, and "
    "'initialCombatEffect' must also be null. If you introduce any significant items or "
    "characters in this opening scene, add them to the 'newLoreEntries' array."
)

ADVANCE_TEMPLATE = """\
You are a master storyteller for an infinite choose-your-own-adventure game in the {{{genre}}} genre.
The user is playing as a character described as: "{{{character}}}".
The user is in the middle of a story. I will provide the story so far, the user's last choice, their current inventory, quest, health, and enemy status.
Your task is to continue the story in a compelling way. The user's choices must have meaningful consequences that can affect their health.

- COMBAT: Introduce enemies occasionally. When combat begins, provide the enemy's name and health in the 'enemy' field. While combat is active, choices should be combat-oriented (e.g., Attack, Defend, Use Item). Your narrative must describe the fight. Adjust player and enemy health based on the action.
- PASSIVE COMBAT EFFECTS: When combat begins with a NEW enemy, you MUST introduce a passive effect. This could be an ambush that damages the player, a terrifying aura, or a pre-existing poison on the enemy. Describe this effect narratively in the 'storyText', reflect any health changes in the 'playerHealth' or 'enemy.health' values, and summarize the effect in the 'initialCombatEffect.description' field (e.g., "The creature's toxic spores inflict 8 damage!"). This field MUST be null if combat is not beginning on this turn.
- ENDING COMBAT: If the player defeats the enemy (its health is reduced to 0 or less), set the 'enemy' field in your response to null. Do not describe the defeated enemy in the story text beyond its defeat.
- CONTINUING COMBAT: If combat continues, update the enemy's health in the 'enemy' field.
- HEALTH & ITEMS: If the user takes damage, reduce their health. If they find a restorative item, you can increase it. When the user acquires an item, describe its immediate narrative effect in the item's description. Return the player's new health value in the playerHealth field.
- LORE: When you introduce a new and significant creature, character, or item for the first time, add a brief, encyclopedic entry for it in the 'newLoreEntries' array. Do not add entries for things that have appeared before.

Current Story: "{{{story}}}"
User's Choice: "{{{choice}}}"
Current Inventory: [{{{inventory}}}]
Current Quest: "{{{quest}}}"
Current Health: {{health}}/100
Current Enemy: {{{enemy}}}

Your response MUST be a JSON object that conforms to the provided schema.
"""

IMAGE_TEMPLATE = "{{{style}}}. A scene depicting: {{{prompt}}}. The main character looks like: {{{character}}}."


@functools.lru_cache(maxsize=None)
def _compile(source: str) -> Callable:
    try:
        return _compiler.compile(source)
    except Exception as e:
        raise PromptError(f"Template does not compile: {e}") from e


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Render a Handlebars template. Compiled templates are memoised by source."""
    template = _compile(template_str)
    try:
        return str(template(context))
    except Exception as e:
        raise PromptError(f"Template failed to render: {e}") from e


def build_start_prompt(genre: str, character_description: str) -> str:
    return render_prompt(START_TEMPLATE, {
        "genre": prompt_genre(genre),
        "character": character_description,
    })


def build_advance_prompt(
    previous_story: str,
    choice: str,
    inventory: Sequence[InventoryItem],
    quest: str,
    health: int,
    enemy: Enemy | None,
    genre: str,
    character_description: str,
) -> str:
    return render_prompt(ADVANCE_TEMPLATE, {
        "genre": genre,
        "character": character_description,
        "story": previous_story,
        "choice": choice,
        "inventory": ", ".join(item.name for item in inventory),
        "quest": quest,
        "health": str(health),
        "enemy": f"{enemy.name} ({enemy.health} HP)" if enemy else "None",
    })


def build_image_prompt(image_prompt: str, genre: str, character_description: str) -> str:
    return render_prompt(IMAGE_TEMPLATE, {
        "style": art_style_for(genre),
        "prompt": image_prompt,
        "character": character_description,
    })


# ── Response parsing ────────────────────────────────────


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned


def parse_update(stage: str, text: str) -> GameUpdate:
    """Parse model output into a GameUpdate or raise ProtocolError."""
    try:
        data = json.loads(_strip_fences(text))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return GameUpdate.model_validate(data)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error("Failed to parse %s JSON: %r (%s)", stage, text, e)
        raise ProtocolError("Could not parse response") from e
