"""Core domain models.

Every data contract exchanged with the narrative model or returned by the
API is a pydantic model. Attributes are snake_case; the JSON form is
camelCase (``storyText``, ``imageUrl``) to match the model protocol.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

LoreType = Literal["Creature", "Character", "Item"]
ChatRole = Literal["user", "model"]
HealthTier = Literal["healthy", "wounded", "critical"]

MAX_PLAYER_HEALTH = 100
CHOICE_COUNT = 3


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Enemy(CamelModel):
    """An opponent in active combat."""

    name: str
    health: int


class InventoryItem(CamelModel):
    name: str
    description: str  # the item's immediate narrative effect


class LoreEntry(CamelModel):
    """An encyclopedia record for a creature, character or item."""

    type: LoreType
    name: str
    description: str

    @property
    def category(self) -> str:
        return f"{self.type}s"


class CombatEffect(CamelModel):
    description: str


class GameUpdate(CamelModel):
    """One parsed response from the narrative model.

    Validation normalises what the model is allowed to get slightly wrong
    (health out of range, an enemy left at zero health) and rejects what it
    is not (anything other than three choices).
    """

    story_text: str
    choices: list[str]
    new_inventory_items: list[InventoryItem] = Field(default_factory=list)
    updated_quest: str
    image_prompt: str
    player_health: int
    enemy: Enemy | None = None
    new_lore_entries: list[LoreEntry] = Field(default_factory=list)
    initial_combat_effect: CombatEffect | None = None

    @field_validator("choices")
    @classmethod
    def _three_choices(cls, value: list[str]) -> list[str]:
        choices = [c.strip() for c in value]
        if len(choices) != CHOICE_COUNT or not all(choices):
            raise ValueError(f"expected exactly {CHOICE_COUNT} non-empty choices, got {value!r}")
        return choices

    @field_validator("player_health")
    @classmethod
    def _clamp_health(cls, value: int) -> int:
        return max(0, min(MAX_PLAYER_HEALTH, value))

    @field_validator("enemy")
    @classmethod
    def _defeated_enemy_is_none(cls, value: Enemy | None) -> Enemy | None:
        if value is not None and value.health <= 0:
            return None
        return value


class AdventureState(CamelModel):
    """The player's current story position. Replaced wholesale each turn."""

    story: str
    image_url: str
    choices: list[str]
    inventory: list[InventoryItem] = Field(default_factory=list)
    quest: str
    health: int = MAX_PLAYER_HEALTH
    enemy: Enemy | None = None


class ChatMessage(CamelModel):
    role: ChatRole
    content: str


class Notification(CamelModel):
    """A transient message shown to the player."""

    id: int
    title: str
    message: str


class CharacterSheet(CamelModel):
    """The player's character as entered on the creation form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    archetype: str = Field(min_length=1)
    appearance: str = Field(min_length=1)

    @property
    def description(self) -> str:
        return f"{self.name}, a skilled {self.archetype}. Appearance: {self.appearance}"


def health_tier(current: int, maximum: int) -> HealthTier:
    """Bucket a health bar: above 60% healthy, above 30% wounded, else critical."""
    percent = health_percent(current, maximum)
    if percent > 60:
        return "healthy"
    if percent > 30:
        return "wounded"
    return "critical"


def health_percent(current: int, maximum: int) -> float:
    if maximum <= 0:
        return 0.0
    return current / maximum * 100
