"""Turn controller: runs one game turn end-to-end.

Turn flow (start_game and advance_turn alike):
  1. Guard: the FSM must be idle in the right phase, else GameStateError.
  2. Build the prompt and call the narrative model to get a JSON update.
  3. Parse/validate the update (ProtocolError on malformed output).
  4. Call the image model with the update's image prompt.
  5. Merge into AdventureState, lore book and max-health tracker; push
     notifications.

Nothing is committed until step 5, so any failure in steps 2 to 4 leaves the
previous AdventureState exactly as it was.

restart() bumps an epoch counter. A turn that finds the epoch changed when
its remote call returns discards the result and raises StaleTurnError.
"""

from __future__ import annotations

import logging

from pydantic import Field
from statemachine.exceptions import TransitionNotAllowed

from adventure_engine.fsm import TurnFSM, TurnPhase
from adventure_engine.genai import GenAI, GenAIError
from adventure_engine.lore import LoreBook, merge_lore, new_lore_names
from adventure_engine.models import (
    MAX_PLAYER_HEALTH,
    AdventureState,
    CamelModel,
    GameUpdate,
    HealthTier,
    LoreEntry,
    health_percent,
    health_tier,
)
from adventure_engine.notifications import NotificationQueue
from adventure_engine.protocol import (
    GAME_UPDATE_SCHEMA,
    PromptError,
    ProtocolError,
    build_advance_prompt,
    build_image_prompt,
    build_start_prompt,
    parse_update,
)

logger = logging.getLogger(__name__)

START_FAILED = "Failed to start adventure."
CONTINUE_FAILED = "Failed to continue adventure."
UNKNOWN_FAILURE = "An unknown error occurred."


class AdventureError(RuntimeError):
    """A turn could not be generated. The message is safe to show the player."""


class GameStateError(RuntimeError):
    """The requested operation is not allowed in the current phase."""


class StaleTurnError(RuntimeError):
    """A turn's result arrived after a restart and was discarded."""


class GameSnapshot(CamelModel):
    """Everything a client needs to render the play screen."""

    phase: TurnPhase
    busy: bool
    error: str | None = None
    genre: str | None = None
    character_description: str | None = None
    adventure: AdventureState | None = None
    health_tier: HealthTier | None = None
    enemy_max_health: int | None = None
    enemy_health_percent: float | None = None
    enemy_health_tier: HealthTier | None = None
    lore: dict[str, list[LoreEntry]] = Field(default_factory=dict)


def _failure_message(error: Exception, parse_failure: str) -> str:
    if isinstance(error, (ProtocolError, PromptError)):
        return parse_failure
    if isinstance(error, GenAIError):
        return str(error)
    return UNKNOWN_FAILURE


_EXPECTED_FAILURES = (GenAIError, ProtocolError, PromptError)


class TurnController:
    """Owns one player's AdventureState and drives turns against a GenAI client."""

    def __init__(self, genai: GenAI, notifications: NotificationQueue) -> None:
        self._genai = genai
        self._fsm = TurnFSM()
        self.notifications = notifications
        self.epoch = 0
        self.state: AdventureState | None = None
        self.lore: LoreBook = {}
        self.enemy_max_health: int | None = None
        self.error: str | None = None
        self.genre: str | None = None
        self.character_description: str | None = None

    # ------------------------------------------------------------------
    # Phase helpers
    # ------------------------------------------------------------------

    @property
    def phase(self) -> TurnPhase:
        return self._fsm.phase

    @property
    def busy(self) -> bool:
        return self._fsm.busy

    def _fire(self, event: str) -> None:
        try:
            self._fsm.send(event)
        except TransitionNotAllowed as e:
            raise GameStateError(
                f"Cannot {event.replace('_', ' ')} while {self.phase.value}"
            ) from e
        logger.info("turn phase -> %s (epoch=%d)", self.phase.value, self.epoch)

    def _check_epoch(self, epoch: int) -> None:
        if epoch != self.epoch:
            logger.info("discarding stale response (epoch %d, now %d)", epoch, self.epoch)
            raise StaleTurnError("The game was restarted; response discarded")

    async def _generate(self, epoch: int, stage: str, prompt: str) -> tuple[GameUpdate, str]:
        """Story call, then the dependent image call. Commits nothing."""
        text = await self._genai.generate_json(stage, prompt, GAME_UPDATE_SCHEMA)
        self._check_epoch(epoch)
        update = parse_update(stage, text)
        image_prompt = build_image_prompt(update.image_prompt, self.genre or "", self.character_description or "")
        image_url = await self._genai.generate_image(image_prompt)
        self._check_epoch(epoch)
        return update, image_url

    def _fail(self, epoch: int, error: Exception, parse_failure: str, event: str) -> AdventureError:
        self._check_epoch(epoch)
        self.error = _failure_message(error, parse_failure)
        if isinstance(error, _EXPECTED_FAILURES):
            logger.warning("turn failed: %s (%r)", self.error, error)
        else:
            logger.exception("turn failed unexpectedly: %r", error)
        self._fire(event)
        return AdventureError(self.error)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start_game(self, genre: str, character_description: str) -> AdventureState:
        """Generate the opening scene. Allowed only before a game exists."""
        self._fire("begin_start")
        epoch = self.epoch
        self.genre = genre
        self.character_description = character_description
        self.error = None

        try:
            prompt = build_start_prompt(genre, character_description)
            update, image_url = await self._generate(epoch, "start_adventure", prompt)
        except StaleTurnError:
            raise
        except Exception as e:
            raise self._fail(epoch, e, START_FAILED, "start_failed") from e

        self.state = AdventureState(
            story=update.story_text,
            image_url=image_url,
            choices=update.choices,
            inventory=list(update.new_inventory_items),
            quest=update.updated_quest,
            health=update.player_health,
            enemy=update.enemy,
        )
        self.enemy_max_health = update.enemy.health if update.enemy else None
        self.lore = merge_lore({}, update.new_lore_entries)
        for item in update.new_inventory_items:
            self.notifications.push(f"Item Acquired: {item.name}", item.description)

        self._fire("start_succeeded")
        return self.state

    async def advance_turn(self, choice: str) -> AdventureState:
        """Play one choice against the current state."""
        if not choice.strip():
            raise ValueError("choice must not be empty")
        if self.state is None:
            raise GameStateError(f"No adventure in progress (phase {self.phase.value})")
        self._fire("begin_turn")
        epoch = self.epoch
        previous = self.state
        self.error = None

        try:
            prompt = build_advance_prompt(
                previous.story,
                choice,
                previous.inventory,
                previous.quest,
                previous.health,
                previous.enemy,
                self.genre or "",
                self.character_description or "",
            )
            update, image_url = await self._generate(epoch, "advance_adventure", prompt)
        except StaleTurnError:
            raise
        except Exception as e:
            raise self._fail(epoch, e, CONTINUE_FAILED, "turn_finished") from e

        self._merge(previous, update, image_url)
        self._fire("turn_finished")
        return self.state

    def _merge(self, previous: AdventureState, update: GameUpdate, image_url: str) -> None:
        # Transitions are judged against the previous enemy, before it is replaced.
        old, new = previous.enemy, update.enemy
        appeared = old is None and new is not None
        replaced = old is not None and new is not None and old.name.lower() != new.name.lower()
        defeated = old is not None and new is None

        if appeared or replaced:
            self.enemy_max_health = new.health
        elif defeated:
            self.enemy_max_health = None

        if appeared and update.initial_combat_effect:
            self.notifications.push("Combat Effect!", update.initial_combat_effect.description)

        self.state = AdventureState(
            story=update.story_text,
            image_url=image_url,
            choices=update.choices,
            inventory=[*previous.inventory, *update.new_inventory_items],
            quest=update.updated_quest,
            health=update.player_health,
            enemy=new,
        )

        added = new_lore_names(self.lore, update.new_lore_entries)
        self.lore = merge_lore(self.lore, update.new_lore_entries)
        if added:
            self.notifications.push(
                "New Lore Unlocked!",
                f"Entries for {', '.join(added)} added to your lore book.",
            )

        for item in update.new_inventory_items:
            self.notifications.push(f"Item Acquired: {item.name}", item.description)

    def restart(self) -> None:
        """Discard everything and return to pre-game. In-flight turns go stale."""
        self.epoch += 1
        self._fire("restart")
        self.state = None
        self.lore = {}
        self.enemy_max_health = None
        self.error = None
        self.genre = None
        self.character_description = None
        self.notifications.clear()

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        snap = GameSnapshot(
            phase=self.phase,
            busy=self.busy,
            error=self.error,
            genre=self.genre,
            character_description=self.character_description,
            adventure=self.state,
            enemy_max_health=self.enemy_max_health,
            lore=self.lore,
        )
        if self.state is not None:
            snap.health_tier = health_tier(self.state.health, MAX_PLAYER_HEALTH)
            if self.state.enemy is not None and self.enemy_max_health is not None:
                percent = min(100.0, health_percent(self.state.enemy.health, self.enemy_max_health))
                snap.enemy_health_percent = percent
                snap.enemy_health_tier = health_tier(self.state.enemy.health, self.enemy_max_health)
        return snap
