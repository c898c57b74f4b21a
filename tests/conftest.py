"""Shared test doubles: a scripted GenAI stub and GameUpdate payload builder."""

import asyncio
import json
from typing import Any

import pytest

from adventure_engine.notifications import NotificationQueue

DEFAULT_IMAGE = "data:image/jpeg;base64,AAAA"


class StubGenAI:
    """Deterministic GenAI stand-in for tests.

    Queue story payloads (str) or exceptions per capability, in call order.
    Image calls fall back to DEFAULT_IMAGE when nothing is queued. Set
    `gate` to an asyncio.Event to hold story calls until the test releases
    them.
    """

    def __init__(self) -> None:
        self.story: list[str | Exception] = []
        self.images: list[str | Exception] = []
        self.replies: list[str | Exception] = []
        self.calls: list[tuple[str, Any]] = []
        self.gate: asyncio.Event | None = None

    @staticmethod
    def _pop(queue: list, kind: str) -> str:
        if not queue:
            raise AssertionError(f"StubGenAI: unexpected {kind} call (no responses queued)")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def generate_json(self, stage: str, prompt: str, schema: dict) -> str:
        self.calls.append(("json", (stage, prompt)))
        if self.gate is not None:
            await self.gate.wait()
        return self._pop(self.story, f"story stage={stage!r}")

    async def generate_image(self, prompt: str) -> str:
        self.calls.append(("image", prompt))
        if not self.images:
            return DEFAULT_IMAGE
        return self._pop(self.images, "image")

    async def chat(self, history, message: str, system_instruction: str) -> str:
        self.calls.append(("chat", (list(history), message, system_instruction)))
        return self._pop(self.replies, "chat")

    def stages(self) -> list[str]:
        return [args[0] for kind, args in self.calls if kind == "json"]


def update_payload(**overrides: Any) -> str:
    """A valid model response as JSON text, with fields overridden."""
    data: dict[str, Any] = {
        "storyText": "You wake on cold stone beneath a broken archway.",
        "choices": ["Stand up", "Call out", "Search the rubble"],
        "newInventoryItems": [],
        "updatedQuest": "Discover who you are.",
        "imagePrompt": "A ruined archway at dawn",
        "playerHealth": 100,
        "enemy": None,
        "newLoreEntries": [],
        "initialCombatEffect": None,
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture
def stub() -> StubGenAI:
    return StubGenAI()


@pytest.fixture
def payload():
    return update_payload


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifications(clock: FakeClock) -> NotificationQueue:
    return NotificationQueue(clock=clock)
