"""Side-channel chat with the assistant model.

A ChatSession keeps two things: the transcript shown to the player and the
conversation context sent to the model. The context is created lazily on
the first send and holds only exchanges that succeeded, so a failed reply
never poisons later turns.
"""

from __future__ import annotations

import logging

from adventure_engine.genai import GenAI
from adventure_engine.models import ChatMessage

logger = logging.getLogger(__name__)

CHAT_SYSTEM_INSTRUCTION = (
    "You are a helpful assistant integrated into a choose-your-own-adventure game. "
    "Answer user questions concisely."
)
CHAT_FALLBACK = "Sorry, I couldn't get a response. Please try again."


class ChatSession:
    def __init__(self, genai: GenAI) -> None:
        self._genai = genai
        self._context: list[ChatMessage] | None = None
        self._generation = 0
        self._pending = 0
        self.messages: list[ChatMessage] = []

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def _ensure_context(self) -> list[ChatMessage]:
        if self._context is None:
            logger.debug("creating chat context")
            self._context = []
        return self._context

    async def send(self, message: str) -> ChatMessage | None:
        """Send one message. Returns the reply, or None for a blank message.

        The user message is visible in the transcript before the model
        answers. A failed call appends CHAT_FALLBACK instead of raising.
        """
        if not message.strip():
            return None

        user_msg = ChatMessage(role="user", content=message)
        self.messages.append(user_msg)
        context = self._ensure_context()
        generation = self._generation

        self._pending += 1
        try:
            text = await self._genai.chat(list(context), message, CHAT_SYSTEM_INSTRUCTION)
        except Exception as e:
            logger.warning("chat reply failed: %r", e)
            reply = ChatMessage(role="model", content=CHAT_FALLBACK)
        else:
            reply = ChatMessage(role="model", content=text)
            context.extend([user_msg, reply])
        finally:
            self._pending -= 1

        if generation == self._generation:
            self.messages.append(reply)
        return reply

    def reset(self) -> None:
        """Forget the transcript and the model context."""
        self._generation += 1
        self._context = None
        self.messages = []
