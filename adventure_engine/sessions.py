"""In-memory game sessions.

A session bundles everything one player owns: a turn controller, its
notification queue and a chat session. Sessions live for the life of the
process; nothing is written to disk.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from adventure_engine.chat import ChatSession
from adventure_engine.controller import TurnController
from adventure_engine.genai import GenAI
from adventure_engine.notifications import NotificationQueue

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """Raised when a session id is unknown."""


@dataclass
class GameSession:
    id: str
    controller: TurnController
    notifications: NotificationQueue
    chat: ChatSession

    def restart(self) -> None:
        self.controller.restart()
        self.chat.reset()


class SessionRegistry:
    def __init__(self, genai: GenAI) -> None:
        self._genai = genai
        self._sessions: dict[str, GameSession] = {}

    def create(self) -> GameSession:
        notifications = NotificationQueue()
        session = GameSession(
            id=uuid.uuid4().hex,
            controller=TurnController(self._genai, notifications),
            notifications=notifications,
            chat=ChatSession(self._genai),
        )
        self._sessions[session.id] = session
        logger.info("session created id=%s", session.id)
        return session

    def get(self, session_id: str) -> GameSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None

    def delete(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("session deleted id=%s", session_id)
        return removed

    def __len__(self) -> int:
        return len(self._sessions)
