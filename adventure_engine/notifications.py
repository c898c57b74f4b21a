"""Transient player notifications.

Each notification lives for NOTIFICATION_TTL seconds from the moment it is
pushed. Expired entries are pruned whenever the queue is touched, so no timer
task is needed; a manual dismiss simply removes the entry early.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from adventure_engine.models import Notification

logger = logging.getLogger(__name__)

NOTIFICATION_TTL = 5.0


@dataclass
class _Queued:
    notification: Notification
    expires_at: float


class NotificationQueue:
    """FIFO queue of notifications with time-based expiry.

    Args:
        clock:     Monotonic clock in seconds. Defaults to time.monotonic.
        id_source: Millisecond timestamp used for ids. Defaults to wall time.
        ttl:       Lifetime in seconds. Defaults to 5.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        id_source: Callable[[], int] = lambda: time.time_ns() // 1_000_000,
        ttl: float = NOTIFICATION_TTL,
    ) -> None:
        self._clock = clock
        self._id_source = id_source
        self._ttl = ttl
        self._items: list[_Queued] = []
        self._last_id = 0

    def _next_id(self) -> int:
        nid = max(self._id_source(), self._last_id + 1)
        self._last_id = nid
        return nid

    def _prune(self) -> None:
        now = self._clock()
        self._items = [q for q in self._items if q.expires_at > now]

    def push(self, title: str, message: str) -> Notification:
        self._prune()
        notification = Notification(id=self._next_id(), title=title, message=message)
        self._items.append(_Queued(notification, self._clock() + self._ttl))
        logger.debug("notification id=%d title=%r", notification.id, title)
        return notification

    def dismiss(self, notification_id: int) -> bool:
        """Remove a notification now. Returns False if it was already gone."""
        self._prune()
        before = len(self._items)
        self._items = [q for q in self._items if q.notification.id != notification_id]
        return len(self._items) != before

    def active(self) -> list[Notification]:
        self._prune()
        return [q.notification for q in self._items]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self.active())
