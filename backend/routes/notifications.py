"""Notification endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from adventure_engine.sessions import GameSession

from .deps import get_session

router = APIRouter()


@router.get("/sessions/{session_id}/notifications")
async def list_notifications(session: GameSession = Depends(get_session)):
    """Notifications that have not yet expired or been dismissed."""
    return session.notifications.active()


@router.delete("/sessions/{session_id}/notifications/{notification_id}")
async def dismiss_notification(notification_id: int, session: GameSession = Depends(get_session)):
    """Dismiss a notification before it expires."""
    if not session.notifications.dismiss(notification_id):
        raise HTTPException(404, "Notification not found")
    return session.notifications.active()
