"""FastAPI API endpoints under /api.

Endpoint groups: health, genres, sessions (start, choice, restart, lore),
notifications, chat. Each session's child resources are nested under
/api/sessions/{session_id}/.
"""

from fastapi import APIRouter

from .chat import router as chat_router
from .genres import router as genres_router
from .health import router as health_router
from .notifications import router as notifications_router
from .sessions import router as sessions_router

router = APIRouter()
router.include_router(health_router)
router.include_router(genres_router)
router.include_router(sessions_router)
router.include_router(notifications_router)
router.include_router(chat_router)
