"""Game session lifecycle + turn endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from adventure_engine.controller import AdventureError, GameStateError, StaleTurnError
from adventure_engine.genres import get_genre, is_known_genre
from adventure_engine.models import CharacterSheet
from adventure_engine.sessions import GameSession, SessionRegistry

from .deps import get_session, get_sessions
from .models import ChoiceBody, StartBody

router = APIRouter()


def _view(session: GameSession) -> dict:
    return {
        "id": session.id,
        "game": session.controller.snapshot(),
        "notifications": session.notifications.active(),
        "chat": {"messages": session.chat.messages, "loading": session.chat.loading},
    }


@router.post("/sessions", status_code=201)
async def create_session(sessions: SessionRegistry = Depends(get_sessions)):
    """Create a new game session in the pre-game phase."""
    return _view(sessions.create())


@router.get("/sessions/{session_id}")
async def get_session_view(session: GameSession = Depends(get_session)):
    """Full snapshot: game state, active notifications, chat transcript."""
    return _view(session)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, sessions: SessionRegistry = Depends(get_sessions)):
    """Drop a session and everything in it."""
    if not sessions.delete(session_id):
        raise HTTPException(404, "Session not found")
    return {"ok": True}


@router.post("/sessions/{session_id}/start")
async def start_game(body: StartBody, session: GameSession = Depends(get_session)):
    """Pick a genre and character, then generate the opening scene."""
    if not is_known_genre(body.genre):
        raise HTTPException(422, f"Unknown genre: {body.genre}")
    genre = get_genre(body.genre)
    archetypes = {a.lower(): a for a in genre.archetypes}
    archetype = archetypes.get(body.archetype.lower())
    if archetype is None:
        raise HTTPException(422, f"Archetype must be one of: {', '.join(genre.archetypes)}")
    sheet = CharacterSheet(name=body.name, archetype=archetype, appearance=body.appearance)

    try:
        await session.controller.start_game(genre.name, sheet.description)
    except (GameStateError, StaleTurnError) as e:
        raise HTTPException(409, str(e))
    except AdventureError as e:
        raise HTTPException(502, str(e))
    return _view(session)


@router.post("/sessions/{session_id}/choice")
async def make_choice(body: ChoiceBody, session: GameSession = Depends(get_session)):
    """Play one choice. Rejected with 409 while another turn is pending."""
    try:
        await session.controller.advance_turn(body.choice)
    except (GameStateError, StaleTurnError) as e:
        raise HTTPException(409, str(e))
    except AdventureError as e:
        raise HTTPException(502, str(e))
    return _view(session)


@router.post("/sessions/{session_id}/restart")
async def restart_game(session: GameSession = Depends(get_session)):
    """Discard the game, notifications and chat; back to genre selection."""
    session.restart()
    return _view(session)


@router.get("/sessions/{session_id}/lore")
async def get_lore(session: GameSession = Depends(get_session)):
    """Lore book entries grouped by category."""
    return session.controller.lore
