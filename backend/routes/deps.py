from fastapi import Depends, HTTPException, Request

from adventure_engine.sessions import GameSession, SessionNotFound, SessionRegistry


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_session(session_id: str, sessions: SessionRegistry = Depends(get_sessions)) -> GameSession:
    try:
        return sessions.get(session_id)
    except SessionNotFound:
        raise HTTPException(404, "Session not found")
