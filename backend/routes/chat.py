"""Side chat endpoints. Independent of the game's busy state."""

from fastapi import APIRouter, Depends

from adventure_engine.sessions import GameSession

from .deps import get_session
from .models import ChatBody

router = APIRouter()


@router.get("/sessions/{session_id}/chat")
async def get_chat(session: GameSession = Depends(get_session)):
    """Chat transcript."""
    return {"messages": session.chat.messages, "loading": session.chat.loading}


@router.post("/sessions/{session_id}/chat")
async def send_chat(body: ChatBody, session: GameSession = Depends(get_session)):
    """Send a message; blank messages are ignored. Failures become an apology reply."""
    reply = await session.chat.send(body.message)
    return {"reply": reply, "messages": session.chat.messages}
