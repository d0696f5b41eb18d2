"""Session API endpoints: restore or reset the conversation transcript"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from models.chat import NewChatResponse, SessionResponse
from services.config_manager import ConfigManager
from services.conversation import ConversationStore

router = APIRouter()


@router.get("/session", response_model=SessionResponse)
async def get_session() -> SessionResponse:
    """Check whether there is a previous conversation to restore"""
    notes_dir = ConfigManager.get_instance().get_config().get("notesDir")
    if not notes_dir:
        return SessionResponse(has_previous_conversation=False)

    transcript = ConversationStore(notes_dir).get_previous_conversation()
    return SessionResponse(has_previous_conversation=transcript is not None, transcript=transcript)


@router.post("/new-chat", response_model=NewChatResponse)
async def new_chat():
    """Archive the current conversation and start an empty one"""
    notes_dir = ConfigManager.get_instance().get_config().get("notesDir")
    if not notes_dir:
        return NewChatResponse(ok=True)

    try:
        ConversationStore(notes_dir).start_new_chat()
    except OSError as e:
        print(f"[Session] Failed to clear conversation: {e}")
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "Failed to clear conversation"},
        )
    return NewChatResponse(ok=True)
