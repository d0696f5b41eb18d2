"""Chat API endpoint: the agent loop streamed over SSE"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from sse_starlette.sse import EventSourceResponse

from models.chat import ChatRequest, StreamEvent
from services.config_manager import ConfigManager
from services.conversation import ConversationStore
from services.llm_service import run_agent_stream
from services.prompts import build_system_prompt
from services.tools import NotesToolbox

router = APIRouter()


def last_user_text(request: ChatRequest) -> str:
    for message in reversed(request.messages):
        if message.role == "user":
            return message.content
    return ""


@router.post("")
async def chat_stream(request: ChatRequest):
    """Run the notes agent on the conversation and stream its events (SSE)"""
    config = ConfigManager.get_instance().get_config()

    notes_dir = config.get("notesDir")
    if not notes_dir:
        raise HTTPException(status_code=500, detail="NOTES_DIR environment variable is not set")
    if not config.get("apiKey"):
        raise HTTPException(status_code=500, detail="ANTHROPIC_API_KEY environment variable is not set")
    if not request.messages:
        raise HTTPException(status_code=400, detail="messages array is required")

    toolbox = NotesToolbox(notes_dir)
    system = build_system_prompt(notes_dir)
    store = ConversationStore(notes_dir)

    async def event_generator():
        full_content = ""

        try:
            async for event in run_agent_stream(request.messages, config, toolbox, system):
                if event.type == "text" and event.chunk:
                    full_content += event.chunk
                yield event.to_sse()

            # Keep the text-only transcript current for commits and restarts
            try:
                store.append_turn(last_user_text(request), full_content)
            except OSError as e:
                print(f"[Chat] Failed to update conversation transcript: {e}")

        except Exception as e:
            print(f"[Chat] Agent stream failed: {e}")
            yield StreamEvent(type="error", error=str(e)).to_sse()

    return EventSourceResponse(event_generator())
