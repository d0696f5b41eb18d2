"""Chat mode data models"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits the browser's camelCase field names"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToolInvocation(CamelModel):
    """A tool call made during an assistant turn"""

    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = {}
    state: Literal["call", "result"] = "call"
    result: str | None = None


class ChatMessage(CamelModel):
    """A chat message in the conversation"""

    role: Literal["user", "assistant"]
    content: str = ""
    tool_invocations: list[ToolInvocation] | None = None


class ChatRequest(CamelModel):
    """Request for the agent chat endpoint"""

    messages: list[ChatMessage] = []


class StreamEvent(CamelModel):
    """SSE stream event"""

    type: Literal["text", "tool_call", "tool_result", "done", "error"]
    chunk: str | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None
    args: dict[str, Any] | None = None
    result: str | None = None
    metadata: dict | None = None
    done: bool = False
    error: str | None = None

    def to_sse(self) -> dict[str, str]:
        return {"event": "message", "data": self.model_dump_json(by_alias=True, exclude_none=True)}


class SessionResponse(CamelModel):
    """Whether a previous conversation can be restored"""

    has_previous_conversation: bool
    transcript: str | None = None


class NewChatResponse(CamelModel):
    """Result of archiving and clearing the conversation"""

    ok: bool
    error: str | None = None
