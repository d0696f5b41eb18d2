"""Models module - Pydantic data models"""

from .chat import ChatMessage, ChatRequest, NewChatResponse, SessionResponse, StreamEvent, ToolInvocation
from .diff import (
    AddLine,
    ContextLine,
    DiffFile,
    DiffHunk,
    DiffLine,
    DiffResponse,
    NoNewlineLine,
    RemoveLine,
)

__all__ = [
    # Chat models
    "ChatMessage",
    "ChatRequest",
    "NewChatResponse",
    "SessionResponse",
    "StreamEvent",
    "ToolInvocation",
    # Diff models
    "AddLine",
    "ContextLine",
    "DiffFile",
    "DiffHunk",
    "DiffLine",
    "DiffResponse",
    "NoNewlineLine",
    "RemoveLine",
]
