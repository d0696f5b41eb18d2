"""Routers module - FastAPI route handlers"""

from . import chat, config, diff, session

__all__ = ["chat", "config", "diff", "session"]
