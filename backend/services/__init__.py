"""Services module - Business logic layer"""

from .config_manager import ConfigManager
from .conversation import ConversationStore
from .diff_parser import DiffParser, parse_diff
from .git_diff import GitDiffService
from .llm_service import AgentService, run_agent_stream
from .tools import NotesToolbox

__all__ = [
    "AgentService",
    "run_agent_stream",
    "ConfigManager",
    "ConversationStore",
    "DiffParser",
    "parse_diff",
    "GitDiffService",
    "NotesToolbox",
]
