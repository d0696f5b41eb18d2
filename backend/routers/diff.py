"""Diff API endpoint: uncommitted changes of the notes repository"""

from __future__ import annotations

from fastapi import APIRouter

from models.diff import DiffResponse
from services.config_manager import ConfigManager
from services.git_diff import GitDiffService

router = APIRouter()


@router.get("", response_model=DiffResponse)
async def get_diff() -> DiffResponse:
    """Raw `git diff` text, `--stat` summary, untracked files and the parsed file list"""
    notes_dir = ConfigManager.get_instance().get_config().get("notesDir")
    if not notes_dir:
        return DiffResponse()

    return GitDiffService(notes_dir).collect()
