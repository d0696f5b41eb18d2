"""Shared fixtures: isolated configuration and throwaway notes repositories."""

import shutil
import subprocess
from pathlib import Path

import pytest

from services.config_manager import ConfigManager

GIT_AVAILABLE = shutil.which("git") is not None

requires_git = pytest.mark.skipif(not GIT_AVAILABLE, reason="git is not installed")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temp dir and clear env-provided settings."""
    monkeypatch.setenv("NUCLEUS_CONFIG_DIR", str(tmp_path / "config"))
    for name in ("NOTES_DIR", "ANTHROPIC_API_KEY", "MODEL", "PORT", "NODE_ENV"):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    ConfigManager.reset_instance()
    yield
    ConfigManager.reset_instance()


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """sse-starlette keeps a module-level exit event bound to the first event loop."""
    try:
        from sse_starlette.sse import AppStatus
    except ImportError:
        return
    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None


@pytest.fixture
def notes_dir(tmp_path) -> Path:
    """A small notes directory with one top-level and one nested note."""
    root = tmp_path / "notes"
    (root / "personal").mkdir(parents=True)
    (root / "README.md").write_text("# Test Notes\n", encoding="utf-8")
    (root / "personal" / "thoughts.md").write_text("# Thoughts\n\nSome ideas here.\n", encoding="utf-8")
    return root


def run_git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git_repo(notes_dir) -> Path:
    """notes_dir initialized as a git repository with everything committed."""
    if not GIT_AVAILABLE:
        pytest.skip("git is not installed")
    run_git(notes_dir, "init", "-q")
    run_git(notes_dir, "add", "-A")
    run_git(notes_dir, "commit", "-q", "-m", "initial notes")
    return notes_dir
