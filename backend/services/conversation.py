"""
Conversation Store - Transcript of the current chat kept inside the notes repository
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

NUCLEUS_DIR = ".nucleus"
TRANSCRIPT_FILE = "current-conversation.md"
ARCHIVE_DIR = "conversations"


class ConversationStore:
    """Read, append to, and archive `.nucleus/current-conversation.md`

    The transcript holds text only (no tool calls) so it can be attached to
    a commit message and fed back into the system prompt after a restart.
    """

    def __init__(self, notes_dir: str | Path):
        self.nucleus_dir = Path(notes_dir) / NUCLEUS_DIR
        self.transcript_path = self.nucleus_dir / TRANSCRIPT_FILE
        self.archive_dir = self.nucleus_dir / ARCHIVE_DIR

    def get_previous_conversation(self) -> str | None:
        """Return the stripped transcript, or None when missing or blank"""
        if not self.transcript_path.is_file():
            return None
        try:
            content = self.transcript_path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError):
            return None
        return content or None

    def append_turn(self, user_text: str, assistant_text: str):
        """Append one user/assistant exchange to the transcript"""
        self.nucleus_dir.mkdir(parents=True, exist_ok=True)
        entry = f"**User:** {user_text.strip()}\n\n"
        if assistant_text.strip():
            entry += f"**Assistant:** {assistant_text.strip()}\n\n"
        with open(self.transcript_path, "a", encoding="utf-8") as f:
            f.write(entry)

    def start_new_chat(self, now: datetime | None = None) -> Path | None:
        """Archive a non-empty transcript, then clear it. Returns the archive path."""
        archived = None
        previous = self.get_previous_conversation()
        if previous:
            now = now or datetime.now(timezone.utc)
            timestamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
            timestamp = timestamp.replace(":", "-").replace(".", "-")
            self.archive_dir.mkdir(parents=True, exist_ok=True)
            archived = self.archive_dir / f"{timestamp}.md"
            archived.write_text(previous, encoding="utf-8")
            print(f"[Conversation] Archived transcript to {archived}")

        self.nucleus_dir.mkdir(parents=True, exist_ok=True)
        self.transcript_path.write_text("", encoding="utf-8")
        return archived
