"""Tests for the conversation transcript store."""

from datetime import datetime, timezone

import pytest

from services.conversation import ConversationStore


@pytest.fixture
def store(notes_dir):
    return ConversationStore(notes_dir)


class TestTranscript:
    """Test reading and appending the current transcript."""

    def test_missing_transcript(self, store):
        assert store.get_previous_conversation() is None

    def test_blank_transcript(self, store):
        store.nucleus_dir.mkdir()
        store.transcript_path.write_text("  \n\n", encoding="utf-8")

        assert store.get_previous_conversation() is None

    def test_append_turns(self, store):
        store.append_turn("Add a note about tea", "Created drinks/tea.md.")
        store.append_turn("Thanks", "")

        assert store.get_previous_conversation() == (
            "**User:** Add a note about tea\n\n**Assistant:** Created drinks/tea.md.\n\n**User:** Thanks"
        )


class TestNewChat:
    """Test archiving and clearing."""

    def test_archives_and_clears(self, store):
        store.append_turn("hello", "hi")

        archived = store.start_new_chat(now=datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))

        assert archived == store.archive_dir / "2026-01-02T03-04-05-678Z.md"
        assert archived.read_text(encoding="utf-8") == "**User:** hello\n\n**Assistant:** hi"
        assert store.transcript_path.read_text(encoding="utf-8") == ""
        assert store.get_previous_conversation() is None

    def test_nothing_to_archive(self, store):
        assert store.start_new_chat() is None
        assert store.transcript_path.exists()
        assert not store.archive_dir.exists()
