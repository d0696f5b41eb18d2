"""
Git Diff Service - Collect uncommitted changes of the notes repository
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from models.diff import DiffResponse
from services.diff_parser import parse_diff

GIT_TIMEOUT_SECONDS = 5


def synthesize_new_file_diff(file_path: str, content: str) -> str:
    """Render an untracked file as a diff block that adds every line.

    Mirrors what `git diff` prints for a newly added file: an empty file has
    no hunk, and a missing final newline gets the usual marker line.
    """
    block = f"diff --git a/{file_path} b/{file_path}\nnew file mode 100644\n"
    if not content:
        return block

    lines = content.split("\n")
    if content.endswith("\n"):
        lines.pop()

    block += f"--- /dev/null\n+++ b/{file_path}\n@@ -0,0 +1,{len(lines)} @@\n"
    block += "".join(f"+{line}\n" for line in lines)
    if not content.endswith("\n"):
        block += "\\ No newline at end of file\n"
    return block


class GitDiffService:
    """Collect `git diff` output, plus untracked files, for one repository"""

    def __init__(self, notes_dir: str | Path):
        self.notes_dir = Path(notes_dir)

    def _git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=str(self.notes_dir),
            timeout=GIT_TIMEOUT_SECONDS,
            check=True,
        )
        return result.stdout

    def collect_untracked(self, untracked: str) -> str:
        """Build synthetic diff blocks for newline-separated untracked paths"""
        blocks = []
        for file_path in untracked.split("\n"):
            if not file_path:
                continue
            try:
                content = (self.notes_dir / file_path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                print(f"[GitDiff] Skipping unreadable untracked file {file_path}: {e}")
                continue
            blocks.append(synthesize_new_file_diff(file_path, content))
        return "".join(blocks)

    def collect(self) -> DiffResponse:
        """Return raw diff, stat, untracked list and the parsed files"""
        try:
            diff = self._git("diff")
            stat = self._git("diff", "--stat")
            untracked = self._git("ls-files", "--others", "--exclude-standard").strip()
        except (
            subprocess.CalledProcessError,
            subprocess.TimeoutExpired,
            OSError,
            UnicodeDecodeError,
        ) as e:
            print(f"[GitDiff] git failed in {self.notes_dir}: {e}")
            return DiffResponse()

        full_diff = diff
        if untracked:
            if full_diff and not full_diff.endswith("\n"):
                full_diff += "\n"
            full_diff += self.collect_untracked(untracked)

        return DiffResponse(
            diff=full_diff,
            stat=stat,
            untracked=untracked,
            files=parse_diff(full_diff),
        )
