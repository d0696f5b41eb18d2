"""
Diff Parser Service - Turn unified diff text into files, hunks and numbered lines
"""

from __future__ import annotations

import re
from enum import Enum

from models.diff import AddLine, ContextLine, DiffFile, DiffHunk, DiffLine, NoNewlineLine, RemoveLine

FILE_HEADER_PREFIX = "diff --git"
HUNK_HEADER_PREFIX = "@@"
OLD_PATH_PREFIX = "--- "
NEW_PATH_PREFIX = "+++ "
BINARY_PREFIX = "Binary "
NO_NEWLINE_PREFIX = "\\ No newline"

# Lines that end the metadata block between a file header and its hunks
METADATA_TERMINATORS = (
    FILE_HEADER_PREFIX,
    HUNK_HEADER_PREFIX,
    OLD_PATH_PREFIX,
    NEW_PATH_PREFIX,
    BINARY_PREFIX,
)

_FILE_HEADER_RE = re.compile(r"diff --git a/([^\r\n]+?) b/([^\r\n]+)")
_NEW_PATH_RE = re.compile(r"^\+\+\+ b/([^\r\n]+)")
_HUNK_RANGE_RE = re.compile(r"@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@", re.ASCII)


class ParserState(str, Enum):
    """Scanner states, one per region of a file block"""

    SEEK_FILE_HEADER = "seek_file_header"
    SKIP_METADATA = "skip_metadata"
    EXPECT_OLD_PATH = "expect_old_path"
    EXPECT_NEW_PATH = "expect_new_path"
    IN_HUNK_HEADER = "in_hunk_header"
    IN_HUNK_BODY = "in_hunk_body"


class _ParseRun:
    """Mutable state of a single parse() call"""

    def __init__(self):
        self.state = ParserState.SEEK_FILE_HEADER
        self.files: list[DiffFile] = []

        self.file_header: str | None = None
        self.file_path = ""
        self.hunks: list[DiffHunk] = []

        self.hunk_header: str | None = None
        self.hunk_lines: list[DiffLine] = []
        self.old_line = 1
        self.new_line = 1

    def open_file(self, header: str):
        self.close_file()
        match = _FILE_HEADER_RE.search(header)
        self.file_header = header
        self.file_path = match.group(2) if match else ""
        self.hunks = []

    def close_file(self):
        if self.file_header is None:
            return
        self.close_hunk()
        # Files without a resolvable path are dropped
        if self.file_path:
            self.files.append(
                DiffFile(header=self.file_header, file_path=self.file_path, hunks=self.hunks)
            )
        self.file_header = None

    def open_hunk(self, header: str):
        self.close_hunk()
        match = _HUNK_RANGE_RE.search(header)
        self.old_line = int(match.group(1)) if match else 1
        self.new_line = int(match.group(2)) if match else 1
        self.hunk_header = header
        self.hunk_lines = []

    def close_hunk(self):
        if self.hunk_header is None:
            return
        self.hunks.append(DiffHunk(header=self.hunk_header, lines=self.hunk_lines))
        self.hunk_header = None

    def add_body_line(self, line: str):
        if line.startswith("+"):
            entry = AddLine(content=line[1:], new_line_no=self.new_line)
            self.new_line += 1
        elif line.startswith("-"):
            entry = RemoveLine(content=line[1:], old_line_no=self.old_line)
            self.old_line += 1
        elif line.startswith(NO_NEWLINE_PREFIX):
            entry = NoNewlineLine(content=line)
        else:
            # Context: a leading space, or an empty line
            entry = ContextLine(
                content=line[1:] if line.startswith(" ") else line,
                old_line_no=self.old_line,
                new_line_no=self.new_line,
            )
            self.old_line += 1
            self.new_line += 1
        self.hunk_lines.append(entry)


class DiffParser:
    """Parse unified diff text (e.g. `git diff` output) into DiffFile models.

    The scan is a single pass over the input driven by an explicit state
    machine. Each transition handler inspects the current line, sets the
    next state, and returns whether the line was consumed. Unconsumed lines
    are re-examined in the next state.

    The parser never raises: malformed hunk headers fall back to start line
    1 and file blocks whose path cannot be resolved are dropped. An empty
    result for non-empty input means the caller should show the raw text.
    """

    def __init__(self):
        self._transitions = {
            ParserState.SEEK_FILE_HEADER: self._seek_file_header,
            ParserState.SKIP_METADATA: self._skip_metadata,
            ParserState.EXPECT_OLD_PATH: self._expect_old_path,
            ParserState.EXPECT_NEW_PATH: self._expect_new_path,
            ParserState.IN_HUNK_HEADER: self._in_hunk_header,
            ParserState.IN_HUNK_BODY: self._in_hunk_body,
        }

    def parse(self, raw: str) -> list[DiffFile]:
        """Parse raw diff text into an ordered list of files"""
        run = _ParseRun()
        lines = raw.split("\n")
        # A final newline terminates the last line rather than opening an empty one
        if raw.endswith("\n"):
            lines.pop()

        i = 0
        while i < len(lines):
            if self._transitions[run.state](run, lines[i]):
                i += 1

        run.close_file()
        return run.files

    # ========== Transitions ==========

    def _seek_file_header(self, run: _ParseRun, line: str) -> bool:
        if line.startswith(FILE_HEADER_PREFIX):
            run.open_file(line)
            run.state = ParserState.SKIP_METADATA
        return True

    def _skip_metadata(self, run: _ParseRun, line: str) -> bool:
        # mode, index, similarity and rename lines are discarded
        if line.startswith(METADATA_TERMINATORS):
            run.state = ParserState.EXPECT_OLD_PATH
            return False
        return True

    def _expect_old_path(self, run: _ParseRun, line: str) -> bool:
        run.state = ParserState.EXPECT_NEW_PATH
        return line.startswith(OLD_PATH_PREFIX)

    def _expect_new_path(self, run: _ParseRun, line: str) -> bool:
        run.state = ParserState.IN_HUNK_HEADER
        if not line.startswith(NEW_PATH_PREFIX):
            return False
        # The destination path wins over the header, which matters for renames
        match = _NEW_PATH_RE.match(line)
        if match:
            run.file_path = match.group(1)
        return True

    def _in_hunk_header(self, run: _ParseRun, line: str) -> bool:
        if line.startswith(FILE_HEADER_PREFIX):
            run.state = ParserState.SEEK_FILE_HEADER
            return False
        if line.startswith(HUNK_HEADER_PREFIX):
            run.open_hunk(line)
            run.state = ParserState.IN_HUNK_BODY
        return True

    def _in_hunk_body(self, run: _ParseRun, line: str) -> bool:
        if line.startswith(HUNK_HEADER_PREFIX) or line.startswith(FILE_HEADER_PREFIX):
            run.close_hunk()
            run.state = ParserState.IN_HUNK_HEADER
            return False
        run.add_body_line(line)
        return True


_parser = DiffParser()


def parse_diff(raw: str) -> list[DiffFile]:
    """Convenience function to parse diff text with a shared parser."""
    return _parser.parse(raw)
