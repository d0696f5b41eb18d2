"""
Notes Tools - Shell and file-editing tools the agent runs inside the notes directory
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

MAX_OUTPUT_CHARS = 10_000
BASH_TIMEOUT_SECONDS = 30

BASH_TOOL_NAME = "bash"
TEXT_EDITOR_TOOL_NAME = "str_replace_editor"

BASH_TOOL = {
    "name": BASH_TOOL_NAME,
    "description": (
        "Execute a shell command. The working directory is always the notes directory. "
        "Use for git operations, listing files, searching content, etc."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "command": {"type": "string", "description": "The shell command to execute"},
        },
        "required": ["command"],
    },
}

# Anthropic's built-in text editor schema; only the executor lives here
TEXT_EDITOR_TOOL = {"type": "text_editor_20250124", "name": TEXT_EDITOR_TOOL_NAME}


class PathTraversalError(ValueError):
    """Raised when a tool path resolves outside the notes directory"""


def truncate(text: str) -> str:
    """Cap tool output so a single call cannot flood the context"""
    if len(text) <= MAX_OUTPUT_CHARS:
        return text
    omitted = len(text) - MAX_OUTPUT_CHARS
    return text[:MAX_OUTPUT_CHARS] + f"\n\n... [truncated, {omitted} chars omitted]"


def safe_path(notes_dir: str | Path, file_path: str) -> Path:
    """Resolve file_path relative to notes_dir, refusing anything outside it"""
    root = Path(notes_dir).resolve()
    resolved = (root / file_path).resolve()
    if not resolved.is_relative_to(root):
        raise PathTraversalError(f"Path traversal blocked: {file_path}")
    return resolved


def run_bash(notes_dir: str | Path, command: str) -> str:
    """Run a shell command in the notes directory and return its output"""
    try:
        result = subprocess.run(
            command,
            shell=True,
            cwd=str(notes_dir),
            capture_output=True,
            text=True,
            timeout=BASH_TIMEOUT_SECONDS,
        )
    except subprocess.TimeoutExpired:
        return f"Command timed out after {BASH_TIMEOUT_SECONDS}s"
    except OSError as e:
        return truncate(str(e) or "Command failed")

    if result.returncode == 0:
        return truncate(result.stdout or "(no output)")

    output = "\n".join(part for part in (result.stdout, result.stderr) if part)
    return truncate(output or f"Command failed with exit code {result.returncode}")


def add_line_numbers(content: str, start_line: int = 1) -> str:
    """Prefix each line with its right-aligned number and a tab"""
    lines = content.split("\n")
    width = len(str(start_line + len(lines) - 1))
    return "\n".join(f"{start_line + i:>{width}}\t{line}" for i, line in enumerate(lines))


def list_directory(dir_path: Path, prefix: str = "") -> str:
    """Tree-style listing, directories first, hiding git internals"""
    entries = sorted(
        (e for e in dir_path.iterdir() if not e.name.startswith(".git") and e.name != "node_modules"),
        key=lambda e: (not e.is_dir(), e.name.lower()),
    )

    lines = []
    for index, entry in enumerate(entries):
        is_last = index == len(entries) - 1
        connector = "└── " if is_last else "├── "
        suffix = "/" if entry.is_dir() else ""
        lines.append(f"{prefix}{connector}{entry.name}{suffix}")
        if entry.is_dir():
            subtree = list_directory(entry, prefix + ("    " if is_last else "│   "))
            if subtree:
                lines.append(subtree)
    return "\n".join(lines)


class TextEditor:
    """Executor for the text editor tool commands: view, create, str_replace, insert"""

    def __init__(self, notes_dir: str | Path):
        self.notes_dir = Path(notes_dir)

    def execute(self, args: dict[str, Any]) -> str:
        command = args.get("command")
        handler = {
            "view": self._view,
            "create": self._create,
            "str_replace": self._str_replace,
            "insert": self._insert,
        }.get(command)
        if handler is None:
            return f"Error: Unknown command: {command}"
        if not args.get("path"):
            return f"Error: 'path' is required for {command}"
        return handler(args)

    def _view(self, args: dict[str, Any]) -> str:
        file_path = safe_path(self.notes_dir, args["path"])
        if not file_path.exists():
            return f"Error: Path does not exist: {args['path']}"

        if file_path.is_dir():
            return f"Directory listing of {args['path']}:\n{list_directory(file_path)}"

        content = file_path.read_text(encoding="utf-8")
        view_range = args.get("view_range")
        if view_range:
            start, end = view_range
            if start < 1:
                return f"Error: view_range start must be at least 1, got {start}"
            lines = content.split("\n")
            selected = lines[start - 1 :] if end == -1 else lines[start - 1 : end]
            return add_line_numbers("\n".join(selected), start)
        return add_line_numbers(content)

    def _create(self, args: dict[str, Any]) -> str:
        file_path = safe_path(self.notes_dir, args["path"])
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(args.get("file_text") or "", encoding="utf-8")
        return f"File created: {args['path']}"

    def _str_replace(self, args: dict[str, Any]) -> str:
        file_path = safe_path(self.notes_dir, args["path"])
        if not file_path.is_file():
            return f"Error: File does not exist: {args['path']}"

        content = file_path.read_text(encoding="utf-8")
        old_str = args.get("old_str") or ""
        new_str = args.get("new_str") or ""

        occurrences = content.count(old_str) if old_str else 0
        if occurrences == 0:
            return (
                f"Error: old_str not found in {args['path']}. "
                "Make sure the string matches exactly, including whitespace."
            )
        if occurrences > 1:
            return (
                f"Error: old_str found {occurrences} times in {args['path']}. "
                "It must appear exactly once for a safe replacement. "
                "Include more surrounding context to make it unique."
            )

        file_path.write_text(content.replace(old_str, new_str, 1), encoding="utf-8")
        return f"Successfully replaced text in {args['path']}"

    def _insert(self, args: dict[str, Any]) -> str:
        file_path = safe_path(self.notes_dir, args["path"])
        if not file_path.is_file():
            return f"Error: File does not exist: {args['path']}"

        lines = file_path.read_text(encoding="utf-8").split("\n")
        insert_line = args.get("insert_line")
        if not isinstance(insert_line, int) or insert_line < 0 or insert_line > len(lines):
            return f"Error: insert_line {insert_line} is out of range (0-{len(lines)})"

        lines.insert(insert_line, args.get("new_str") or "")
        file_path.write_text("\n".join(lines), encoding="utf-8")
        return f"Successfully inserted text after line {insert_line} in {args['path']}"


class NotesToolbox:
    """Tool definitions for the model plus dispatch to their executors"""

    def __init__(self, notes_dir: str | Path):
        self.notes_dir = Path(notes_dir)
        self.text_editor = TextEditor(self.notes_dir)

    @property
    def definitions(self) -> list[dict[str, Any]]:
        return [BASH_TOOL, TEXT_EDITOR_TOOL]

    def execute(self, name: str, args: dict[str, Any]) -> str:
        """Run a tool call; failures come back as an 'Error: ...' string"""
        try:
            if name == BASH_TOOL_NAME:
                command = args.get("command")
                if not command:
                    return "Error: 'command' is required"
                return run_bash(self.notes_dir, command)
            if name == TEXT_EDITOR_TOOL_NAME:
                return self.text_editor.execute(args)
            return f"Error: Unknown tool: {name}"
        except PathTraversalError as e:
            return f"Error: {e}"
        except (OSError, UnicodeDecodeError, ValueError, TypeError) as e:
            print(f"[Tools] {name} failed: {e}")
            return f"Error: {e}"
