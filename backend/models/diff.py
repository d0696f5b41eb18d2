"""Diff-related data models"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DiffModel(BaseModel):
    """Base for diff models: immutable, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AddLine(DiffModel):
    """A line present only in the new version"""

    type: Literal["add"] = "add"
    content: str
    old_line_no: None = None
    new_line_no: int


class RemoveLine(DiffModel):
    """A line present only in the old version"""

    type: Literal["remove"] = "remove"
    content: str
    old_line_no: int
    new_line_no: None = None


class ContextLine(DiffModel):
    """A line unchanged between versions"""

    type: Literal["context"] = "context"
    content: str
    old_line_no: int
    new_line_no: int


class NoNewlineLine(DiffModel):
    """The '\\ No newline at end of file' marker"""

    type: Literal["no-newline"] = "no-newline"
    content: str
    old_line_no: None = None
    new_line_no: None = None


DiffLine = Annotated[
    Union[AddLine, RemoveLine, ContextLine, NoNewlineLine],
    Field(discriminator="type"),
]


class DiffHunk(DiffModel):
    """A single change hunk in a diff"""

    header: str  # raw "@@ -a,b +c,d @@" line
    lines: list[DiffLine] = []


class DiffFile(DiffModel):
    """All hunks for one file of a multi-file diff"""

    header: str  # raw "diff --git a/... b/..." line
    file_path: str
    hunks: list[DiffHunk] = []


class DiffResponse(DiffModel):
    """Uncommitted changes of the notes directory"""

    diff: str = ""
    stat: str = ""
    untracked: str = ""
    files: list[DiffFile] = []
