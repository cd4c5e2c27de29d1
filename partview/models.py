"""Pydantic models for parsed diffs, normalized tool parts and API errors."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class DiffLineKind(str, Enum):
    """Kind of a line inside a hunk."""
    CONTEXT = "context"
    ADD = "add"
    REMOVE = "remove"


class DiffLine(BaseModel):
    """A single line of a hunk, without its leading marker.

    Add lines only carry ``new_line_number``, remove lines only
    ``old_line_number``, context lines carry both.
    """
    kind: DiffLineKind
    content: str
    old_line_number: int | None = None
    new_line_number: int | None = None


class DiffHunk(BaseModel):
    """A contiguous change region under one ``@@ -a,b +c,d @@`` header."""
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: list[DiffLine] = []


class DiffFile(BaseModel):
    """One file section of a unified diff. Empty paths encode /dev/null."""
    old_path: str = ""
    new_path: str = ""
    hunks: list[DiffHunk] = []
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False
    is_new: bool = False
    is_deleted: bool = False
    is_renamed: bool = False

    @property
    def display_path(self) -> str:
        return self.new_path or self.old_path


class ParsedDiff(BaseModel):
    """Structured multi-file diff with totals summed over files."""
    files: list[DiffFile] = []
    total_additions: int = 0
    total_deletions: int = 0


class DiffMetadata(BaseModel):
    """Diff summary located inside a tool part.

    ``has_parsed_diff`` is only true when ``raw`` parsed into at least one
    file; otherwise ``files`` is a flat list from path extraction or from the
    part's own ``files`` field.
    """
    raw: str | None = None
    files: list[str] = []
    additions: int | None = None
    deletions: int | None = None
    has_parsed_diff: bool = False
    is_too_large: bool = False


class ToolStatus(str, Enum):
    """Lifecycle of a tool call: pending -> running -> completed | error."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class ToolError(BaseModel):
    """Error details of a failed tool call. Both fields may be missing."""
    message: str | None = None
    stack: str | None = None


class ToolTimings(BaseModel):
    """Start/end timestamps and duration, in the producer's units (ms)."""
    start: float | None = None
    end: float | None = None
    duration: float | None = None


class ToolPartDetail(BaseModel):
    """Render-ready view of one tool call part."""
    tool: str = "unknown"
    status: ToolStatus = ToolStatus.PENDING
    input: Any = None
    output: Any = None
    metadata: dict[str, Any] | None = None
    error: ToolError | None = None
    timing: ToolTimings | None = None
    path: str | None = None
    provider: str | None = None
    diff: DiffMetadata | None = None


class ErrorDetail(BaseModel):
    """Structured error payload for API responses."""
    code: str
    message: str
    details: dict | None


class ErrorResponse(BaseModel):
    """Envelope for API error responses."""
    error: ErrorDetail
