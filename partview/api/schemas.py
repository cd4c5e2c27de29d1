"""Pydantic request/response models for API endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from partview.models import ParsedDiff


# --- Request Models ---


class DiffTextRequest(BaseModel):
    """Request body carrying raw diff text."""

    diff: str


class SynthesizeDiffRequest(BaseModel):
    """Request body for rendering two file snapshots as a diff."""

    path: str
    before: str = ""
    after: str = ""


# --- Response Models ---


class ParsedDiffResponse(ParsedDiff):
    """Parsed diff plus its human-readable stats line."""

    stats: str


class DiffPathsResponse(BaseModel):
    """File paths named in diff-like text."""

    files: list[str]


class SynthesizedDiffResponse(BaseModel):
    """Synthesized unified diff with its counts."""

    diff: str
    additions: int
    deletions: int
    stats: str
