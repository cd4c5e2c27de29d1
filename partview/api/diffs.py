"""Endpoints for parsing and synthesizing unified diffs."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body

from partview.api.errors import raise_http_error
from partview.api.schemas import (
    DiffPathsResponse,
    DiffTextRequest,
    ParsedDiffResponse,
    SynthesizeDiffRequest,
    SynthesizedDiffResponse,
)
from partview.diff import (
    extract_diff_paths,
    format_diff_stats,
    generate_unified_diff,
    is_diff_too_large,
    parse_diff,
    session_diff_to_unified,
)
from partview.settings import settings

router = APIRouter(prefix="/diffs", tags=["diffs"])
logger = structlog.get_logger(__name__)


def _ensure_parseable(text: str) -> None:
    max_size = settings.diff_max_chars()
    if is_diff_too_large(text, max_size):
        logger.warning("Refusing oversized diff", size=len(text), limit=max_size)
        raise_http_error(
            "DIFF_TOO_LARGE",
            f"Diff exceeds {max_size} characters",
            413,
            details={"size": len(text), "limit": max_size},
        )


def _synthesized(text: str) -> SynthesizedDiffResponse:
    parsed = parse_diff(text)
    return SynthesizedDiffResponse(
        diff=text,
        additions=parsed.total_additions,
        deletions=parsed.total_deletions,
        stats=format_diff_stats(parsed.total_additions, parsed.total_deletions),
    )


@router.post("/parse", response_model=ParsedDiffResponse)
async def parse(payload: DiffTextRequest) -> ParsedDiffResponse:
    """Parse diff text into files, hunks and lines."""
    _ensure_parseable(payload.diff)
    parsed = parse_diff(payload.diff)
    return ParsedDiffResponse(
        **parsed.model_dump(),
        stats=format_diff_stats(parsed.total_additions, parsed.total_deletions),
    )


@router.post("/paths", response_model=DiffPathsResponse)
async def paths(payload: DiffTextRequest) -> DiffPathsResponse:
    """List the file paths named in diff or patch text."""
    return DiffPathsResponse(files=extract_diff_paths(payload.diff))


@router.post("/synthesize", response_model=SynthesizedDiffResponse)
async def synthesize(payload: SynthesizeDiffRequest) -> SynthesizedDiffResponse:
    """Render before/after snapshots of a file as a unified diff."""
    return _synthesized(generate_unified_diff(payload.path, payload.before, payload.after))


@router.post("/session", response_model=SynthesizedDiffResponse | None)
async def session_entry(
    entry: dict[str, Any] = Body(...),
) -> SynthesizedDiffResponse | None:
    """Turn a session file-diff record into unified text, or null if it has none."""
    text = session_diff_to_unified(entry)
    if text is None:
        return None
    _ensure_parseable(text)
    return _synthesized(text)
