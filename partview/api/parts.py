"""Endpoints that normalize tool-call parts."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body

from partview.models import DiffMetadata, ToolPartDetail
from partview.settings import settings
from partview.tools import extract_diff_metadata, normalize_tool_part

router = APIRouter(prefix="/parts", tags=["parts"])
logger = structlog.get_logger(__name__)


@router.post("/normalize", response_model=ToolPartDetail)
async def normalize_part(part: dict[str, Any] = Body(...)) -> ToolPartDetail:
    """Normalize one tool part into a ToolPartDetail."""
    detail = normalize_tool_part(part, max_diff_size=settings.diff_max_chars())
    logger.info(
        "Normalized tool part",
        tool=detail.tool,
        status=detail.status.value,
        has_diff=detail.diff is not None,
    )
    return detail


@router.post("/diff", response_model=DiffMetadata | None)
async def part_diff(part: dict[str, Any] = Body(...)) -> DiffMetadata | None:
    """Return the diff metadata of one tool part, or null when it has none."""
    return extract_diff_metadata(part, max_diff_size=settings.diff_max_chars())
