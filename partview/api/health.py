"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from partview import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Report that the server is up."""
    return {"ok": True, "version": __version__}
