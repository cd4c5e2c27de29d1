"""Composition of API routers."""

from __future__ import annotations

from fastapi import APIRouter

from partview.api.diffs import router as diffs_router
from partview.api.health import router as health_router
from partview.api.parts import router as parts_router

api_router = APIRouter(prefix="/api")
api_router.include_router(health_router)
api_router.include_router(parts_router)
api_router.include_router(diffs_router)
