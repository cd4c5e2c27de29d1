"""HTTP API package."""

from partview.api.router import api_router

__all__ = ["api_router"]
