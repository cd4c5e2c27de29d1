"""Helpers for raising errors in the API envelope format."""

from __future__ import annotations

from fastapi import HTTPException

from partview.models import ErrorDetail, ErrorResponse


def raise_http_error(
    code: str, message: str, status_code: int, details: dict | None = None
) -> None:
    """Raise an HTTPException whose detail is an ErrorResponse envelope."""
    raise HTTPException(
        status_code=status_code,
        detail=ErrorResponse(
            error=ErrorDetail(code=code, message=message, details=details)
        ).model_dump(),
    )
