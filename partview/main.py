"""FastAPI application entrypoint for the partview server."""

from __future__ import annotations

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from partview import __version__
from partview.api import api_router
from partview.log_config import configure_logging
from partview.middleware import (
    http_exception_handler,
    request_logging_middleware,
    validation_exception_handler,
)
from partview.settings import settings

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(title="partview", version=__version__)

app.middleware("http")(request_logging_middleware)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(api_router)


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    logger.info(
        "Starting partview server",
        host=settings.host(),
        port=settings.port(),
        diff_max_chars=settings.diff_max_chars(),
    )
    uvicorn.run(
        "partview.main:app",
        host=settings.host(),
        port=settings.port(),
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    run()
