"""Centralized environment configuration for partview.

All environment variables are read through this module using the PARTVIEW_
prefix for consistency. The parsing engine itself never reads settings; the
HTTP and CLI layers pass values in explicitly.

Usage:
    from partview.settings import settings

    port = settings.port()
"""

from __future__ import annotations

import os

from partview.diff import MAX_DIFF_SIZE


def _get(name: str, default: str = "") -> str:
    """Get an environment variable value."""
    return os.environ.get(name, "").strip() or default


def _get_int(name: str, default: int = 0) -> int:
    """Get an integer environment variable."""
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Settings:
    """Centralized settings for partview.

    Environment variables use the PARTVIEW_ prefix.
    """

    # -------------------------------------------------------------------------
    # Server Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def host() -> str:
        """Host to bind the HTTP server to.

        Env: PARTVIEW_HOST (default: 127.0.0.1)
        """
        return _get("PARTVIEW_HOST", default="127.0.0.1")

    @staticmethod
    def port() -> int:
        """Port to bind the HTTP server to.

        Non-positive values fall back to the default.

        Env: PARTVIEW_PORT (default: 8790)
        """
        value = _get_int("PARTVIEW_PORT", default=8790)
        return value if value > 0 else 8790

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def log_level() -> str:
        """Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

        Env: PARTVIEW_LOG_LEVEL (default: INFO)
        """
        return _get("PARTVIEW_LOG_LEVEL", default="INFO").upper()

    @staticmethod
    def log_format() -> str:
        """Log format: "console" for dev-friendly, "json" for structured.

        Env: PARTVIEW_LOG_FORMAT (default: console)
        """
        return _get("PARTVIEW_LOG_FORMAT", default="console").lower()

    # -------------------------------------------------------------------------
    # Diff Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def diff_max_chars() -> int:
        """Largest diff (in characters) that is parsed instead of summarized.

        Non-positive values fall back to the default.

        Env: PARTVIEW_DIFF_MAX_CHARS (default: 250000)
        """
        value = _get_int("PARTVIEW_DIFF_MAX_CHARS", default=MAX_DIFF_SIZE)
        return value if value > 0 else MAX_DIFF_SIZE


settings = Settings()
