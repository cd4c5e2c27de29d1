"""Shared pytest fixtures for partview tests."""

import os
from typing import AsyncGenerator

import httpx
import pytest

# Keep the host environment from changing limits or log output under test.
for k in list(os.environ):
    if k.startswith("PARTVIEW_"):
        os.environ.pop(k, None)

from partview.main import app


SAMPLE_DIFF = """diff --git a/test.txt b/test.txt
--- a/test.txt
+++ b/test.txt
@@ -1,2 +1,3 @@
 line 1
-old line
+new line
+added line"""


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all PARTVIEW_ env vars for clean tests."""
    for key in list(os.environ.keys()):
        if key.startswith("PARTVIEW_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def sample_diff() -> str:
    """A single-file diff with two additions and one deletion."""
    return SAMPLE_DIFF


@pytest.fixture
async def api_client(clean_env) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an async HTTP client bound to the ASGI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Force the AnyIO pytest plugin to run tests under asyncio."""
    return "asyncio"
