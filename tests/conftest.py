"""Shared fixtures: a throwaway SQLite database and an ASGI client for the API."""

from __future__ import annotations

import os
import tempfile
import uuid

# Settings are read at import time; point them at SQLite before teamfeed loads.
_DB_PATH = os.path.join(tempfile.gettempdir(), f"teamfeed-test-{uuid.uuid4().hex}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["TRACING_ENABLED"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from teamfeed.database import AsyncSessionLocal, Base, engine  # noqa: E402
from teamfeed.main import app  # noqa: E402


@pytest_asyncio.fixture
async def tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Pooled connections belong to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def db(tables):
    async with AsyncSessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(tables):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists(_DB_PATH):
        os.remove(_DB_PATH)


@pytest.fixture
def actor_headers():
    return {"X-User-Id": "user-1"}
