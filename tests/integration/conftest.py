"""Integration-test fixtures.

Requires a migrated PostgreSQL (alembic upgrade head) and a Redis, and
RUN_INTEGRATION=1; otherwise nothing in this directory is collected.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import os

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app

if not os.environ.get("RUN_INTEGRATION"):
    collect_ignore_glob = ["test_*.py"]


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
