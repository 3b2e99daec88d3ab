"""
conftest.py: shared fixtures.

Strategy:
- Core logic (derivation, rollups, clock view, reports) is tested directly
  against in-memory punches and sessions.
- API tests go through the real FastAPI app over httpx's ASGITransport, with
  ``get_repository`` overridden by an in-memory FakeRepository, so no
  database is needed.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from flextime.api.deps import get_repository
from flextime.main import app
from tests.factories import FakeRepository, directory


@pytest.fixture
def metadata():
    """Worker / group / activity names for w1, w2, g1, g2, a1, a2."""
    return directory()


@pytest.fixture
def repository(metadata) -> FakeRepository:
    """Empty in-memory repository; tests fill punches/sessions/clients as needed."""
    return FakeRepository(metadata=metadata)


@pytest_asyncio.fixture
async def client(repository: FakeRepository) -> AsyncClient:
    """HTTPX async client bound to the app, backed by ``repository``."""
    app.dependency_overrides[get_repository] = lambda: repository
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
