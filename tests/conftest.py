"""
Shared test fixtures.

Every test gets its own SQLite database file under pytest's tmp_path, so
tests never see each other's links.
"""

import os

# Must be set before app.core.rate_limit builds the limiter
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.core.setting import settings
from app.db.session import create_engine_for_url, create_session_maker, create_tables
from app.db.store import SQLLinkStore
from app.main import app

UNREACHABLE_DATABASE_URL = "sqlite+aiosqlite:////nonexistent-dir/links.db"


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest_asyncio.fixture
async def store(tmp_path):
    """A SQLLinkStore over a fresh, empty database."""
    engine = create_engine_for_url(sqlite_url(tmp_path / "links.db"), timeout=5.0)
    await create_tables(engine)
    link_store = SQLLinkStore(engine, create_session_maker(engine), timeout=5.0)
    yield link_store
    await link_store.close()


@pytest_asyncio.fixture
async def unavailable_store():
    """A SQLLinkStore whose database file can never be opened."""
    engine = create_engine_for_url(UNREACHABLE_DATABASE_URL, timeout=1.0)
    link_store = SQLLinkStore(engine, create_session_maker(engine), timeout=1.0)
    yield link_store
    await link_store.close()


@pytest.fixture
def client(tmp_path, monkeypatch):
    """TestClient running the full app (startup included) on a fresh database."""
    monkeypatch.setattr(settings, "DATABASE_URL", sqlite_url(tmp_path / "api.db"))
    with TestClient(app) as test_client:
        yield test_client
