"""Pytest configuration and shared fixtures.

No live database is needed: most route tests swap the tracking store for an
in-memory fake through ``app.dependency_overrides``, and storage tests run
against an in-memory SQLite database built from the models.
"""

import os
from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Set testing mode BEFORE importing app (NullPool, limiter disabled)
os.environ["TESTING"] = "true"

from src.config import settings

settings.testing = True

from src.database import get_db, get_db_engine
from src.main import app
from src.models import Base
from src.routers.tracking import get_tracking_store
from src.services.error_log import ErrorLog, get_error_log
from tests.helpers import FakeTrackingStore


@pytest.fixture
def fake_store() -> FakeTrackingStore:
    return FakeTrackingStore()


@pytest.fixture
def error_log(tmp_path) -> ErrorLog:
    return ErrorLog(tmp_path / "logs")


@pytest_asyncio.fixture
async def client(fake_store, error_log) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with storage and error log replaced."""
    app.dependency_overrides[get_tracking_store] = lambda: fake_store
    app.dependency_overrides[get_error_log] = lambda: error_log
    app.dependency_overrides[get_db_engine] = lambda: MagicMock()
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with the tracking schema created."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def db_client(db_session, error_log) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client backed by the real store on the test database."""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_error_log] = lambda: error_log
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
