import os
import sys

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Add the app directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.core.database import Base, get_db
from app.main import app

# Point TEST_DATABASE_URL at a PostgreSQL database to exercise row locking;
# by default every test gets a throwaway SQLite file.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture
async def engine(tmp_path):
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)  # Clean slate
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Factory for independent sessions, e.g. one per concurrent request."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def override_get_db(session_factory):
    """Serve every request from its own session on the test database."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


# Import all booking fixtures to make them available
pytest_plugins = ["tests.fixtures.booking_fixtures"]
