"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets its own transaction that rolls back after the test.
- The test database `<name>_test` must exist before running tests; tests
  that need it are skipped when it cannot be reached.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

import app.models  # noqa: F401
from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.models.property import Property

# ---------------------------------------------------------------------------
# Test database engine. Uses the same PG instance but `<db>_test` DB.
# Replace the last path segment of the configured URL with the test DB name.
# ---------------------------------------------------------------------------

_base_url = settings.async_database_url
_db_name = _base_url.rsplit("/", 1)[1].split("?", 1)[0]
_test_db_url = _base_url.rsplit("/", 1)[0] + f"/{_db_name}_test"


def _make_engine() -> AsyncEngine:
    return create_async_engine(
        _test_db_url,
        echo=False,
        pool_pre_ping=True,
    )


# ---------------------------------------------------------------------------
# Session-scoped: create / drop all tables once per test session
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a session-scoped engine tied to the session event loop."""
    engine = _make_engine()
    try:
        async with engine.connect():
            pass
    except Exception as exc:  # connection refused, missing database, bad credentials
        await engine.dispose()
        pytest.skip(f"PostgreSQL test database unavailable ({_test_db_url}): {exc}")
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def setup_test_db(test_engine: AsyncEngine) -> AsyncGenerator[None, None]:
    """Create all tables at the start of the session and drop them at the end."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ---------------------------------------------------------------------------
# Per-test: transactional rollback for isolation
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(loop_scope="session")
async def db_session(test_engine: AsyncEngine, setup_test_db) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back.

    Session-level rollbacks (e.g. after an expected IntegrityError) only
    unwind a savepoint, so the outer transaction stays usable.
    """
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(
            bind=connection,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


@pytest_asyncio.fixture(loop_scope="session")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: properties
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(loop_scope="session")
async def property_row(db_session: AsyncSession) -> Property:
    """Create and return a property directly in the DB."""
    prop = Property(name="Test Apartment", address="1 Test Street", property_type="Apartment", max_guests=4)
    db_session.add(prop)
    await db_session.flush()
    await db_session.refresh(prop)
    return prop


@pytest_asyncio.fixture(loop_scope="session")
async def test_property(client: AsyncClient) -> dict:
    """Create and return a test property via the API."""
    response = await client.post(
        "/api/v1/properties",
        json={
            "name": "Test Villa",
            "address": "42 Harbour Road",
            "property_type": "Villa",
            "max_guests": 6,
            "description": "A test villa for automated tests.",
        },
    )
    assert response.status_code == 201, f"Failed to create test property: {response.text}"
    return response.json()
