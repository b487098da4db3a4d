"""
Shared pytest fixtures for testing the share ledger.

Uses an in-memory SQLite database for fast, isolated tests, and a
file-backed SQLite database (one connection per session) for tests that
run ledger operations concurrently.
"""

import os

os.environ.setdefault("OTLP_ENABLED", "false")

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from shareledger.database import Base, engine_options, get_session
from shareledger.main import app
from shareledger.models import Holding, Profile, Property, Transaction
from shareledger.services import ledger


# Use in-memory SQLite for tests (fast, isolated)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Ids used by the sample data fixtures
ALICE_ID = "user-alice"
ALICE_WALLET = "0xa11ce00000000000000000000000000000000001"
BOB_ID = "user-bob"
BOB_WALLET = "0xb0b0000000000000000000000000000000000002"
TOWER_ID = "prop-tower"


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio backend for pytest-asyncio."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine.

    Creates tables at the start, drops them at the end.
    Each test gets a fresh database.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_sessionmaker(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_session(test_sessionmaker):
    """Provide a database session for a test.

    Rolls back the session after each test for isolation.
    """
    async with test_sessionmaker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_sessionmaker):
    """Provide a FastAPI test client with test database.

    Overrides the get_session dependency to use our test database.
    """

    async def override_get_session():
        async with test_sessionmaker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def file_sessionmaker(tmp_path):
    """Session factory on a file database, one connection per session.

    Concurrent sessions get separate SQLite connections, so they contend
    for the database write lock like separate server requests would.
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"
    engine = create_async_engine(url, poolclass=NullPool, **engine_options(url))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


# --- Helper fixtures for creating test data ---


async def add_sample_data(session: AsyncSession, available_shares: int = 100) -> None:
    """Insert two profiles and one 100-share property at 50.00 per share."""
    session.add_all([
        Profile(id=ALICE_ID, wallet_address=ALICE_WALLET),
        Profile(id=BOB_ID, wallet_address=BOB_WALLET),
        Property(
            id=TOWER_ID,
            name="Riverside Tower",
            location="Porto, Portugal",
            rental_yield=Decimal("5.50"),
            total_shares=100,
            available_shares=available_shares,
            price_per_share=Decimal("50.00"),
        ),
    ])
    await session.commit()


@pytest_asyncio.fixture
async def sample_data(test_session):
    """Profiles alice and bob plus the Riverside Tower property."""
    await add_sample_data(test_session)


@pytest.fixture
def ledger_snapshot():
    """Return an async function capturing the ledger state of a property.

    The snapshot covers available shares, every holding and the number of
    transactions, so equal snapshots mean nothing changed.
    """

    async def snapshot(session: AsyncSession, property_id: str = TOWER_ID):
        state = await ledger.get_property_ledger_state(session, property_id)
        holdings = await session.execute(
            select(Holding.user_id, Holding.shares)
            .where(Holding.property_id == property_id)
            .order_by(Holding.user_id)
        )
        tx_count = await session.execute(
            select(func.count()).select_from(Transaction).where(
                Transaction.property_id == property_id
            )
        )
        return (
            state.available_shares,
            tuple(tuple(row) for row in holdings.all()),
            tx_count.scalar_one(),
        )

    return snapshot
