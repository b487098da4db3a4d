"""
Database configuration for the share ledger.

Uses async SQLAlchemy with SQLite (local) or PostgreSQL (production).
The ledger relies on the store for atomic guarded updates, so any dialect
with row-level write locking (or SQLite's database-level write lock) works.
"""

import os
from datetime import UTC, datetime

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

# Database URL from environment, defaults to SQLite for local development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./share_ledger.db")

# Seconds a SQLite writer waits for the database lock before "database is locked"
SQLITE_BUSY_TIMEOUT = float(os.getenv("SQLITE_BUSY_TIMEOUT", "5"))


def engine_options(url: str) -> dict:
    """Keyword arguments for create_async_engine for the given URL."""
    options = {"echo": os.getenv("SQLALCHEMY_ECHO") == "1"}
    if make_url(url).get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT}
    return options


# Create async engine
# echo=False by default, set SQLALCHEMY_ECHO=1 to enable SQL logging
engine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL))

# Session factory - one session per request or CLI command
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def utcnow() -> datetime:
    """Naive UTC timestamp with microsecond resolution.

    Used as the Python-side column default so rows written in quick
    succession still order deterministically by created_at.
    """
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def init_db() -> None:
    """Create the profile, property, holding and transaction tables.

    Called on application startup and by manage.py.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncSession:
    """FastAPI dependency yielding one session per request.

    Ledger operations commit or roll back on this session themselves;
    it is closed when the request finishes.
    """
    async with AsyncSessionLocal() as session:
        yield session
