"""Shared test fixtures for the async database, record store, and record factories."""

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import date
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from election_steward.core.config import Settings
from election_steward.models.base import Base
from election_steward.models.candidate import Candidate
from election_steward.models.election import Election
from election_steward.services.record_store import SqlRecordStore


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        verified_polling_sources="FiveThirtyEight,Emerson College,Quinnipiac University",
        official_result_markers="secretary of state,board of elections,.gov",
        coverage_window_days=60,
        audit_batch_size=50,
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine shared by every session in a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory over the test engine."""
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """A per-test async session for seeding rows."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SqlRecordStore:
    """SQL record store over the test database."""
    return SqlRecordStore(session_factory)


def _make_election(**overrides: Any) -> Election:
    """Build an Election row with valid defaults."""
    defaults: dict[str, Any] = {
        "id": uuid.uuid4(),
        "title": "Georgia General Election",
        "description": None,
        "jurisdiction": "GA",
        "election_date": date(2026, 11, 3),
        "level": "federal",
        "election_type": "general",
        "offices": ["U.S. Senate"],
        "external_ids": {},
        "provenance_type": None,
        "provenance_url": None,
        "is_active": True,
    }
    defaults.update(overrides)
    return Election(**defaults)


def _make_candidate(**overrides: Any) -> Candidate:
    """Build a Candidate row with no polling or result data."""
    defaults: dict[str, Any] = {
        "id": uuid.uuid4(),
        "name": "Jane Doe",
        "party": "Independent",
        "election_id": None,
        "is_incumbent": False,
        "external_ids": {},
        "result_certified": False,
    }
    defaults.update(overrides)
    return Candidate(**defaults)


@pytest.fixture
def seed(async_session: AsyncSession) -> Callable[..., Any]:
    """Insert rows and commit; returns the rows."""

    async def _seed(*rows: Any) -> list[Any]:
        async_session.add_all(rows)
        await async_session.commit()
        return list(rows)

    return _seed


@pytest.fixture
def make_election() -> Callable[..., Election]:
    """Factory for Election rows."""
    return _make_election


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    """Factory for Candidate rows."""
    return _make_candidate
