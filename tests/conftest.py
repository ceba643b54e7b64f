from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hawker.core.config import Settings
from hawker.core.locks import KeyedLocks
from hawker.db.models import Base
from hawker.db.session import build_engine, build_session_factory
from hawker.points.ledger import PointsLedger
from hawker.reservations.ledger import ReservationLedger
from tests.seed_fixtures import FIXED_NOW, INTERNAL_TOKEN, SeededVenue, _create_venue


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        APP_TIMEZONE="Asia/Singapore",
        INTERNAL_API_TOKEN=INTERNAL_TOKEN,
        INTERNAL_API_ALLOWLIST="127.0.0.1/32,::1/128",
        RESERVATION_LOCK_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'hawker_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
def reservation_ledger(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings
) -> ReservationLedger:
    return ReservationLedger(
        session_factory,
        settings=settings,
        locks=KeyedLocks(acquire_timeout=5.0),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def points_ledger(session_factory: async_sessionmaker[AsyncSession]) -> PointsLedger:
    return PointsLedger(session_factory, clock=lambda: FIXED_NOW)


@pytest.fixture
async def venue(session_factory: async_sessionmaker[AsyncSession]) -> SeededVenue:
    return await _create_venue(session_factory)
