from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from hawker.core.config import Settings
from hawker.core.integration_db_safety import assess_integration_db_safety
from hawker.db.session import build_engine

TRUNCATE_TABLES = (
    "redeemed_vouchers",
    "vouchers",
    "points_history",
    "points_accounts",
    "reservations",
    "dining_tables",
    "venues",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture
async def engine(settings: Settings) -> AsyncEngine:
    database_url = settings.database_url
    safety = assess_integration_db_safety(database_url)
    if not safety.is_safe:
        pytest.skip(f"Integration database rejected: {safety.reason}")

    engine = build_engine(database_url, lock_timeout_ms=settings.db_lock_timeout_ms)
    try:
        async with engine.begin() as conn:
            await conn.execute(text(TRUNCATE_SQL))
    except (DBAPIError, OSError) as exc:  # pragma: no cover - environment-dependent
        await engine.dispose()
        pytest.skip(f"Migrated Postgres is required for integration tests: {exc}")

    yield engine

    await engine.dispose()
