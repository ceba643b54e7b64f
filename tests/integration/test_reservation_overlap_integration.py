from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hawker.core.config import Settings
from hawker.core.locks import KeyedLocks
from hawker.db.models.reservations import RESERVATION_STATUS_CONFIRMED, Reservation
from hawker.reservations.errors import ConflictError
from hawker.reservations.ledger import ReservationLedger
from tests.seed_fixtures import FIXED_NOW, TOMORROW, SeededVenue


def _reservation(venue: SeededVenue, *, user_id: int, start: int, end: int) -> Reservation:
    return Reservation(
        user_id=user_id,
        venue_id=venue.venue_id,
        table_id=venue.table_ids[0],
        table_number=1,
        reservation_date=TOMORROW,
        start_time=f"{start // 60:02d}:{start % 60:02d}",
        end_time=f"{end // 60:02d}:{end % 60:02d}",
        start_minute=start,
        end_minute=end,
        party_size=2,
        status=RESERVATION_STATUS_CONFIRMED,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.mark.asyncio
async def test_exclusion_constraint_rejects_overlapping_confirmed_rows(
    session_factory: async_sessionmaker[AsyncSession],
    venue: SeededVenue,
) -> None:
    async with session_factory.begin() as session:
        session.add(_reservation(venue, user_id=1, start=600, end=660))

    with pytest.raises(IntegrityError):
        async with session_factory.begin() as session:
            session.add(_reservation(venue, user_id=2, start=630, end=690))

    async with session_factory.begin() as session:
        session.add(_reservation(venue, user_id=3, start=660, end=720))


@pytest.mark.asyncio
async def test_separate_ledgers_never_double_book_a_table(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    venue: SeededVenue,
) -> None:
    # Independent lock registries stand in for separate worker processes.
    ledgers = [
        ReservationLedger(
            session_factory,
            settings=settings,
            locks=KeyedLocks(acquire_timeout=5.0),
            clock=lambda: FIXED_NOW,
        )
        for _ in range(6)
    ]

    async def _book(ledger: ReservationLedger, user_id: int):
        try:
            return await ledger.create(
                user_id=user_id,
                table_id=venue.table_ids[0],
                reservation_date=TOMORROW,
                start_time="18:00",
                end_time="19:30",
            )
        except ConflictError:
            return None

    results = await asyncio.gather(
        *(_book(ledger, user_id) for user_id, ledger in enumerate(ledgers, start=1))
    )

    assert sum(result is not None for result in results) == 1
    stored = await ledgers[0].list_by_table_and_date(venue.table_ids[0], TOMORROW)
    assert len(stored) == 1
