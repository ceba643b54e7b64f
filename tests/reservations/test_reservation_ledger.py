from __future__ import annotations

import asyncio
import random
from datetime import timedelta

import pytest
from sqlalchemy import select

from hawker.core.config import Settings
from hawker.core.errors import InvalidRequestError, StorageError
from hawker.core.locks import KeyedLocks
from hawker.db.models.reservations import Reservation
from hawker.reservations.errors import (
    ConflictError,
    InvalidIntervalError,
    InvalidTimeFormatError,
    PastDateError,
    PastTimeError,
    ReservationForbiddenError,
    ReservationNotFoundError,
    TableNotFoundError,
)
from hawker.reservations.ledger import ReservationLedger
from hawker.reservations.time_slots import overlaps, to_minutes
from tests.seed_fixtures import FIXED_NOW, TODAY, TOMORROW, YESTERDAY, SeededVenue


async def _book(
    ledger: ReservationLedger,
    venue: SeededVenue,
    start_time: str,
    end_time: str,
    *,
    user_id: int = 101,
    table_index: int = 0,
    reservation_date=TOMORROW,
    party_size: int = 1,
):
    return await ledger.create(
        user_id=user_id,
        venue_id=venue.venue_id,
        table_id=venue.table_ids[table_index],
        reservation_date=reservation_date,
        start_time=start_time,
        end_time=end_time,
        party_size=party_size,
    )


def _hhmm(minute: int) -> str:
    return f"{minute // 60:02d}:{minute % 60:02d}"


@pytest.mark.asyncio
async def test_create_returns_confirmed_reservation(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    record = await reservation_ledger.create(
        user_id=101,
        venue_id=venue.venue_id,
        table_id=venue.table_ids[0],
        reservation_date=TOMORROW,
        start_time="18:00",
        end_time="20:00",
        party_size=3,
        special_requests="High chair please",
        contact_phone="+65 8123 4567",
    )

    assert record.id > 0
    assert record.status == "CONFIRMED"
    assert record.table_number == 1
    assert record.venue_id == venue.venue_id
    assert record.start_time == "18:00"
    assert record.end_time == "20:00"
    assert record.party_size == 3
    assert record.special_requests == "High chair please"
    assert record.created_at == FIXED_NOW
    assert record.cancelled_at is None


@pytest.mark.asyncio
async def test_create_rejects_past_date(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    for start_time, end_time in (("10:00", "11:00"), ("21:00", "22:00")):
        with pytest.raises(PastDateError):
            await _book(
                reservation_ledger,
                venue,
                start_time,
                end_time,
                reservation_date=YESTERDAY,
            )


@pytest.mark.asyncio
async def test_create_today_requires_start_after_current_time(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    with pytest.raises(PastTimeError):
        await _book(reservation_ledger, venue, "11:30", "12:30", reservation_date=TODAY)
    with pytest.raises(PastTimeError):
        await _book(reservation_ledger, venue, "12:00", "13:00", reservation_date=TODAY)

    record = await _book(reservation_ledger, venue, "12:30", "13:30", reservation_date=TODAY)
    assert record.reservation_date == TODAY


@pytest.mark.asyncio
async def test_create_rejects_inverted_or_empty_interval(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    with pytest.raises(InvalidIntervalError):
        await _book(reservation_ledger, venue, "14:00", "13:00")
    with pytest.raises(InvalidIntervalError):
        await _book(reservation_ledger, venue, "14:00", "14:00")


@pytest.mark.asyncio
async def test_create_rejects_malformed_time(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    with pytest.raises(InvalidTimeFormatError):
        await _book(reservation_ledger, venue, "2pm", "15:00")


@pytest.mark.asyncio
async def test_create_rejects_unknown_table_or_wrong_venue(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    with pytest.raises(TableNotFoundError):
        await reservation_ledger.create(
            user_id=101,
            table_id=999_999,
            reservation_date=TOMORROW,
            start_time="10:00",
            end_time="11:00",
        )
    with pytest.raises(TableNotFoundError):
        await reservation_ledger.create(
            user_id=101,
            venue_id=venue.venue_id + 1,
            table_id=venue.table_ids[0],
            reservation_date=TOMORROW,
            start_time="10:00",
            end_time="11:00",
        )


@pytest.mark.asyncio
async def test_create_rejects_party_larger_than_table(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    with pytest.raises(InvalidRequestError):
        await reservation_ledger.create(
            user_id=101,
            table_id=venue.table_ids[2],
            reservation_date=TOMORROW,
            start_time="10:00",
            end_time="11:00",
            party_size=3,
        )


@pytest.mark.asyncio
async def test_overlapping_booking_conflicts_but_touching_booking_succeeds(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    await _book(reservation_ledger, venue, "10:00", "11:00")

    with pytest.raises(ConflictError):
        await _book(reservation_ledger, venue, "10:30", "11:30", user_id=202)

    touching = await _book(reservation_ledger, venue, "11:00", "12:00", user_id=202)
    other_table = await _book(reservation_ledger, venue, "10:30", "11:30", table_index=1)

    assert touching.start_time == "11:00"
    assert other_table.table_number == 2


@pytest.mark.asyncio
async def test_conflict_performs_no_write(
    reservation_ledger: ReservationLedger, venue: SeededVenue, session_factory
) -> None:
    await _book(reservation_ledger, venue, "10:00", "12:00")
    with pytest.raises(ConflictError):
        await _book(reservation_ledger, venue, "11:00", "13:00", user_id=202)

    async with session_factory() as session:
        rows = (await session.execute(select(Reservation))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_cancel_then_rebook_identical_slot(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    original = await _book(reservation_ledger, venue, "18:00", "19:00")

    cancelled = await reservation_ledger.cancel(original.id, 101)
    rebooked = await _book(reservation_ledger, venue, "18:00", "19:00", user_id=202)

    assert cancelled.status == "CANCELLED"
    assert cancelled.cancelled_at == FIXED_NOW
    assert rebooked.id != original.id
    assert rebooked.status == "CONFIRMED"


@pytest.mark.asyncio
async def test_cancel_is_idempotent_and_keeps_row(
    reservation_ledger: ReservationLedger, venue: SeededVenue, session_factory
) -> None:
    record = await _book(reservation_ledger, venue, "18:00", "19:00")

    first = await reservation_ledger.cancel(record.id, 101)
    second = await reservation_ledger.cancel(record.id, 101)

    assert first.status == second.status == "CANCELLED"
    assert first.cancelled_at == second.cancelled_at
    async with session_factory() as session:
        row = await session.get(Reservation, record.id)
    assert row is not None
    assert row.status == "CANCELLED"


@pytest.mark.asyncio
async def test_cancel_checks_existence_and_ownership(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    record = await _book(reservation_ledger, venue, "18:00", "19:00")

    with pytest.raises(ReservationNotFoundError):
        await reservation_ledger.cancel(record.id + 1000, 101)
    with pytest.raises(ReservationForbiddenError):
        await reservation_ledger.cancel(record.id, 202)

    still_confirmed = await reservation_ledger.get(record.id, 101)
    assert still_confirmed.status == "CONFIRMED"


@pytest.mark.asyncio
async def test_get_checks_ownership(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    record = await _book(reservation_ledger, venue, "18:00", "19:00")

    assert (await reservation_ledger.get(record.id, 101)).id == record.id
    with pytest.raises(ReservationForbiddenError):
        await reservation_ledger.get(record.id, 202)
    with pytest.raises(ReservationNotFoundError):
        await reservation_ledger.get(record.id + 1000, 101)


@pytest.mark.asyncio
async def test_list_by_table_and_date_is_ordered_and_excludes_cancelled(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    late = await _book(reservation_ledger, venue, "19:00", "20:00")
    early = await _book(reservation_ledger, venue, "10:00", "11:00")
    cancelled = await _book(reservation_ledger, venue, "14:00", "15:00")
    await reservation_ledger.cancel(cancelled.id, 101)
    await _book(reservation_ledger, venue, "12:00", "13:00", table_index=1)

    records = await reservation_ledger.list_by_table_and_date(venue.table_ids[0], TOMORROW)

    assert [record.id for record in records] == [early.id, late.id]


@pytest.mark.asyncio
async def test_list_by_user_is_newest_first_and_excludes_cancelled(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    day_after = TOMORROW.replace(day=TOMORROW.day + 1)
    first = await _book(reservation_ledger, venue, "10:00", "11:00")
    second = await _book(reservation_ledger, venue, "18:00", "19:00")
    third = await _book(reservation_ledger, venue, "12:00", "13:00", reservation_date=day_after)
    cancelled = await _book(reservation_ledger, venue, "15:00", "16:00")
    await reservation_ledger.cancel(cancelled.id, 101)
    await _book(reservation_ledger, venue, "20:00", "21:00", user_id=202)

    records = await reservation_ledger.list_by_user(101)

    assert [record.id for record in records] == [third.id, second.id, first.id]


@pytest.mark.asyncio
async def test_available_slots_mark_booked_start_times(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    await _book(reservation_ledger, venue, "14:00", "15:00")

    slots = await reservation_ledger.available_slots(venue.table_ids[0], TOMORROW)

    assert len(slots) == 24
    unavailable = [slot.time for slot in slots if not slot.available]
    assert unavailable == ["14:00", "14:30"]
    assert {slot.time for slot in slots if slot.available} >= {"10:00", "13:30", "15:00", "21:30"}


@pytest.mark.asyncio
async def test_available_slots_for_other_table_are_all_free(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    await _book(reservation_ledger, venue, "14:00", "15:00")

    slots = await reservation_ledger.available_slots(venue.table_ids[1], TOMORROW)

    assert all(slot.available for slot in slots)


@pytest.mark.asyncio
async def test_available_tables_uses_default_duration_and_capacity(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    await _book(reservation_ledger, venue, "13:00", "14:00", table_index=0)

    # Default duration is two hours, so 12:00-14:00 collides with table 1.
    tables = await reservation_ledger.available_tables(venue.venue_id, TOMORROW, "12:00")
    assert [table.table_number for table in tables] == [2, 3]

    short = await reservation_ledger.available_tables(
        venue.venue_id, TOMORROW, "12:00", duration_minutes=60
    )
    assert [table.table_number for table in short] == [1, 2, 3]

    big_party = await reservation_ledger.available_tables(
        venue.venue_id, TOMORROW, "12:00", party_size=3
    )
    assert [table.table_number for table in big_party] == [2]


@pytest.mark.asyncio
async def test_available_tables_rejects_interval_past_midnight(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    with pytest.raises(InvalidIntervalError):
        await reservation_ledger.available_tables(venue.venue_id, TOMORROW, "23:00")


@pytest.mark.asyncio
async def test_list_tables_for_unknown_venue_is_empty(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    assert await reservation_ledger.list_tables(venue.venue_id + 100) == []
    tables = await reservation_ledger.list_tables(venue.venue_id)
    assert [table.table_number for table in tables] == [1, 2, 3]


@pytest.mark.asyncio
async def test_list_by_venue_filters_date_window(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    day_after = TOMORROW.replace(day=TOMORROW.day + 1)
    first = await _book(reservation_ledger, venue, "10:00", "11:00", table_index=1)
    second = await _book(reservation_ledger, venue, "10:00", "11:00", table_index=0)
    later = await _book(reservation_ledger, venue, "10:00", "11:00", reservation_date=day_after)

    window = await reservation_ledger.list_by_venue(
        venue.venue_id, from_date=TOMORROW, to_date=TOMORROW
    )
    everything = await reservation_ledger.list_by_venue(venue.venue_id)

    assert [record.id for record in window] == [second.id, first.id]
    assert [record.id for record in everything] == [second.id, first.id, later.id]
    with pytest.raises(InvalidRequestError):
        await reservation_ledger.list_by_venue(
            venue.venue_id, from_date=day_after, to_date=TOMORROW
        )


@pytest.mark.asyncio
async def test_lock_timeout_is_reported_as_conflict(
    session_factory, settings: Settings, venue: SeededVenue
) -> None:
    locks = KeyedLocks(acquire_timeout=0.05)
    ledger = ReservationLedger(
        session_factory, settings=settings, locks=locks, clock=lambda: FIXED_NOW
    )

    async with locks.hold((venue.table_ids[0], TOMORROW)):
        with pytest.raises(ConflictError):
            await _book(ledger, venue, "10:00", "11:00")


@pytest.mark.asyncio
async def test_ledgers_sharing_an_empty_lock_registry_serialize_on_it(
    session_factory, settings: Settings, venue: SeededVenue
) -> None:
    shared = KeyedLocks(acquire_timeout=0.05)
    assert len(shared) == 0
    first, second = (
        ReservationLedger(session_factory, settings=settings, locks=shared, clock=lambda: FIXED_NOW)
        for _ in range(2)
    )
    booked = await _book(first, venue, "10:00", "11:00")

    async with shared.hold((venue.table_ids[0], TOMORROW)):
        with pytest.raises(ConflictError):
            await _book(second, venue, "12:00", "13:00")
        with pytest.raises(StorageError):
            await first.cancel(booked.id, booked.user_id)

    assert (await second.cancel(booked.id, booked.user_id)).status == "CANCELLED"


@pytest.mark.asyncio
async def test_concurrent_cancels_and_creates_keep_confirmed_set_disjoint(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    rng = random.Random(20260311)

    for trial in range(8):
        table_id = venue.table_ids[trial % 2]
        reservation_date = TOMORROW + timedelta(days=trial)
        start = to_minutes("11:00") + 30 * rng.randrange(12)
        original = await reservation_ledger.create(
            user_id=700,
            table_id=table_id,
            reservation_date=reservation_date,
            start_time=_hhmm(start),
            end_time=_hhmm(start + 90),
        )
        candidates = [
            (start + shift, start + shift + duration)
            for shift, duration in (
                (rng.choice((-60, -30, 0, 30, 60)), rng.choice((60, 90))),
                (rng.choice((-30, 0, 30)), rng.choice((60, 120))),
            )
        ]
        barrier = asyncio.Event()

        async def _cancel():
            await barrier.wait()
            return await reservation_ledger.cancel(original.id, 700)

        async def _create(user_id: int, interval: tuple[int, int]):
            await barrier.wait()
            try:
                return await reservation_ledger.create(
                    user_id=user_id,
                    table_id=table_id,
                    reservation_date=reservation_date,
                    start_time=_hhmm(interval[0]),
                    end_time=_hhmm(interval[1]),
                )
            except ConflictError:
                return None

        tasks = [asyncio.create_task(_cancel())]
        tasks += [
            asyncio.create_task(_create(701 + index, interval))
            for index, interval in enumerate(candidates)
        ]
        rng.shuffle(tasks)
        await asyncio.sleep(0)
        barrier.set()
        await asyncio.gather(*tasks)

        confirmed = await reservation_ledger.list_by_table_and_date(table_id, reservation_date)
        assert original.id not in {item.id for item in confirmed}
        intervals = [(to_minutes(item.start_time), to_minutes(item.end_time)) for item in confirmed]
        for index, first in enumerate(intervals):
            for second in intervals[index + 1 :]:
                assert not overlaps(*first, *second)

        # The committed cancel frees the original slot unless a new booking took it.
        blocking = [item for item in intervals if overlaps(start, start + 90, *item)]
        if blocking:
            with pytest.raises(ConflictError):
                await reservation_ledger.create(
                    user_id=799,
                    table_id=table_id,
                    reservation_date=reservation_date,
                    start_time=_hhmm(start),
                    end_time=_hhmm(start + 90),
                )
        else:
            rebooked = await reservation_ledger.create(
                user_id=799,
                table_id=table_id,
                reservation_date=reservation_date,
                start_time=_hhmm(start),
                end_time=_hhmm(start + 90),
            )
            assert rebooked.status == "CONFIRMED"


@pytest.mark.asyncio
async def test_venue_stats_counts_cancelled_rows_within_window(
    reservation_ledger: ReservationLedger, session_factory, venue: SeededVenue
) -> None:
    await _book(reservation_ledger, venue, "10:00", "11:00", party_size=2)
    await _book(reservation_ledger, venue, "10:00", "11:00", table_index=1, party_size=3)
    dropped = await _book(reservation_ledger, venue, "12:00", "13:00", party_size=4)
    await reservation_ledger.cancel(dropped.id, dropped.user_id)
    async with session_factory.begin() as session:
        session.add(
            Reservation(
                user_id=102,
                venue_id=venue.venue_id,
                table_id=venue.table_ids[2],
                table_number=3,
                reservation_date=TODAY - timedelta(days=40),
                start_time="10:00",
                end_time="11:00",
                start_minute=600,
                end_minute=660,
                party_size=1,
                status="CONFIRMED",
                created_at=FIXED_NOW,
                updated_at=FIXED_NOW,
            )
        )

    recent = await reservation_ledger.venue_stats(venue.venue_id)
    wider = await reservation_ledger.venue_stats(venue.venue_id, days=60)
    empty = await reservation_ledger.venue_stats(venue.venue_id + 100)

    assert recent.from_date == TODAY - timedelta(days=30)
    assert (
        recent.total_reservations,
        recent.confirmed_reservations,
        recent.cancelled_reservations,
        recent.total_party_size,
        recent.average_party_size,
    ) == (3, 2, 1, 9, 3.0)
    assert (wider.total_reservations, wider.total_party_size, wider.average_party_size) == (
        4,
        10,
        2.5,
    )
    assert (empty.total_reservations, empty.average_party_size) == (0, 0.0)
    with pytest.raises(InvalidRequestError):
        await reservation_ledger.venue_stats(venue.venue_id, days=0)


@pytest.mark.asyncio
async def test_parallel_overlapping_creates_allow_exactly_one(
    reservation_ledger: ReservationLedger, venue: SeededVenue
) -> None:
    rng = random.Random(20260310)
    starts = [to_minutes("10:00") + 30 * step for step in range(18)]

    for trial in range(10):
        table_id = venue.table_ids[trial % 2]
        reservation_date = TOMORROW.replace(day=TOMORROW.day + trial // 2)
        start_a = rng.choice(starts)
        start_b = start_a + rng.choice((-60, -30, 0, 30, 60))
        duration_a = rng.choice((90, 120))
        duration_b = rng.choice((90, 120))
        intervals = [
            (start_a, start_a + duration_a),
            (start_b, start_b + duration_b),
        ]
        assert overlaps(*intervals[0], *intervals[1])
        barrier = asyncio.Event()

        async def _attempt(user_id: int, interval: tuple[int, int]) -> str:
            await barrier.wait()
            try:
                await reservation_ledger.create(
                    user_id=user_id,
                    table_id=table_id,
                    reservation_date=reservation_date,
                    start_time=f"{interval[0] // 60:02d}:{interval[0] % 60:02d}",
                    end_time=f"{interval[1] // 60:02d}:{interval[1] % 60:02d}",
                )
            except ConflictError:
                return "conflict"
            return "ok"

        tasks = [
            asyncio.create_task(_attempt(500 + index, interval))
            for index, interval in enumerate(intervals)
        ]
        await asyncio.sleep(0)
        barrier.set()
        outcomes = await asyncio.gather(*tasks)

        assert sorted(outcomes) == ["conflict", "ok"]
        confirmed = await reservation_ledger.list_by_table_and_date(table_id, reservation_date)
        assert len(confirmed) == 1
