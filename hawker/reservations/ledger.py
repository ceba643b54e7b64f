from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timedelta

import structlog
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hawker.core.clock import ensure_utc, local_date, local_hhmm, utc_now
from hawker.core.config import Settings
from hawker.core.errors import InvalidRequestError, StorageError
from hawker.core.locks import KeyedLocks, LockTimeoutError
from hawker.db.errors import is_lock_timeout
from hawker.db.models.dining_tables import DiningTable
from hawker.db.models.reservations import (
    RESERVATION_STATUS_CANCELLED,
    RESERVATION_STATUS_CONFIRMED,
    Reservation,
)
from hawker.db.repo.reservations_repo import ReservationsRepo
from hawker.db.repo.tables_repo import TablesRepo
from hawker.reservations.availability import AvailabilityIndex
from hawker.reservations.errors import (
    ConflictError,
    InvalidIntervalError,
    PastDateError,
    PastTimeError,
    ReservationForbiddenError,
    ReservationNotFoundError,
    TableNotFoundError,
)
from hawker.reservations.time_slots import (
    MINUTES_PER_DAY,
    SlotRange,
    enumerate_slots,
    from_minutes,
    to_minutes,
)
from hawker.reservations.types import (
    ReservationRecord,
    SlotAvailability,
    TableRecord,
    VenueReservationStats,
)

logger = structlog.get_logger(__name__)

STATS_DEFAULT_DAYS = 30


class ReservationLedger:
    """Table bookings for hawker-centre venues.

    Confirmed reservations on one table and date never overlap. Writers are serialized
    per (table_id, date) in-process and, on PostgreSQL, by locking the dining table row;
    the exclusion constraint on `reservations` rejects anything that slips past both.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        settings: Settings,
        locks: KeyedLocks | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._timezone = settings.app_timezone
        self._default_duration_minutes = settings.reservation_default_duration_minutes
        self._slots: SlotRange = enumerate_slots(
            settings.reservation_day_start,
            settings.reservation_day_end,
            settings.reservation_slot_step_minutes,
        )
        self._locks = locks if locks is not None else KeyedLocks(
            acquire_timeout=settings.reservation_lock_timeout_seconds
        )
        self._clock = clock

    async def create(
        self,
        *,
        user_id: int,
        table_id: int,
        reservation_date: date,
        start_time: str,
        end_time: str,
        special_requests: str | None = None,
        venue_id: int | None = None,
        party_size: int = 1,
        contact_phone: str | None = None,
    ) -> ReservationRecord:
        now_utc = self._clock()
        today = local_date(now_utc, self._timezone)
        if reservation_date < today:
            raise PastDateError

        start_minute = to_minutes(start_time)
        end_minute = to_minutes(end_time)
        if reservation_date == today:
            current_minute = to_minutes(local_hhmm(now_utc, self._timezone))
            if start_minute <= current_minute:
                raise PastTimeError
        if end_minute <= start_minute:
            raise InvalidIntervalError
        if party_size <= 0:
            raise InvalidRequestError("Party size must be at least 1.")

        try:
            async with self._locks.hold((table_id, reservation_date)):
                async with self._session_factory.begin() as session:
                    table = await TablesRepo.get_table_for_update(session, table_id)
                    if (
                        table is None
                        or not table.is_active
                        or (venue_id is not None and table.venue_id != venue_id)
                    ):
                        raise TableNotFoundError
                    if party_size > table.capacity:
                        raise InvalidRequestError(
                            f"Party size {party_size} exceeds table capacity {table.capacity}."
                        )

                    existing = await ReservationsRepo.list_confirmed_for_table_date(
                        session,
                        table_id=table_id,
                        reservation_date=reservation_date,
                    )
                    conflicts = AvailabilityIndex(existing).find_conflicts(
                        table_id, reservation_date, start_minute, end_minute
                    )
                    if conflicts:
                        logger.info(
                            "reservation_conflict",
                            table_id=table_id,
                            reservation_date=reservation_date.isoformat(),
                            start_time=from_minutes(start_minute),
                            end_time=from_minutes(end_minute),
                            conflicting_ids=[booking.id for booking in conflicts],
                        )
                        raise ConflictError

                    reservation = await ReservationsRepo.create(
                        session,
                        reservation=Reservation(
                            user_id=user_id,
                            venue_id=table.venue_id,
                            table_id=table.id,
                            table_number=table.table_number,
                            reservation_date=reservation_date,
                            start_time=from_minutes(start_minute),
                            end_time=from_minutes(end_minute),
                            start_minute=start_minute,
                            end_minute=end_minute,
                            party_size=party_size,
                            status=RESERVATION_STATUS_CONFIRMED,
                            special_requests=special_requests,
                            contact_phone=contact_phone,
                            created_at=now_utc,
                            updated_at=now_utc,
                        ),
                    )
                    record = _as_record(reservation)
        except LockTimeoutError as exc:
            logger.warning("reservation_lock_timeout", table_id=table_id)
            raise ConflictError("Table is busy. Try another slot.") from exc
        except IntegrityError as exc:
            logger.info("reservation_conflict", table_id=table_id, reason="constraint")
            raise ConflictError from exc
        except DBAPIError as exc:
            if is_lock_timeout(exc):
                logger.warning("reservation_lock_timeout", table_id=table_id, reason="db")
                raise ConflictError("Table is busy. Try another slot.") from exc
            raise StorageError from exc

        logger.info(
            "reservation_created",
            reservation_id=record.id,
            user_id=user_id,
            table_id=table_id,
            reservation_date=reservation_date.isoformat(),
            start_time=record.start_time,
            end_time=record.end_time,
        )
        return record

    async def cancel(self, reservation_id: int, requesting_user_id: int) -> ReservationRecord:
        now_utc = self._clock()
        try:
            async with self._session_factory() as session:
                existing = await ReservationsRepo.get_by_id(session, reservation_id)
        except DBAPIError as exc:
            raise StorageError from exc
        if existing is None:
            raise ReservationNotFoundError
        if existing.user_id != requesting_user_id:
            raise ReservationForbiddenError

        # Table and date never change, so cancel serializes with create on the same key.
        try:
            async with self._locks.hold((existing.table_id, existing.reservation_date)):
                async with self._session_factory.begin() as session:
                    reservation = await ReservationsRepo.get_by_id_for_update(
                        session, reservation_id
                    )
                    if reservation is None:
                        raise ReservationNotFoundError

                    already_cancelled = reservation.status == RESERVATION_STATUS_CANCELLED
                    if not already_cancelled:
                        reservation.status = RESERVATION_STATUS_CANCELLED
                        reservation.cancelled_at = now_utc
                        reservation.updated_at = now_utc
                    record = _as_record(reservation)
        except LockTimeoutError as exc:
            logger.warning("reservation_lock_timeout", table_id=existing.table_id)
            raise StorageError("Table is busy. Retry later.") from exc
        except DBAPIError as exc:
            raise StorageError from exc

        if not already_cancelled:
            logger.info(
                "reservation_cancelled",
                reservation_id=reservation_id,
                user_id=requesting_user_id,
                table_id=record.table_id,
            )
        return record

    async def get(self, reservation_id: int, requesting_user_id: int) -> ReservationRecord:
        try:
            async with self._session_factory() as session:
                reservation = await ReservationsRepo.get_by_id(session, reservation_id)
        except DBAPIError as exc:
            raise StorageError from exc

        if reservation is None:
            raise ReservationNotFoundError
        if reservation.user_id != requesting_user_id:
            raise ReservationForbiddenError
        return _as_record(reservation)

    async def list_by_table_and_date(
        self, table_id: int, reservation_date: date
    ) -> list[ReservationRecord]:
        try:
            async with self._session_factory() as session:
                reservations = await ReservationsRepo.list_confirmed_for_table_date(
                    session,
                    table_id=table_id,
                    reservation_date=reservation_date,
                )
        except DBAPIError as exc:
            raise StorageError from exc
        return [_as_record(reservation) for reservation in reservations]

    async def list_by_user(self, user_id: int) -> list[ReservationRecord]:
        try:
            async with self._session_factory() as session:
                reservations = await ReservationsRepo.list_confirmed_for_user(
                    session, user_id=user_id
                )
        except DBAPIError as exc:
            raise StorageError from exc
        return [_as_record(reservation) for reservation in reservations]

    async def list_by_venue(
        self,
        venue_id: int,
        *,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[ReservationRecord]:
        if from_date is not None and to_date is not None and to_date < from_date:
            raise InvalidRequestError("to_date must not be before from_date.")
        try:
            async with self._session_factory() as session:
                reservations = await ReservationsRepo.list_confirmed_for_venue(
                    session,
                    venue_id=venue_id,
                    from_date=from_date,
                    to_date=to_date,
                )
        except DBAPIError as exc:
            raise StorageError from exc
        return [_as_record(reservation) for reservation in reservations]

    async def venue_stats(
        self, venue_id: int, *, days: int = STATS_DEFAULT_DAYS
    ) -> VenueReservationStats:
        """Counts every reservation, cancelled ones included, dated on or after today - days."""
        if days <= 0:
            raise InvalidRequestError("days must be positive.")
        from_date = local_date(self._clock(), self._timezone) - timedelta(days=days)
        try:
            async with self._session_factory() as session:
                total, confirmed, cancelled, party_total = (
                    await ReservationsRepo.count_for_venue_since(
                        session, venue_id=venue_id, from_date=from_date
                    )
                )
        except DBAPIError as exc:
            raise StorageError from exc

        return VenueReservationStats(
            venue_id=venue_id,
            from_date=from_date,
            total_reservations=total,
            confirmed_reservations=confirmed,
            cancelled_reservations=cancelled,
            total_party_size=party_total,
            average_party_size=round(party_total / total, 1) if total else 0.0,
        )

    async def available_slots(
        self, table_id: int, reservation_date: date
    ) -> list[SlotAvailability]:
        existing = await self.list_by_table_and_date(table_id, reservation_date)
        index = AvailabilityIndex(existing)
        return [
            SlotAvailability(
                time=slot,
                available=not index.is_time_taken(table_id, reservation_date, slot),
            )
            for slot in self._slots
        ]

    async def list_tables(self, venue_id: int) -> list[TableRecord]:
        try:
            async with self._session_factory() as session:
                tables = await TablesRepo.list_for_venue(session, venue_id=venue_id)
        except DBAPIError as exc:
            raise StorageError from exc
        return [_as_table_record(table) for table in tables]

    async def available_tables(
        self,
        venue_id: int,
        reservation_date: date,
        start_time: str,
        *,
        duration_minutes: int | None = None,
        party_size: int = 1,
    ) -> list[TableRecord]:
        duration = duration_minutes or self._default_duration_minutes
        start_minute = to_minutes(start_time)
        end_minute = start_minute + duration
        if duration <= 0 or end_minute > MINUTES_PER_DAY:
            raise InvalidIntervalError("Booking must end within the same day.")

        try:
            async with self._session_factory() as session:
                tables = [
                    table
                    for table in await TablesRepo.list_for_venue(session, venue_id=venue_id)
                    if table.capacity >= party_size
                ]
                existing = await ReservationsRepo.list_confirmed_for_tables_date(
                    session,
                    table_ids=[table.id for table in tables],
                    reservation_date=reservation_date,
                )
        except DBAPIError as exc:
            raise StorageError from exc

        index = AvailabilityIndex(existing)
        return [
            _as_table_record(table)
            for table in tables
            if not index.find_conflicts(table.id, reservation_date, start_minute, end_minute)
        ]


def _as_record(reservation: Reservation) -> ReservationRecord:
    return ReservationRecord(
        id=reservation.id,
        user_id=reservation.user_id,
        venue_id=reservation.venue_id,
        table_id=reservation.table_id,
        table_number=reservation.table_number,
        reservation_date=reservation.reservation_date,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        party_size=reservation.party_size,
        status=reservation.status,
        special_requests=reservation.special_requests,
        contact_phone=reservation.contact_phone,
        created_at=ensure_utc(reservation.created_at),
        updated_at=ensure_utc(reservation.updated_at),
        cancelled_at=(
            ensure_utc(reservation.cancelled_at) if reservation.cancelled_at is not None else None
        ),
    )


def _as_table_record(table: DiningTable) -> TableRecord:
    return TableRecord(
        id=table.id,
        venue_id=table.venue_id,
        table_number=table.table_number,
        capacity=table.capacity,
        is_active=table.is_active,
    )
