from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hawker.db.models.reservations import (
    RESERVATION_STATUS_CANCELLED,
    RESERVATION_STATUS_CONFIRMED,
    Reservation,
)


class ReservationsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, reservation_id: int) -> Reservation | None:
        return await session.get(Reservation, reservation_id)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession, reservation_id: int
    ) -> Reservation | None:
        stmt = select(Reservation).where(Reservation.id == reservation_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, reservation: Reservation) -> Reservation:
        session.add(reservation)
        await session.flush()
        return reservation

    @staticmethod
    async def list_confirmed_for_table_date(
        session: AsyncSession,
        *,
        table_id: int,
        reservation_date: date,
    ) -> list[Reservation]:
        stmt = (
            select(Reservation)
            .where(
                Reservation.table_id == table_id,
                Reservation.reservation_date == reservation_date,
                Reservation.status == RESERVATION_STATUS_CONFIRMED,
            )
            .order_by(Reservation.start_minute.asc(), Reservation.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_confirmed_for_tables_date(
        session: AsyncSession,
        *,
        table_ids: Sequence[int],
        reservation_date: date,
    ) -> list[Reservation]:
        ids = tuple({int(table_id) for table_id in table_ids})
        if not ids:
            return []
        stmt = (
            select(Reservation)
            .where(
                Reservation.table_id.in_(ids),
                Reservation.reservation_date == reservation_date,
                Reservation.status == RESERVATION_STATUS_CONFIRMED,
            )
            .order_by(Reservation.table_id.asc(), Reservation.start_minute.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_confirmed_for_user(session: AsyncSession, *, user_id: int) -> list[Reservation]:
        stmt = (
            select(Reservation)
            .where(
                Reservation.user_id == user_id,
                Reservation.status == RESERVATION_STATUS_CONFIRMED,
            )
            .order_by(
                Reservation.reservation_date.desc(),
                Reservation.start_minute.desc(),
                Reservation.id.desc(),
            )
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_confirmed_for_venue(
        session: AsyncSession,
        *,
        venue_id: int,
        from_date: date | None,
        to_date: date | None,
    ) -> list[Reservation]:
        stmt = select(Reservation).where(
            Reservation.venue_id == venue_id,
            Reservation.status == RESERVATION_STATUS_CONFIRMED,
        )
        if from_date is not None:
            stmt = stmt.where(Reservation.reservation_date >= from_date)
        if to_date is not None:
            stmt = stmt.where(Reservation.reservation_date <= to_date)
        stmt = stmt.order_by(
            Reservation.reservation_date.asc(),
            Reservation.start_minute.asc(),
            Reservation.table_number.asc(),
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_for_venue_since(
        session: AsyncSession,
        *,
        venue_id: int,
        from_date: date,
    ) -> tuple[int, int, int, int]:
        """Return (total, confirmed, cancelled, party_size_sum) for rows on or after from_date."""
        stmt = select(
            func.count(Reservation.id),
            func.coalesce(
                func.sum(case((Reservation.status == RESERVATION_STATUS_CONFIRMED, 1), else_=0)),
                0,
            ),
            func.coalesce(
                func.sum(case((Reservation.status == RESERVATION_STATUS_CANCELLED, 1), else_=0)),
                0,
            ),
            func.coalesce(func.sum(Reservation.party_size), 0),
        ).where(
            Reservation.venue_id == venue_id,
            Reservation.reservation_date >= from_date,
        )
        row = (await session.execute(stmt)).one()
        return int(row[0]), int(row[1]), int(row[2]), int(row[3])
