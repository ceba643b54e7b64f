from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hawker.db.models.dining_tables import DiningTable
from hawker.db.models.venues import Venue


class TablesRepo:
    @staticmethod
    async def create_venue(
        session: AsyncSession,
        *,
        name: str,
        address: str | None,
        created_at: datetime,
    ) -> Venue:
        venue = Venue(name=name, address=address, is_active=True, created_at=created_at)
        session.add(venue)
        await session.flush()
        return venue

    @staticmethod
    async def get_table_for_update(session: AsyncSession, table_id: int) -> DiningTable | None:
        stmt = select(DiningTable).where(DiningTable.id == table_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_venue(
        session: AsyncSession,
        *,
        venue_id: int,
        active_only: bool = True,
    ) -> list[DiningTable]:
        stmt = select(DiningTable).where(DiningTable.venue_id == venue_id)
        if active_only:
            stmt = stmt.where(DiningTable.is_active.is_(True))
        stmt = stmt.order_by(DiningTable.table_number.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create_table(
        session: AsyncSession,
        *,
        venue_id: int,
        table_number: int,
        capacity: int,
        created_at: datetime,
    ) -> DiningTable:
        table = DiningTable(
            venue_id=venue_id,
            table_number=table_number,
            capacity=capacity,
            is_active=True,
            created_at=created_at,
        )
        session.add(table)
        await session.flush()
        return table
