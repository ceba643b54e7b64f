from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hawker.db.models.points_accounts import PointsAccount
from hawker.db.models.points_history import PointsHistoryEntry


class PointsRepo:
    @staticmethod
    async def get_account(session: AsyncSession, user_id: int) -> PointsAccount | None:
        return await session.get(PointsAccount, user_id)

    @staticmethod
    async def get_account_for_update(session: AsyncSession, user_id: int) -> PointsAccount | None:
        stmt = select(PointsAccount).where(PointsAccount.user_id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_account(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> PointsAccount:
        account = PointsAccount(
            user_id=user_id,
            total_points=0,
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(account)
        await session.flush()
        return account

    @staticmethod
    async def add_history(
        session: AsyncSession, *, entry: PointsHistoryEntry
    ) -> PointsHistoryEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_history(
        session: AsyncSession,
        *,
        user_id: int,
        limit: int,
    ) -> list[PointsHistoryEntry]:
        resolved_limit = max(1, min(500, int(limit)))
        stmt = (
            select(PointsHistoryEntry)
            .where(PointsHistoryEntry.user_id == user_id)
            .order_by(PointsHistoryEntry.created_at.desc(), PointsHistoryEntry.id.desc())
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def sum_history(session: AsyncSession, *, user_id: int) -> int:
        stmt = select(func.coalesce(func.sum(PointsHistoryEntry.points), 0)).where(
            PointsHistoryEntry.user_id == user_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_account_user_ids(
        session: AsyncSession,
        *,
        after_user_id: int | None,
        limit: int,
    ) -> list[int]:
        stmt = (
            select(PointsAccount.user_id)
            .order_by(PointsAccount.user_id.asc())
            .limit(max(1, min(1000, int(limit))))
        )
        if after_user_id is not None:
            stmt = stmt.where(PointsAccount.user_id > after_user_id)
        result = await session.execute(stmt)
        return [int(user_id) for user_id in result.scalars().all()]
