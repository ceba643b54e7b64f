from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hawker.db.models.redeemed_vouchers import RedeemedVoucher
from hawker.db.models.vouchers import Voucher


class VouchersRepo:
    @staticmethod
    async def get_voucher(session: AsyncSession, voucher_id: int) -> Voucher | None:
        return await session.get(Voucher, voucher_id)

    @staticmethod
    async def create_voucher(session: AsyncSession, *, voucher: Voucher) -> Voucher:
        session.add(voucher)
        await session.flush()
        return voucher

    @staticmethod
    async def list_active(session: AsyncSession) -> list[Voucher]:
        stmt = (
            select(Voucher)
            .where(Voucher.is_active.is_(True))
            .order_by(Voucher.points_required.asc(), Voucher.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def code_exists(session: AsyncSession, voucher_code: str) -> bool:
        stmt = select(RedeemedVoucher.id).where(RedeemedVoucher.voucher_code == voucher_code)
        result = await session.execute(stmt)
        return result.first() is not None

    @staticmethod
    async def create_redeemed(
        session: AsyncSession, *, redeemed: RedeemedVoucher
    ) -> RedeemedVoucher:
        session.add(redeemed)
        await session.flush()
        return redeemed

    @staticmethod
    async def get_redeemed_by_code(
        session: AsyncSession, voucher_code: str
    ) -> RedeemedVoucher | None:
        stmt = select(RedeemedVoucher).where(RedeemedVoucher.voucher_code == voucher_code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_redeemed_by_code_for_update(
        session: AsyncSession, voucher_code: str
    ) -> RedeemedVoucher | None:
        stmt = (
            select(RedeemedVoucher)
            .where(RedeemedVoucher.voucher_code == voucher_code)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_redeemed_for_user(
        session: AsyncSession, *, user_id: int
    ) -> list[RedeemedVoucher]:
        stmt = (
            select(RedeemedVoucher)
            .where(RedeemedVoucher.user_id == user_id)
            .order_by(RedeemedVoucher.redeemed_at.desc(), RedeemedVoucher.id.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
