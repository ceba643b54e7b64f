from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import structlog
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hawker.core.clock import ensure_utc, utc_now
from hawker.core.errors import InvalidRequestError, StorageError
from hawker.core.locks import KeyedLocks, LockTimeoutError
from hawker.core.voucher_codes import generate_voucher_code, normalize_voucher_code
from hawker.db.models.points_accounts import PointsAccount
from hawker.db.models.points_history import PointsHistoryEntry
from hawker.db.models.redeemed_vouchers import RedeemedVoucher
from hawker.db.models.vouchers import Voucher
from hawker.db.repo.points_repo import PointsRepo
from hawker.db.repo.vouchers_repo import VouchersRepo
from hawker.points.constants import (
    AWARD_POINTS,
    DASHBOARD_RECENT_LIMIT,
    HISTORY_DEFAULT_LIMIT,
    RECONCILE_BATCH_SIZE,
    VOUCHER_CODE_MAX_ATTEMPTS,
)
from hawker.points.errors import (
    InsufficientPointsError,
    UnknownAwardTypeError,
    VoucherAlreadyUsedError,
    VoucherExpiredError,
    VoucherNotFoundError,
)
from hawker.points.types import (
    AwardResult,
    PointsDashboard,
    PointsHistoryRecord,
    ReconcileResult,
    ReconcileSummary,
    RedeemedVoucherRecord,
    RedeemResult,
    VoucherRecord,
)

logger = structlog.get_logger(__name__)

_AWARD_LABELS = {
    "upload": "Photo upload",
    "upvote": "Upvote received",
}


class PointsLedger:
    """Per-user points balance kept equal to the sum of its append-only history.

    Every balance change appends one history row and updates the account in the same
    transaction while the account row is locked.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        locks: KeyedLocks | None = None,
        lock_timeout_seconds: float = 5.0,
        voucher_code_length: int = 10,
        clock: Callable[[], datetime] = utc_now,
        code_generator: Callable[[int], str] = generate_voucher_code,
    ) -> None:
        self._session_factory = session_factory
        self._locks = (
            locks if locks is not None else KeyedLocks(acquire_timeout=lock_timeout_seconds)
        )
        self._voucher_code_length = voucher_code_length
        self._clock = clock
        self._code_generator = code_generator

    async def get_balance(self, user_id: int) -> int:
        now_utc = self._clock()
        async with self._account_transaction(user_id) as session:
            account = await self._lock_account(session, user_id=user_id, now_utc=now_utc)
            return account.total_points

    async def award(
        self,
        user_id: int,
        action_type: str,
        *,
        stall_name: str | None = None,
        dish_name: str | None = None,
        reference_id: str | None = None,
    ) -> AwardResult:
        points = AWARD_POINTS.get(action_type)
        if points is None:
            raise UnknownAwardTypeError(f"Unknown award type {action_type!r}.")

        metadata: dict[str, object] = {}
        if stall_name:
            metadata["stall_name"] = stall_name
        if dish_name:
            metadata["dish_name"] = dish_name
        if reference_id:
            metadata["reference_id"] = reference_id

        now_utc = self._clock()
        async with self._account_transaction(user_id) as session:
            account = await self._lock_account(session, user_id=user_id, now_utc=now_utc)
            entry = await self._apply(
                session,
                account,
                delta=points,
                transaction_type=action_type,
                description=_award_description(action_type, stall_name, dish_name),
                metadata=metadata,
                now_utc=now_utc,
            )
            new_balance = account.total_points

        logger.info(
            "points_awarded",
            user_id=user_id,
            transaction_type=action_type,
            points=points,
            new_balance=new_balance,
        )
        return AwardResult(points_earned=points, new_balance=new_balance, entry=entry)

    async def adjust_points(self, user_id: int, delta: int, description: str) -> int:
        if delta == 0:
            raise InvalidRequestError("Adjustment must be non-zero.")
        if not description or not description.strip():
            raise InvalidRequestError("Adjustment requires a description.")

        now_utc = self._clock()
        async with self._account_transaction(user_id) as session:
            account = await self._lock_account(session, user_id=user_id, now_utc=now_utc)
            await self._apply(
                session,
                account,
                delta=delta,
                transaction_type="adjust",
                description=description.strip(),
                metadata={},
                now_utc=now_utc,
            )
            new_balance = account.total_points

        logger.info("points_adjusted", user_id=user_id, delta=delta, new_balance=new_balance)
        return new_balance

    async def redeem_voucher(self, user_id: int, voucher_id: int) -> RedeemResult:
        now_utc = self._clock()
        async with self._account_transaction(user_id) as session:
            voucher = await VouchersRepo.get_voucher(session, voucher_id)
            if voucher is None or not voucher.is_active:
                raise VoucherNotFoundError

            account = await self._lock_account(session, user_id=user_id, now_utc=now_utc)
            if account.total_points < voucher.points_required:
                raise InsufficientPointsError(
                    f"Voucher needs {voucher.points_required} points, "
                    f"balance is {account.total_points}."
                )

            points_spent = voucher.points_required
            voucher_code = await self._allocate_voucher_code(session)
            redeemed = await VouchersRepo.create_redeemed(
                session,
                redeemed=RedeemedVoucher(
                    user_id=user_id,
                    voucher_id=voucher.id,
                    voucher_code=voucher_code,
                    redeemed_at=now_utc,
                    expiry_date=now_utc + timedelta(days=voucher.validity_days),
                    is_used=False,
                ),
            )
            await self._apply(
                session,
                account,
                delta=-voucher.points_required,
                transaction_type="redeem",
                description=f"Redeemed voucher: {voucher.name}",
                metadata={"voucher_id": voucher.id, "voucher_code": voucher_code},
                now_utc=now_utc,
            )
            result = RedeemResult(
                redeemed=_as_redeemed_record(redeemed, voucher),
                new_balance=account.total_points,
            )

        logger.info(
            "voucher_redeemed",
            user_id=user_id,
            voucher_id=voucher_id,
            points_spent=points_spent,
            new_balance=result.new_balance,
        )
        return result

    async def use_voucher(
        self,
        user_id: int,
        code: str,
        *,
        order_id: str | None = None,
    ) -> RedeemedVoucherRecord:
        voucher_code = normalize_voucher_code(code)
        if not voucher_code:
            raise VoucherNotFoundError

        now_utc = self._clock()
        try:
            async with self._locks.hold(("voucher", voucher_code)):
                async with self._session_factory.begin() as session:
                    redeemed = await VouchersRepo.get_redeemed_by_code_for_update(
                        session, voucher_code
                    )
                    if redeemed is None or redeemed.user_id != user_id:
                        raise VoucherNotFoundError
                    if redeemed.is_used:
                        raise VoucherAlreadyUsedError
                    if ensure_utc(redeemed.expiry_date) < now_utc:
                        raise VoucherExpiredError

                    redeemed.is_used = True
                    redeemed.used_date = now_utc
                    redeemed.order_id = order_id
                    voucher = await VouchersRepo.get_voucher(session, redeemed.voucher_id)
                    record = _as_redeemed_record(redeemed, voucher)
        except LockTimeoutError as exc:
            raise StorageError("Voucher is busy. Retry later.") from exc
        except DBAPIError as exc:
            raise StorageError from exc

        logger.info("voucher_used", user_id=user_id, voucher_code=voucher_code, order_id=order_id)
        return record

    async def history(
        self, user_id: int, *, limit: int = HISTORY_DEFAULT_LIMIT
    ) -> list[PointsHistoryRecord]:
        async with self._read_session() as session:
            entries = await PointsRepo.list_history(session, user_id=user_id, limit=limit)
        return [_as_history_record(entry) for entry in entries]

    async def dashboard(self, user_id: int) -> PointsDashboard:
        now_utc = self._clock()
        async with self._account_transaction(user_id) as session:
            account = await self._lock_account(session, user_id=user_id, now_utc=now_utc)
            entries = await PointsRepo.list_history(
                session, user_id=user_id, limit=DASHBOARD_RECENT_LIMIT
            )
            return PointsDashboard(
                total_points=account.total_points,
                recent=[_as_history_record(entry) for entry in entries],
            )

    async def list_vouchers(self) -> list[VoucherRecord]:
        async with self._read_session() as session:
            vouchers = await VouchersRepo.list_active(session)
        return [_as_voucher_record(voucher) for voucher in vouchers]

    async def list_redeemed(self, user_id: int) -> list[RedeemedVoucherRecord]:
        async with self._read_session() as session:
            redeemed = await VouchersRepo.list_redeemed_for_user(session, user_id=user_id)
            records = []
            for item in redeemed:
                voucher = await VouchersRepo.get_voucher(session, item.voucher_id)
                records.append(_as_redeemed_record(item, voucher))
        return records

    async def get_redeemed_by_code(self, code: str) -> RedeemedVoucherRecord:
        voucher_code = normalize_voucher_code(code)
        if not voucher_code:
            raise VoucherNotFoundError
        async with self._read_session() as session:
            redeemed = await VouchersRepo.get_redeemed_by_code(session, voucher_code)
            if redeemed is None:
                raise VoucherNotFoundError
            voucher = await VouchersRepo.get_voucher(session, redeemed.voucher_id)
            return _as_redeemed_record(redeemed, voucher)

    async def reconcile(self, user_id: int) -> ReconcileResult:
        now_utc = self._clock()
        async with self._account_transaction(user_id) as session:
            account = await PointsRepo.get_account_for_update(session, user_id)
            recomputed = await PointsRepo.sum_history(session, user_id=user_id)
            if account is None:
                if recomputed == 0:
                    return ReconcileResult(
                        user_id=user_id,
                        previous_balance=0,
                        recomputed_balance=0,
                        repaired=False,
                    )
                account = await self._lock_account(session, user_id=user_id, now_utc=now_utc)

            previous = account.total_points
            repaired = previous != recomputed
            if repaired:
                account.total_points = recomputed
                account.updated_at = now_utc

        if repaired:
            logger.warning(
                "points_balance_drift_repaired",
                user_id=user_id,
                previous_balance=previous,
                recomputed_balance=recomputed,
            )
        return ReconcileResult(
            user_id=user_id,
            previous_balance=previous,
            recomputed_balance=recomputed,
            repaired=repaired,
        )

    async def reconcile_all(self, *, batch_size: int = RECONCILE_BATCH_SIZE) -> ReconcileSummary:
        checked = 0
        repaired = 0
        after_user_id: int | None = None
        while True:
            async with self._read_session() as session:
                user_ids = await PointsRepo.list_account_user_ids(
                    session, after_user_id=after_user_id, limit=batch_size
                )
            if not user_ids:
                break
            for user_id in user_ids:
                result = await self.reconcile(user_id)
                checked += 1
                if result.repaired:
                    repaired += 1
            after_user_id = user_ids[-1]

        logger.info("points_reconcile_finished", checked=checked, repaired=repaired)
        return ReconcileSummary(checked=checked, repaired=repaired)

    @asynccontextmanager
    async def _account_transaction(self, user_id: int) -> AsyncIterator[AsyncSession]:
        try:
            async with self._locks.hold(("account", user_id)):
                async with self._session_factory.begin() as session:
                    yield session
        except LockTimeoutError as exc:
            logger.warning("points_lock_timeout", user_id=user_id)
            raise StorageError("Points account is busy. Retry later.") from exc
        except DBAPIError as exc:
            raise StorageError from exc

    @asynccontextmanager
    async def _read_session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except DBAPIError as exc:
            raise StorageError from exc

    async def _lock_account(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> PointsAccount:
        account = await PointsRepo.get_account_for_update(session, user_id)
        if account is not None:
            return account

        try:
            async with session.begin_nested():
                await PointsRepo.create_account(session, user_id=user_id, now_utc=now_utc)
        except IntegrityError:
            # Another transaction created the account first.
            pass

        account = await PointsRepo.get_account_for_update(session, user_id)
        if account is None:
            raise StorageError("Points account could not be created.")
        return account

    async def _apply(
        self,
        session: AsyncSession,
        account: PointsAccount,
        *,
        delta: int,
        transaction_type: str,
        description: str,
        metadata: dict[str, object],
        now_utc: datetime,
    ) -> PointsHistoryRecord:
        new_balance = account.total_points + delta
        if new_balance < 0:
            raise InsufficientPointsError(
                f"Balance {account.total_points} cannot cover {abs(delta)} points."
            )

        entry = await PointsRepo.add_history(
            session,
            entry=PointsHistoryEntry(
                user_id=account.user_id,
                transaction_type=transaction_type,
                points=delta,
                description=description[:255],
                metadata_=metadata,
                created_at=now_utc,
            ),
        )
        account.total_points = new_balance
        account.updated_at = now_utc
        return _as_history_record(entry)

    async def _allocate_voucher_code(self, session: AsyncSession) -> str:
        for _ in range(VOUCHER_CODE_MAX_ATTEMPTS):
            candidate = self._code_generator(self._voucher_code_length)
            if not await VouchersRepo.code_exists(session, candidate):
                return candidate
            logger.info("voucher_code_collision", length=self._voucher_code_length)
        raise StorageError("Could not allocate a unique voucher code.")


def _award_description(action_type: str, stall_name: str | None, dish_name: str | None) -> str:
    label = _AWARD_LABELS[action_type]
    subject = " - ".join(part for part in (dish_name, stall_name) if part)
    if subject:
        return f"{label}: {subject}"
    return label


def _as_history_record(entry: PointsHistoryEntry) -> PointsHistoryRecord:
    return PointsHistoryRecord(
        id=entry.id,
        user_id=entry.user_id,
        transaction_type=entry.transaction_type,
        points=entry.points,
        description=entry.description,
        metadata=dict(entry.metadata_ or {}),
        created_at=ensure_utc(entry.created_at),
    )


def _as_voucher_record(voucher: Voucher) -> VoucherRecord:
    return VoucherRecord(
        id=voucher.id,
        name=voucher.name,
        description=voucher.description,
        points_required=voucher.points_required,
        discount_type=voucher.discount_type,
        discount_value=voucher.discount_value,
        min_spend=voucher.min_spend,
        validity_days=voucher.validity_days,
    )


def _as_redeemed_record(
    redeemed: RedeemedVoucher, voucher: Voucher | None
) -> RedeemedVoucherRecord:
    return RedeemedVoucherRecord(
        id=redeemed.id,
        user_id=redeemed.user_id,
        voucher_id=redeemed.voucher_id,
        voucher_code=redeemed.voucher_code,
        redeemed_at=ensure_utc(redeemed.redeemed_at),
        expiry_date=ensure_utc(redeemed.expiry_date),
        is_used=redeemed.is_used,
        used_date=ensure_utc(redeemed.used_date) if redeemed.used_date is not None else None,
        order_id=redeemed.order_id,
        voucher=_as_voucher_record(voucher) if voucher is not None else None,
    )
