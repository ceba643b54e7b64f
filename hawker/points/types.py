from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(slots=True)
class PointsHistoryRecord:
    id: int
    user_id: int
    transaction_type: str
    points: int
    description: str
    metadata: dict[str, object]
    created_at: datetime


@dataclass(slots=True)
class AwardResult:
    points_earned: int
    new_balance: int
    entry: PointsHistoryRecord


@dataclass(slots=True)
class VoucherRecord:
    id: int
    name: str
    description: str | None
    points_required: int
    discount_type: str
    discount_value: Decimal
    min_spend: Decimal | None
    validity_days: int


@dataclass(slots=True)
class RedeemedVoucherRecord:
    id: int
    user_id: int
    voucher_id: int
    voucher_code: str
    redeemed_at: datetime
    expiry_date: datetime
    is_used: bool
    used_date: datetime | None
    order_id: str | None
    voucher: VoucherRecord | None = None


@dataclass(slots=True)
class RedeemResult:
    redeemed: RedeemedVoucherRecord
    new_balance: int


@dataclass(slots=True)
class PointsDashboard:
    total_points: int
    recent: list[PointsHistoryRecord] = field(default_factory=list)


@dataclass(slots=True)
class ReconcileResult:
    user_id: int
    previous_balance: int
    recomputed_balance: int
    repaired: bool


@dataclass(slots=True)
class ReconcileSummary:
    checked: int
    repaired: int
