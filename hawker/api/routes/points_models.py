from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AwardPointsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(gt=0)
    action_type: Literal["upload", "upvote"]
    stall_name: str | None = Field(default=None, max_length=128)
    dish_name: str | None = Field(default=None, max_length=128)
    reference_id: str | None = Field(default=None, max_length=64)


class AdjustPointsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(gt=0)
    delta: int
    description: str = Field(min_length=1, max_length=255)


class RedeemVoucherRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(gt=0)
    voucher_id: int = Field(gt=0)


class UseVoucherRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(gt=0)
    voucher_code: str = Field(min_length=1, max_length=64)
    order_id: str | None = Field(default=None, max_length=64)


class BalanceResponse(BaseModel):
    user_id: int
    total_points: int


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_type: str
    points: int
    description: str
    metadata: dict[str, Any]
    created_at: datetime


class AwardPointsResponse(BaseModel):
    points_earned: int
    new_balance: int
    entry: HistoryEntryResponse


class AdjustPointsResponse(BaseModel):
    user_id: int
    new_balance: int


class DashboardResponse(BaseModel):
    user_id: int
    total_points: int
    recent: list[HistoryEntryResponse]


class VoucherResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    points_required: int
    discount_type: str
    discount_value: float
    min_spend: float | None = None
    validity_days: int


class RedeemedVoucherResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    voucher_id: int
    voucher_code: str
    redeemed_at: datetime
    expiry_date: datetime
    is_used: bool
    used_date: datetime | None = None
    order_id: str | None = None
    voucher: VoucherResponse | None = None


class RedeemVoucherResponse(BaseModel):
    redeemed: RedeemedVoucherResponse
    new_balance: int


class ReconcileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    previous_balance: int
    recomputed_balance: int
    repaired: bool
