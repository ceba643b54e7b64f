from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from hawker.api.deps import get_points_ledger
from hawker.api.routes.points_models import (
    RedeemedVoucherResponse,
    RedeemVoucherRequest,
    RedeemVoucherResponse,
    UseVoucherRequest,
    VoucherResponse,
)
from hawker.points.ledger import PointsLedger

router = APIRouter(tags=["vouchers"])


@router.get("/vouchers", response_model=list[VoucherResponse])
async def list_vouchers(
    ledger: PointsLedger = Depends(get_points_ledger),
) -> list[VoucherResponse]:
    vouchers = await ledger.list_vouchers()
    return [VoucherResponse.model_validate(voucher) for voucher in vouchers]


@router.post("/vouchers/redeem", response_model=RedeemVoucherResponse)
async def redeem_voucher(
    payload: RedeemVoucherRequest,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> RedeemVoucherResponse:
    result = await ledger.redeem_voucher(payload.user_id, payload.voucher_id)
    return RedeemVoucherResponse(
        redeemed=RedeemedVoucherResponse.model_validate(result.redeemed),
        new_balance=result.new_balance,
    )


@router.post("/vouchers/use", response_model=RedeemedVoucherResponse)
async def use_voucher(
    payload: UseVoucherRequest,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> RedeemedVoucherResponse:
    record = await ledger.use_voucher(
        payload.user_id,
        payload.voucher_code,
        order_id=payload.order_id,
    )
    return RedeemedVoucherResponse.model_validate(record)


@router.get("/vouchers/redeemed", response_model=list[RedeemedVoucherResponse])
async def list_redeemed_vouchers(
    user_id: int = Query(gt=0),
    ledger: PointsLedger = Depends(get_points_ledger),
) -> list[RedeemedVoucherResponse]:
    records = await ledger.list_redeemed(user_id)
    return [RedeemedVoucherResponse.model_validate(record) for record in records]


@router.get("/vouchers/code/{voucher_code}", response_model=RedeemedVoucherResponse)
async def get_redeemed_voucher(
    voucher_code: str,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> RedeemedVoucherResponse:
    record = await ledger.get_redeemed_by_code(voucher_code)
    return RedeemedVoucherResponse.model_validate(record)
