from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from hawker.api.deps import get_points_ledger
from hawker.api.routes.points_models import (
    AwardPointsRequest,
    AwardPointsResponse,
    BalanceResponse,
    DashboardResponse,
    HistoryEntryResponse,
)
from hawker.points.constants import HISTORY_DEFAULT_LIMIT
from hawker.points.ledger import PointsLedger

router = APIRouter(tags=["points"])


@router.get("/points/{user_id}", response_model=BalanceResponse)
async def get_points_balance(
    user_id: int,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> BalanceResponse:
    total_points = await ledger.get_balance(user_id)
    return BalanceResponse(user_id=user_id, total_points=total_points)


@router.get("/points/{user_id}/history", response_model=list[HistoryEntryResponse])
async def get_points_history(
    user_id: int,
    limit: int = Query(default=HISTORY_DEFAULT_LIMIT, ge=1, le=200),
    ledger: PointsLedger = Depends(get_points_ledger),
) -> list[HistoryEntryResponse]:
    entries = await ledger.history(user_id, limit=limit)
    return [HistoryEntryResponse.model_validate(entry) for entry in entries]


@router.get("/points/{user_id}/dashboard", response_model=DashboardResponse)
async def get_points_dashboard(
    user_id: int,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> DashboardResponse:
    dashboard = await ledger.dashboard(user_id)
    return DashboardResponse(
        user_id=user_id,
        total_points=dashboard.total_points,
        recent=[HistoryEntryResponse.model_validate(entry) for entry in dashboard.recent],
    )


@router.post("/points/award", response_model=AwardPointsResponse)
async def award_points(
    payload: AwardPointsRequest,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> AwardPointsResponse:
    result = await ledger.award(
        payload.user_id,
        payload.action_type,
        stall_name=payload.stall_name,
        dish_name=payload.dish_name,
        reference_id=payload.reference_id,
    )
    return AwardPointsResponse(
        points_earned=result.points_earned,
        new_balance=result.new_balance,
        entry=HistoryEntryResponse.model_validate(result.entry),
    )
