from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from hawker.api.deps import assert_internal_access, get_points_ledger
from hawker.api.routes.points_models import (
    AdjustPointsRequest,
    AdjustPointsResponse,
    ReconcileResponse,
)
from hawker.points.ledger import PointsLedger

router = APIRouter(tags=["internal", "points"])


@router.post("/internal/points/adjust", response_model=AdjustPointsResponse)
async def adjust_points(
    payload: AdjustPointsRequest,
    request: Request,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> AdjustPointsResponse:
    assert_internal_access(request)

    new_balance = await ledger.adjust_points(payload.user_id, payload.delta, payload.description)
    return AdjustPointsResponse(user_id=payload.user_id, new_balance=new_balance)


@router.post("/internal/points/{user_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_points(
    user_id: int,
    request: Request,
    ledger: PointsLedger = Depends(get_points_ledger),
) -> ReconcileResponse:
    assert_internal_access(request)

    result = await ledger.reconcile(user_id)
    return ReconcileResponse.model_validate(result)
