from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from hawker.api.deps import get_reservation_ledger
from hawker.api.routes.reservations_models import TableResponse
from hawker.reservations.ledger import ReservationLedger

router = APIRouter(tags=["venues"])


@router.get("/venues/{venue_id}/tables", response_model=list[TableResponse])
async def list_venue_tables(
    venue_id: int,
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> list[TableResponse]:
    tables = await ledger.list_tables(venue_id)
    return [TableResponse.model_validate(table) for table in tables]


@router.get("/venues/{venue_id}/available-tables", response_model=list[TableResponse])
async def list_available_tables(
    venue_id: int,
    reservation_date: date = Query(),
    start_time: str = Query(min_length=1, max_length=5),
    duration_minutes: int | None = Query(default=None, gt=0, le=720),
    party_size: int = Query(default=1, ge=1, le=50),
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> list[TableResponse]:
    tables = await ledger.available_tables(
        venue_id,
        reservation_date,
        start_time,
        duration_minutes=duration_minutes,
        party_size=party_size,
    )
    return [TableResponse.model_validate(table) for table in tables]
