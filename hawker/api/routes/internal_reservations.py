from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Request

from hawker.api.deps import assert_internal_access, get_reservation_ledger
from hawker.api.routes.reservations_models import (
    ReservationResponse,
    VenueReservationStatsResponse,
)
from hawker.reservations.ledger import STATS_DEFAULT_DAYS, ReservationLedger

router = APIRouter(tags=["internal", "reservations"])


@router.get(
    "/internal/venues/{venue_id}/reservations",
    response_model=list[ReservationResponse],
)
async def list_venue_reservations(
    venue_id: int,
    request: Request,
    from_date: date | None = Query(default=None),
    to_date: date | None = Query(default=None),
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> list[ReservationResponse]:
    assert_internal_access(request)

    records = await ledger.list_by_venue(venue_id, from_date=from_date, to_date=to_date)
    return [ReservationResponse.model_validate(record) for record in records]


@router.get(
    "/internal/venues/{venue_id}/reservations/stats",
    response_model=VenueReservationStatsResponse,
)
async def get_venue_reservation_stats(
    venue_id: int,
    request: Request,
    days: int = Query(default=STATS_DEFAULT_DAYS, ge=1, le=366),
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> VenueReservationStatsResponse:
    assert_internal_access(request)

    stats = await ledger.venue_stats(venue_id, days=days)
    return VenueReservationStatsResponse.model_validate(stats)
