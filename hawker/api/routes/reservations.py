from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from hawker.api.deps import get_reservation_ledger
from hawker.api.routes.reservations_models import (
    ReservationCancelRequest,
    ReservationCreateRequest,
    ReservationResponse,
    SlotResponse,
    SlotsResponse,
)
from hawker.reservations.ledger import ReservationLedger

router = APIRouter(tags=["reservations"])


@router.get("/reservations/by-table", response_model=list[ReservationResponse])
async def list_reservations_for_table(
    table_id: int = Query(gt=0),
    reservation_date: date = Query(),
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> list[ReservationResponse]:
    records = await ledger.list_by_table_and_date(table_id, reservation_date)
    return [ReservationResponse.model_validate(record) for record in records]


@router.get("/reservations/slots", response_model=SlotsResponse)
async def get_available_slots(
    table_id: int = Query(gt=0),
    reservation_date: date = Query(),
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> SlotsResponse:
    slots = await ledger.available_slots(table_id, reservation_date)
    return SlotsResponse(
        table_id=table_id,
        reservation_date=reservation_date,
        slots=[SlotResponse.model_validate(slot) for slot in slots],
    )


@router.post(
    "/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: ReservationCreateRequest,
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> ReservationResponse:
    record = await ledger.create(
        user_id=payload.user_id,
        venue_id=payload.venue_id,
        table_id=payload.table_id,
        reservation_date=payload.reservation_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        party_size=payload.party_size,
        special_requests=payload.special_requests,
        contact_phone=payload.contact_phone,
    )
    return ReservationResponse.model_validate(record)


@router.get("/reservations", response_model=list[ReservationResponse])
async def list_user_reservations(
    user_id: int = Query(gt=0),
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> list[ReservationResponse]:
    records = await ledger.list_by_user(user_id)
    return [ReservationResponse.model_validate(record) for record in records]


@router.get("/reservations/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    user_id: int = Query(gt=0),
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> ReservationResponse:
    record = await ledger.get(reservation_id, user_id)
    return ReservationResponse.model_validate(record)


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: int,
    payload: ReservationCancelRequest,
    ledger: ReservationLedger = Depends(get_reservation_ledger),
) -> ReservationResponse:
    record = await ledger.cancel(reservation_id, payload.user_id)
    return ReservationResponse.model_validate(record)
