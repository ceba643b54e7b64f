from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ReservationCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(gt=0)
    venue_id: int = Field(gt=0)
    table_id: int = Field(gt=0)
    reservation_date: date
    start_time: str = Field(min_length=1, max_length=5)
    end_time: str = Field(min_length=1, max_length=5)
    party_size: int = Field(default=1, ge=1, le=50)
    special_requests: str | None = Field(default=None, max_length=500)
    contact_phone: str | None = Field(default=None, max_length=32)


class ReservationCancelRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(gt=0)


class ReservationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    venue_id: int
    table_id: int
    table_number: int
    reservation_date: date
    start_time: str
    end_time: str
    party_size: int
    status: str
    special_requests: str | None = None
    contact_phone: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: str
    available: bool


class SlotsResponse(BaseModel):
    table_id: int
    reservation_date: date
    slots: list[SlotResponse]


class TableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    venue_id: int
    table_number: int
    capacity: int
    is_active: bool


class VenueReservationStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    venue_id: int
    from_date: date
    total_reservations: int
    confirmed_reservations: int
    cancelled_reservations: int
    total_party_size: int
    average_party_size: float
