from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(slots=True)
class ReservationRecord:
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
    special_requests: str | None
    contact_phone: str | None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None


@dataclass(slots=True)
class TableRecord:
    id: int
    venue_id: int
    table_number: int
    capacity: int
    is_active: bool


@dataclass(frozen=True, slots=True)
class SlotAvailability:
    time: str
    available: bool


@dataclass(frozen=True, slots=True)
class VenueReservationStats:
    venue_id: int
    from_date: date
    total_reservations: int
    confirmed_reservations: int
    cancelled_reservations: int
    total_party_size: int
    average_party_size: float
