from __future__ import annotations

from bisect import bisect_left, insort
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from typing import Protocol

from hawker.db.models.reservations import RESERVATION_STATUS_CONFIRMED
from hawker.reservations.time_slots import overlaps, to_minutes


class Booking(Protocol):
    id: int
    table_id: int
    reservation_date: date
    start_time: str
    end_time: str
    status: str


_Entry = tuple[int, int, int, Booking]


class AvailabilityIndex:
    """Confirmed bookings grouped by (table_id, date), sorted by start minute."""

    def __init__(self, bookings: Iterable[Booking] = ()) -> None:
        self._by_key: dict[tuple[int, date], list[_Entry]] = defaultdict(list)
        for booking in bookings:
            self.add(booking)

    def add(self, booking: Booking) -> None:
        if booking.status != RESERVATION_STATUS_CONFIRMED:
            return
        entry = (to_minutes(booking.start_time), to_minutes(booking.end_time), booking.id, booking)
        insort(self._by_key[(booking.table_id, booking.reservation_date)], entry, key=_sort_key)

    def find_conflicts(
        self,
        table_id: int,
        reservation_date: date,
        start: str | int,
        end: str | int,
    ) -> list[Booking]:
        start_minute = _as_minutes(start)
        end_minute = _as_minutes(end)
        entries = self._by_key.get((table_id, reservation_date), [])
        # Entries starting at or after `end` cannot intersect [start, end).
        upper = bisect_left(entries, end_minute, key=lambda entry: entry[0])
        return [
            booking
            for entry_start, entry_end, _, booking in entries[:upper]
            if overlaps(start_minute, end_minute, entry_start, entry_end)
        ]

    def is_time_taken(self, table_id: int, reservation_date: date, at: str | int) -> bool:
        minute = _as_minutes(at)
        return any(
            entry_start <= minute < entry_end
            for entry_start, entry_end, _, _ in self._by_key.get((table_id, reservation_date), ())
        )


def _sort_key(entry: _Entry) -> tuple[int, int]:
    return entry[0], entry[2]


def _as_minutes(value: str | int) -> int:
    if isinstance(value, int):
        return value
    return to_minutes(value)
