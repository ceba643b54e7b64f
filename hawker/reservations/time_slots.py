from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from hawker.core.errors import InvalidRequestError
from hawker.reservations.errors import InvalidIntervalError, InvalidTimeFormatError

MINUTES_PER_DAY = 24 * 60
DEFAULT_DAY_START = "10:00"
DEFAULT_DAY_END = "22:00"
DEFAULT_STEP_MINUTES = 30

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def to_minutes(hhmm: str) -> int:
    if not isinstance(hhmm, str):
        raise InvalidTimeFormatError
    match = _HHMM_RE.match(hhmm.strip())
    if match is None:
        raise InvalidTimeFormatError(f"Invalid time {hhmm!r}: expected HH:MM in 24-hour format.")
    return int(match.group(1)) * 60 + int(match.group(2))


def from_minutes(minutes: int) -> str:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise InvalidTimeFormatError(f"Minute offset {minutes} is outside a day.")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open intersection: [10:00,11:00) and [11:00,12:00) do not overlap."""
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True, slots=True)
class SlotRange:
    """Slot start times in [start_minute, end_minute); iterating again starts over."""

    start_minute: int
    end_minute: int
    step_minutes: int

    def __iter__(self) -> Iterator[str]:
        for minute in range(self.start_minute, self.end_minute, self.step_minutes):
            yield from_minutes(minute)

    def __len__(self) -> int:
        return len(range(self.start_minute, self.end_minute, self.step_minutes))


def enumerate_slots(
    day_start: str = DEFAULT_DAY_START,
    day_end: str = DEFAULT_DAY_END,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> SlotRange:
    start_minute = to_minutes(day_start)
    end_minute = to_minutes(day_end)
    if end_minute <= start_minute:
        raise InvalidIntervalError("Day end must be after day start.")
    if step_minutes <= 0:
        raise InvalidRequestError("Slot step must be a positive number of minutes.")
    return SlotRange(start_minute=start_minute, end_minute=end_minute, step_minutes=step_minutes)
