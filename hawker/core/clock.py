from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attaches UTC to naive datetimes read back from stores without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_date(now_utc: datetime, tz_name: str) -> date:
    return ensure_utc(now_utc).astimezone(ZoneInfo(tz_name)).date()


def local_hhmm(now_utc: datetime, tz_name: str) -> str:
    return ensure_utc(now_utc).astimezone(ZoneInfo(tz_name)).strftime("%H:%M")
