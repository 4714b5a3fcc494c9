from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator

from ..core.exceptions import ValidationError


def parse_iso_date(value: str, *, field: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date", field=field)


def parse_iso_datetime(value: str, *, field: str = "time") -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime."""
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 timestamp", field=field)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def minutes_since_midnight(value: datetime) -> int:
    return value.hour * 60 + value.minute


def is_weekend(value: date) -> bool:
    return value.weekday() >= 5


def start_of_week(value: date) -> date:
    """Weeks run Sunday to Saturday."""
    return value - timedelta(days=(value.weekday() + 1) % 7)


def end_of_week(value: date) -> date:
    return start_of_week(value) + timedelta(days=6)


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def start_of_year(value: date) -> date:
    return date(value.year, 1, 1)


def end_of_year(value: date) -> date:
    return date(value.year, 12, 31)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
