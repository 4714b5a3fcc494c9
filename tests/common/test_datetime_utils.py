from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from src.attendance_ledger.attendance_ledger.common.datetime_utils import (
    end_of_month,
    end_of_week,
    is_weekend,
    iter_days,
    minutes_since_midnight,
    parse_iso_date,
    parse_iso_datetime,
    start_of_week,
)
from src.attendance_ledger.attendance_ledger.core.exceptions import ValidationError


def test_week_runs_sunday_to_saturday():
    assert start_of_week(date(2026, 1, 14)) == date(2026, 1, 11)
    assert start_of_week(date(2026, 1, 11)) == date(2026, 1, 11)
    assert start_of_week(date(2026, 1, 17)) == date(2026, 1, 11)
    assert end_of_week(date(2026, 1, 14)) == date(2026, 1, 17)


def test_end_of_month_leap_year():
    assert end_of_month(date(2028, 2, 3)) == date(2028, 2, 29)
    assert end_of_month(date(2026, 2, 3)) == date(2026, 2, 28)


def test_weekend():
    assert is_weekend(date(2026, 1, 17))
    assert is_weekend(date(2026, 1, 18))
    assert not is_weekend(date(2026, 1, 19))


def test_minutes_since_midnight():
    assert minutes_since_midnight(datetime(2026, 1, 14, 9, 45, 59)) == 585


def test_iter_days_inclusive():
    days = list(iter_days(date(2026, 1, 30), date(2026, 2, 2)))
    assert days == [date(2026, 1, 30), date(2026, 1, 31), date(2026, 2, 1), date(2026, 2, 2)]
    assert list(iter_days(date(2026, 1, 2), date(2026, 1, 1))) == []


def test_parse_iso_date():
    assert parse_iso_date("2026-01-14") == date(2026, 1, 14)
    assert parse_iso_date("2026-01-14T10:00:00Z") == date(2026, 1, 14)
    with pytest.raises(ValidationError) as exc:
        parse_iso_date("14/01/2026", field="startDate")
    assert exc.value.field == "startDate"


def test_parse_iso_datetime_converts_to_naive_local():
    naive = parse_iso_datetime("2026-01-14T09:45:00")
    assert naive == datetime(2026, 1, 14, 9, 45)

    aware = parse_iso_datetime("2026-01-14T09:45:00Z")
    expected = datetime(2026, 1, 14, 9, 45, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert aware.tzinfo is None
    assert aware == expected

    with pytest.raises(ValidationError):
        parse_iso_datetime("yesterday")
