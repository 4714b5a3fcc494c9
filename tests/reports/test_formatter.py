from __future__ import annotations

import csv
import io
from datetime import datetime

from src.attendance_ledger.attendance_ledger.reports.formatter import CSV_COLUMNS, to_csv, to_payload
from tests.fakes import record


def test_payload_shape_for_weekly(reports, attendance_repo, fixed_now):
    attendance_repo.add(record(3, datetime(2026, 1, 12, 9, 45)))

    payload = to_payload(reports.report("weekly", now=fixed_now))

    assert payload["period"] == "weekly"
    assert payload["startDate"] == "2026-01-11"
    assert payload["endDate"] == "2026-01-17"
    assert payload["chartData"][1] == {"name": "Mon, Jan 12", "date": "2026-01-12", "present": 1, "late": 1, "absent": 2}
    assert payload["pieData"] == [{"name": "Engineering", "value": 1}]
    assert set(payload["summary"]) == {
        "totalRecords", "present", "absent", "late", "totalEmployees", "expectedDays", "attendanceRate",
    }


def test_payload_hour_and_week_buckets(reports, fixed_now):
    daily = to_payload(reports.report("daily", now=fixed_now))
    assert daily["chartData"][0] == {
        "name": "06:00", "hour": 6, "early": 0, "onTime": 0, "late": 0, "veryLate": 0, "checkOuts": 0,
    }

    monthly = to_payload(reports.report("monthly", now=fixed_now))
    assert monthly["chartData"][0]["name"] == "W1: Jan 1"
    assert monthly["chartData"][0]["fullName"] == "Jan 1 - Jan 3"


def test_csv_rows(reports, attendance_repo, fixed_now):
    attendance_repo.add(record(3, datetime(2026, 1, 14, 9, 45), datetime(2026, 1, 14, 18, 0), worked_minutes=495, overtime_minutes=15, notes="client visit"))
    attendance_repo.add(record(99, datetime(2026, 1, 14, 8, 0)))

    text = to_csv(reports.report("daily", now=fixed_now))

    assert text.startswith("\ufeff")
    rows = list(csv.DictReader(io.StringIO(text.lstrip("\ufeff"))))
    assert [list(r) for r in rows][0] == CSV_COLUMNS
    by_id = {r["Employee ID"]: r for r in rows}

    assert by_id["EMP003"]["Employee Name"] == "Employee 3"
    assert by_id["EMP003"]["Department"] == "Engineering"
    assert by_id["EMP003"]["Check In"] == "2026-01-14T09:45:00"
    assert by_id["EMP003"]["Check Out"] == "2026-01-14T18:00:00"
    assert by_id["EMP003"]["Worked Minutes"] == "495"
    assert by_id["EMP003"]["Overtime Minutes"] == "15"
    assert by_id["EMP003"]["Notes"] == "client visit"
    # Unknown employee falls back to the raw id.
    assert by_id["99"]["Employee Name"] == ""
    assert by_id["99"]["Check Out"] == ""


def test_csv_with_no_rows_is_header_only(reports, fixed_now):
    text = to_csv(reports.report("daily", now=fixed_now))

    assert text.lstrip("\ufeff").strip().splitlines() == [",".join(CSV_COLUMNS)]
