from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

import pytest

from src.attendance_ledger.attendance_ledger.attendance.model import ManyRecords, RecordFilters, RequestContext, SingleRecord
from src.attendance_ledger.attendance_ledger.attendance.service import AttendanceLedger
from src.attendance_ledger.attendance_ledger.auth.model import Principal
from src.attendance_ledger.attendance_ledger.core.enums import AttendanceStatus, Role
from src.attendance_ledger.attendance_ledger.core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    AuthorizationError,
    EmployeeInactiveError,
    EmployeeNotFoundError,
    NoCheckInFoundError,
    RecordNotFoundError,
    ValidationError,
)
from tests.fakes import InMemoryAttendance


def test_check_in_creates_record_with_default_location(ledger, staff, fixed_now):
    ctx = RequestContext(source_ip="10.0.0.7", device_info="pytest")
    record = ledger.check_in(staff, notes="hello", context=ctx, now=fixed_now)

    assert record.employee_id == 3
    assert record.work_date == fixed_now.date()
    assert record.check_in.time == fixed_now
    assert record.check_in.location == "Office"
    assert record.check_in.source_ip == "10.0.0.7"
    assert record.status == AttendanceStatus.PRESENT
    assert record.notes == "hello"
    assert record.check_out is None


def test_second_check_in_same_day_is_rejected(ledger, staff, fixed_now, attendance_repo):
    first = ledger.check_in(staff, location="HQ", now=fixed_now)

    with pytest.raises(AlreadyCheckedInError):
        ledger.check_in(staff, location="Elsewhere", now=fixed_now + timedelta(hours=1))

    stored = attendance_repo.get_by_id(first.attendance_id)
    assert stored.check_in.location == "HQ"
    assert len(attendance_repo.records) == 1


def test_next_day_gets_a_new_record(ledger, staff, fixed_now, attendance_repo):
    ledger.check_in(staff, now=fixed_now)
    ledger.check_in(staff, now=fixed_now + timedelta(days=1))

    assert len(attendance_repo.records) == 2


def test_check_out_computes_worked_and_overtime(ledger, staff, fixed_now):
    ledger.check_in(staff, now=fixed_now)  # 09:45
    record = ledger.check_out(staff, now=fixed_now.replace(hour=18, minute=0))

    assert record.worked_minutes == 495
    assert record.overtime_minutes == 15
    assert record.check_out.location == "Office"


def test_check_out_without_check_in(ledger, staff, fixed_now):
    with pytest.raises(NoCheckInFoundError):
        ledger.check_out(staff, now=fixed_now)


def test_second_check_out_fails_and_keeps_first(ledger, staff, fixed_now, attendance_repo):
    ledger.check_in(staff, now=fixed_now)
    first = ledger.check_out(staff, now=fixed_now + timedelta(hours=8))

    with pytest.raises(AlreadyCheckedOutError):
        ledger.check_out(staff, now=fixed_now + timedelta(hours=9))

    stored = attendance_repo.get_by_id(first.attendance_id)
    assert stored.check_out.time == first.check_out.time
    assert stored.worked_minutes == 480


def test_check_in_stamps_an_admin_marked_day(ledger, admin, staff, fixed_now, attendance_repo):
    marked = ledger.mark_day(admin, employee_id=3, work_date=fixed_now.date(), status=AttendanceStatus.HALF_DAY)
    assert marked.check_in is None

    record = ledger.check_in(staff, now=fixed_now)

    assert record.attendance_id == marked.attendance_id
    assert record.check_in.time == fixed_now
    assert record.status == AttendanceStatus.HALF_DAY
    assert len(attendance_repo.records) == 1


def test_employee_cannot_check_in_someone_else(ledger, staff, fixed_now):
    with pytest.raises(AuthorizationError):
        ledger.check_in(staff, employee_id=2, now=fixed_now)


def test_admin_checks_in_on_behalf(ledger, admin, fixed_now):
    record = ledger.check_in(admin, employee_id=2, location="Front desk", now=fixed_now)

    assert record.employee_id == 2
    assert record.check_in.location == "Front desk"


def test_admin_cannot_check_in_inactive_employee(ledger, admin, fixed_now):
    with pytest.raises(EmployeeInactiveError):
        ledger.check_in(admin, employee_id=4, now=fixed_now)


def test_unknown_employee(ledger, admin, fixed_now):
    with pytest.raises(EmployeeNotFoundError):
        ledger.check_out(admin, employee_id=999, now=fixed_now)


def test_inactive_self_is_rejected(ledger, fixed_now):
    with pytest.raises(EmployeeInactiveError):
        ledger.check_in(Principal(employee_id=4, role=Role.EMPLOYEE), now=fixed_now)


def test_update_record_sets_status_and_approval(ledger, admin, staff, fixed_now):
    record = ledger.check_in(staff, now=fixed_now)

    updated = ledger.update_record(admin, record.attendance_id, status=AttendanceStatus.ABSENT, notes="checked", now=fixed_now)

    assert updated.status == AttendanceStatus.ABSENT
    assert updated.notes == "checked"
    assert updated.approval.approved_by == 1
    # Timestamps untouched
    assert updated.check_in.time == fixed_now


def test_update_record_requires_privilege(ledger, staff, fixed_now):
    record = ledger.check_in(staff, now=fixed_now)

    with pytest.raises(AuthorizationError):
        ledger.update_record(staff, record.attendance_id, status=AttendanceStatus.LEAVE)


def test_update_missing_record(ledger, admin):
    with pytest.raises(RecordNotFoundError):
        ledger.update_record(admin, 42, notes="x")


def test_force_set_times_bypasses_guards_and_recomputes(ledger, admin, staff, fixed_now):
    ledger.check_in(staff, now=fixed_now)
    record = ledger.check_out(staff, now=fixed_now + timedelta(hours=1))

    day = fixed_now.date()
    fixed = ledger.force_set_times(
        admin,
        record.attendance_id,
        check_in_time=datetime.combine(day, datetime.min.time()).replace(hour=8),
        check_out_time=datetime.combine(day, datetime.min.time()).replace(hour=17, minute=30),
        now=fixed_now,
    )

    assert fixed.worked_minutes == 570
    assert fixed.overtime_minutes == 90
    assert fixed.approval.approved_by == 1
    assert fixed.check_in.location == "Office"


def test_force_set_times_rejects_inverted_range(ledger, admin, staff, fixed_now):
    record = ledger.check_in(staff, now=fixed_now)

    with pytest.raises(ValidationError):
        ledger.force_set_times(
            admin,
            record.attendance_id,
            check_in_time=fixed_now,
            check_out_time=fixed_now - timedelta(minutes=1),
        )


def test_force_set_times_requires_privilege(ledger, staff, fixed_now):
    record = ledger.check_in(staff, now=fixed_now)

    with pytest.raises(AuthorizationError):
        ledger.force_set_times(staff, record.attendance_id, check_in_time=fixed_now)


class _UnchangedRowsAttendance(InMemoryAttendance):
    """Reports zero affected rows the way MySQL does when an UPDATE changes nothing."""

    def update_status_notes(self, **kwargs) -> bool:
        super().update_status_notes(**kwargs)
        return False

    def admin_update_times(self, **kwargs) -> bool:
        super().admin_update_times(**kwargs)
        return False


def test_edits_that_change_nothing_still_succeed(directory, tokens, admin, staff, fixed_now):
    ledger = AttendanceLedger(_UnchangedRowsAttendance(), directory, tokens)
    record = ledger.check_in(staff, notes="same", now=fixed_now)

    updated = ledger.update_record(admin, record.attendance_id, notes="same", now=fixed_now)
    assert updated.notes == "same"

    forced = ledger.force_set_times(admin, record.attendance_id, check_in_time=fixed_now, now=fixed_now)
    assert forced.check_in.time == fixed_now


def test_force_set_times_rejects_other_days(ledger, admin, staff, fixed_now):
    record = ledger.check_in(staff, now=fixed_now)

    with pytest.raises(ValidationError) as exc:
        ledger.force_set_times(admin, record.attendance_id, check_in_time=fixed_now - timedelta(days=1))
    assert exc.value.field == "checkIn"

    with pytest.raises(ValidationError) as exc:
        ledger.force_set_times(
            admin,
            record.attendance_id,
            check_in_time=fixed_now,
            check_out_time=fixed_now + timedelta(days=1),
        )
    assert exc.value.field == "checkOut"


def test_force_set_times_clearing_check_out_is_logged(ledger, admin, staff, fixed_now, caplog):
    ledger.check_in(staff, now=fixed_now)
    record = ledger.check_out(staff, now=fixed_now + timedelta(hours=8))

    with caplog.at_level(logging.WARNING, logger=AttendanceLedger.__module__):
        cleared = ledger.force_set_times(admin, record.attendance_id, check_in_time=fixed_now, now=fixed_now)

    assert cleared.check_out is None
    assert cleared.worked_minutes == 0
    assert any("check-out" in r.getMessage() and "cleared" in r.getMessage() for r in caplog.records)


def test_today_is_a_single_record_for_employees(ledger, staff, fixed_now):
    assert ledger.today(staff, now=fixed_now) == SingleRecord(work_date=fixed_now.date(), record=None)

    ledger.check_in(staff, now=fixed_now)
    snapshot = ledger.today(staff, now=fixed_now)

    assert isinstance(snapshot, SingleRecord)
    assert snapshot.kind == "single"
    assert snapshot.record.employee_id == 3


def test_today_lists_every_record_for_admins(ledger, admin, staff, fixed_now):
    ledger.check_in(staff, now=fixed_now)
    ledger.check_in(admin, employee_id=2, now=fixed_now)

    snapshot = ledger.today(admin, now=fixed_now)

    assert isinstance(snapshot, ManyRecords)
    assert snapshot.kind == "many"
    assert {r.employee_id for r in snapshot.records} == {2, 3}


def test_list_records_scopes_employees_to_themselves(ledger, admin, staff, fixed_now):
    ledger.check_in(staff, now=fixed_now)
    ledger.check_in(admin, employee_id=2, now=fixed_now)

    page = ledger.list_records(staff, RecordFilters(employee_id=2))

    assert [r.employee_id for r in page.items] == [3]
    assert page.total == 1

    page = ledger.list_records(admin, RecordFilters(limit=1))
    assert page.total == 2
    assert page.pages == 2
    assert len(page.items) == 1


def test_list_records_rejects_inverted_dates(ledger, admin):
    with pytest.raises(ValidationError):
        ledger.list_records(admin, RecordFilters(start_date=date(2026, 2, 1), end_date=date(2026, 1, 1)))


def test_employee_history_self_or_privileged(ledger, admin, staff, fixed_now):
    ledger.check_in(staff, now=fixed_now)

    assert ledger.employee_history(staff, 3).total == 1
    assert ledger.employee_history(admin, 3).total == 1
    with pytest.raises(AuthorizationError):
        ledger.employee_history(staff, 2)
