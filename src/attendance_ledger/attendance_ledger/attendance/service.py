from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..auth.model import Principal
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LOCATION, MAX_PAGE_SIZE, QR_LOCATION
from ..core.enums import AttendanceStatus, QRAction, Role
from ..core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    AuthorizationError,
    EmployeeInactiveError,
    EmployeeNotFoundError,
    NoCheckInFoundError,
    RecordNotFoundError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeDirectory
from ..tokens.model import IssuedQRToken
from ..tokens.service import QRTokenService
from .calculator.base import WorkedTimeCalculator
from .calculator.standard_calculator import StandardWorkdayCalculator
from .model import (
    Approval,
    AttendanceRecord,
    ManyRecords,
    RecordFilters,
    RecordPage,
    RequestContext,
    SingleRecord,
    Stamp,
    TodaySnapshot,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("attendance_ledger.security")


@dataclass(frozen=True)
class QRScanResult:
    action: QRAction
    record: AttendanceRecord


class AttendanceLedger:
    """Owns the per-employee-per-day record and its check-in/check-out transitions.

    States per (employee, day): no record -> checked in -> checked out. There is
    no way back. Direct, admin-assisted and QR requests all go through the same
    guarded transitions; only ``force_set_times`` bypasses them.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        directory: EmployeeDirectory,
        tokens: QRTokenService,
        *,
        calculator: Optional[WorkedTimeCalculator] = None,
    ):
        self._attendance = attendance
        self._directory = directory
        self._tokens = tokens
        self._calculator = calculator or StandardWorkdayCalculator()

    # ----- identity -----

    def _resolve_target(self, principal: Principal, employee_id: Optional[int]) -> Employee:
        target_id = principal.employee_id if employee_id is None else int(employee_id)

        if target_id != principal.employee_id and not principal.is_privileged:
            security_logger.warning(
                "employee %s tried to act on employee %s", principal.employee_id, target_id
            )
            raise AuthorizationError("You can only check yourself in or out")

        employee = self._directory.find_by_id(target_id)
        if not employee:
            raise EmployeeNotFoundError("Employee not found")
        if not employee.is_active:
            raise EmployeeInactiveError(f"Employee {employee.name} is not active")
        return employee

    @staticmethod
    def _require_privileged(principal: Principal) -> None:
        if not principal.is_privileged:
            security_logger.warning("employee %s attempted a privileged ledger operation", principal.employee_id)
            raise AuthorizationError("Admin or HR role required")

    def _get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise RecordNotFoundError("Attendance record not found")
        return record

    # ----- transitions -----

    def check_in(
        self,
        principal: Principal,
        *,
        employee_id: Optional[int] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        context: Optional[RequestContext] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        employee = self._resolve_target(principal, employee_id)
        context = context or RequestContext()

        stamp = Stamp(
            time=now,
            location=location or DEFAULT_LOCATION,
            source_ip=context.source_ip,
            device_info=context.device_info,
        )

        existing = self._attendance.get_for_employee_and_date(employee.employee_id, today)
        if existing and existing.is_checked_in:
            raise AlreadyCheckedInError("Already checked in today")

        if existing:
            # Day was marked by an admin before the employee arrived.
            if not self._attendance.stamp_checkin(attendance_id=existing.attendance_id, check_in=stamp, notes=notes):
                raise AlreadyCheckedInError("Already checked in today")
            record = self._get_record(existing.attendance_id)
        else:
            record = self._attendance.create_checkin(
                employee_id=employee.employee_id,
                work_date=today,
                check_in=stamp,
                status=AttendanceStatus.PRESENT,
                notes=notes,
            )

        logger.info(
            "check-in employee=%s by=%s at=%s location=%s",
            employee.employee_id, principal.employee_id, now.isoformat(timespec="seconds"), stamp.location,
        )
        return record

    def check_out(
        self,
        principal: Principal,
        *,
        employee_id: Optional[int] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        context: Optional[RequestContext] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        employee = self._resolve_target(principal, employee_id)
        context = context or RequestContext()

        record = self._attendance.get_for_employee_and_date(employee.employee_id, today)
        if not record or not record.is_checked_in:
            raise NoCheckInFoundError("No check-in record found for today")
        if record.is_checked_out:
            raise AlreadyCheckedOutError("Already checked out today")

        stamp = Stamp(
            time=now,
            location=location or DEFAULT_LOCATION,
            source_ip=context.source_ip,
            device_info=context.device_info,
        )
        worked = self._calculator.compute(record.check_in_time, now)

        ok = self._attendance.stamp_checkout(
            attendance_id=record.attendance_id,
            check_out=stamp,
            worked_minutes=worked.worked_minutes,
            overtime_minutes=worked.overtime_minutes,
            notes=notes,
        )
        if not ok:
            raise AlreadyCheckedOutError("Already checked out today")

        logger.info(
            "check-out employee=%s by=%s worked=%s overtime=%s",
            employee.employee_id, principal.employee_id, worked.worked_minutes, worked.overtime_minutes,
        )
        return self._get_record(record.attendance_id)

    # ----- QR path -----

    def issue_qr(self, principal: Principal, action: QRAction | str) -> IssuedQRToken:
        employee = self._resolve_target(principal, None)
        return self._tokens.issue(employee.employee_id, action)

    def scan_qr(
        self,
        principal: Principal,
        token: str,
        *,
        context: Optional[RequestContext] = None,
        now: Optional[datetime] = None,
    ) -> QRScanResult:
        self._require_privileged(principal)
        claims = self._tokens.validate(token)

        # Act exactly as the employee would; the Already* guards still apply.
        as_employee = Principal(employee_id=claims.employee_id, role=Role.EMPLOYEE)
        if claims.action == QRAction.CHECK_IN:
            record = self.check_in(as_employee, location=QR_LOCATION, context=context, now=now)
        else:
            record = self.check_out(as_employee, location=QR_LOCATION, context=context, now=now)

        logger.info("QR %s for employee %s scanned by %s", claims.action.value, claims.employee_id, principal.employee_id)
        return QRScanResult(action=claims.action, record=record)

    # ----- privileged edits -----

    def update_record(
        self,
        principal: Principal,
        attendance_id: int,
        *,
        status: Optional[AttendanceStatus] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        self._require_privileged(principal)
        record = self._get_record(attendance_id)

        approval = Approval(approved_by=principal.employee_id, approved_at=now or now_local())
        # Zero affected rows only means nothing changed; the record exists.
        self._attendance.update_status_notes(
            attendance_id=record.attendance_id,
            status=status or record.status,
            notes=notes if notes is not None else record.notes,
            approval=approval,
        )

        logger.info("record %s updated by %s (status=%s)", record.attendance_id, principal.employee_id, status)
        return self._get_record(record.attendance_id)

    def force_set_times(
        self,
        principal: Principal,
        attendance_id: int,
        *,
        check_in_time: datetime,
        check_out_time: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Overwrite both timestamps directly, skipping the transition guards."""

        self._require_privileged(principal)
        record = self._get_record(attendance_id)

        if check_in_time is None:
            raise ValidationError("checkIn is required", field="checkIn")
        if check_out_time is not None and check_out_time < check_in_time:
            raise ValidationError("Check-out cannot be earlier than check-in", field="checkOut")
        if check_in_time.date() != record.work_date:
            raise ValidationError("checkIn must fall on the record's work date", field="checkIn")
        if check_out_time is not None and check_out_time.date() != record.work_date:
            raise ValidationError("checkOut must fall on the record's work date", field="checkOut")
        if check_out_time is None and record.check_out_time is not None:
            logger.warning(
                "record %s check-out %s cleared by %s", record.attendance_id, record.check_out_time, principal.employee_id
            )

        worked_minutes = 0
        overtime_minutes = 0
        if check_out_time is not None:
            worked = self._calculator.compute(check_in_time, check_out_time)
            worked_minutes, overtime_minutes = worked.worked_minutes, worked.overtime_minutes

        approval = Approval(approved_by=principal.employee_id, approved_at=now or now_local())
        self._attendance.admin_update_times(
            attendance_id=record.attendance_id,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            worked_minutes=worked_minutes,
            overtime_minutes=overtime_minutes,
            approval=approval,
        )

        logger.warning(
            "record %s times overridden by %s: in=%s out=%s",
            record.attendance_id, principal.employee_id, check_in_time, check_out_time,
        )
        return self._get_record(record.attendance_id)

    def mark_day(
        self,
        principal: Principal,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Record a status (leave, half-day, ...) for a day, creating the record if needed."""

        self._require_privileged(principal)
        employee = self._directory.find_by_id(int(employee_id))
        if not employee:
            raise EmployeeNotFoundError("Employee not found")

        existing = self._attendance.get_for_employee_and_date(employee.employee_id, work_date)
        if existing:
            return self.update_record(principal, existing.attendance_id, status=status, notes=notes)

        return self._attendance.create_marked_day(
            employee_id=employee.employee_id,
            work_date=work_date,
            status=status,
            notes=notes,
        )

    # ----- reads -----

    def today(self, principal: Principal, *, now: Optional[datetime] = None) -> TodaySnapshot:
        today = (now or now_local()).date()
        if principal.is_privileged:
            return ManyRecords(work_date=today, records=list(self._attendance.list_for_date(today)))
        return SingleRecord(
            work_date=today,
            record=self._attendance.get_for_employee_and_date(principal.employee_id, today),
        )

    def list_records(self, principal: Principal, filters: RecordFilters) -> RecordPage:
        if filters.start_date and filters.end_date and filters.end_date < filters.start_date:
            raise ValidationError("endDate must not be before startDate", field="endDate")

        if not principal.is_privileged:
            filters = replace(filters, employee_id=principal.employee_id)

        limit = min(max(int(filters.limit), 1), MAX_PAGE_SIZE)
        filters = replace(filters, page=max(int(filters.page), 1), limit=limit)

        items, total = self._attendance.list_records(filters)
        return RecordPage(items=list(items), page=filters.page, limit=filters.limit, total=int(total))

    def employee_history(
        self,
        principal: Principal,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> RecordPage:
        if int(employee_id) != principal.employee_id and not principal.is_privileged:
            raise AuthorizationError("Access denied")
        if not self._directory.find_by_id(int(employee_id)):
            raise EmployeeNotFoundError("Employee not found")
        return self.list_records(
            principal,
            RecordFilters(employee_id=int(employee_id), start_date=start_date, end_date=end_date, page=page, limit=limit),
        )
