from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence, Tuple

from ..core.enums import AttendanceStatus
from .model import Approval, AttendanceRecord, RecordFilters, Stamp


class AttendanceRepository(Protocol):
    """Ledger store. Each method is a single atomic operation on one record."""

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: Stamp,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Insert the day's record. Raises AlreadyCheckedInError if one already exists."""

        raise NotImplementedError

    def stamp_checkin(self, *, attendance_id: int, check_in: Stamp, notes: Optional[str] = None) -> bool:
        """Set check-in on a record that has none. False if it already had one."""

        raise NotImplementedError

    def stamp_checkout(
        self,
        *,
        attendance_id: int,
        check_out: Stamp,
        worked_minutes: int,
        overtime_minutes: int,
        notes: Optional[str] = None,
    ) -> bool:
        """Set check-out only if still unset. False if another request got there first."""

        raise NotImplementedError

    def create_marked_day(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def update_status_notes(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        notes: Optional[str],
        approval: Optional[Approval] = None,
    ) -> bool:
        raise NotImplementedError

    def admin_update_times(
        self,
        *,
        attendance_id: int,
        check_in_time: datetime,
        check_out_time: Optional[datetime],
        worked_minutes: int,
        overtime_minutes: int,
        approval: Approval,
    ) -> bool:
        """Admin-only override that bypasses the check-in/out guards."""

        raise NotImplementedError

    def list_records(self, filters: RecordFilters) -> Tuple[Sequence[AttendanceRecord], int]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
