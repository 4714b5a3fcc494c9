from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import (
    end_of_month,
    end_of_week,
    end_of_year,
    now_local,
    start_of_month,
    start_of_week,
    start_of_year,
)
from ..core.enums import ReportPeriod
from ..core.exceptions import EmployeeNotFoundError, InvalidPeriodError, MissingRangeError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeDirectory
from .factory import BucketStrategyFactory
from .model import (
    AttendanceReport,
    DashboardSnapshot,
    DateWindow,
    DepartmentCount,
    DepartmentStat,
    EmployeeSummary,
    ReportRow,
    ReportSummary,
)
from .strategies.base import BucketInput, is_late, is_present
from .strategies.daily_strategy import DailyBucketStrategy

logger = logging.getLogger(__name__)

UNKNOWN_DEPARTMENT = "Unknown"
ALL_DEPARTMENTS = "all"


def department_filter(value: Optional[str]) -> Optional[str]:
    """Blank or `all` means no department filter."""
    name = (value or "").strip()
    if not name or name.lower() == ALL_DEPARTMENTS:
        return None
    return name


def parse_period(value: object) -> ReportPeriod:
    if isinstance(value, ReportPeriod):
        return value
    try:
        return ReportPeriod(str(value or "").strip().lower())
    except ValueError:
        raise InvalidPeriodError(f"Unknown report period: {value}", field="period")


def resolve_window(
    period: ReportPeriod,
    *,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> DateWindow:
    """Date range of a report.

    Named periods are derived from ``today`` in server local time. An explicit
    start and end pair always wins.
    """

    if start is not None and end is not None:
        if end < start:
            raise ValidationError("endDate must not be before startDate", field="endDate")
        return DateWindow(start=start, end=end)

    if period == ReportPeriod.CUSTOM:
        raise MissingRangeError("startDate and endDate are required for a custom report", field="startDate")
    if period == ReportPeriod.DAILY:
        return DateWindow(start=today, end=today)
    if period == ReportPeriod.WEEKLY:
        return DateWindow(start=start_of_week(today), end=end_of_week(today))
    if period == ReportPeriod.MONTHLY:
        return DateWindow(start=start_of_month(today), end=end_of_month(today))
    if period == ReportPeriod.YEARLY:
        return DateWindow(start=start_of_year(today), end=end_of_year(today))
    raise InvalidPeriodError(f"Unknown report period: {period}", field="period")


def elapsed_days(window: DateWindow, today: date) -> int:
    """Days of the window up to and including today."""
    if today < window.start:
        return 0
    return (min(window.end, today) - window.start).days + 1


def attendance_rate(present: int, expected: int) -> float:
    if expected <= 0:
        return 0.0
    rate = present / expected * 100
    return round(min(max(rate, 0.0), 100.0), 2)


class AttendanceReportService:
    """Turns ledger records into bucketed presence, lateness and absence figures.

    Absence is always expected minus observed. A stored ``absent`` status is
    never read here; presence means the record has a check-in.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        directory: EmployeeDirectory,
        *,
        strategies: Optional[BucketStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._directory = directory
        self._strategies = strategies or BucketStrategyFactory()

    # ----- helpers -----

    def _lookup(self, employee_ids: Iterable[int]) -> dict[int, Optional[Employee]]:
        return {eid: self._directory.find_by_id(eid) for eid in set(employee_ids)}

    def _population(self, department: Optional[str], employee_id: Optional[int]) -> tuple[Optional[list[int]], int]:
        """Employees a report covers and how many of them are expected to attend.

        ``None`` ids means every employee.
        """

        if employee_id is not None:
            employee = self._directory.find_by_id(int(employee_id))
            if employee and department and (employee.department or "") != department:
                return [], 0
            active = 1 if employee and employee.is_active else 0
            return [int(employee_id)], active

        if department:
            members = list(self._directory.find_active_by_department(department))
            return [e.employee_id for e in members], len(members)

        return None, int(self._directory.count_active())

    @staticmethod
    def _breakdown(records: Sequence[AttendanceRecord], employees: dict[int, Optional[Employee]]) -> list[DepartmentCount]:
        counts: Counter = Counter()
        for record in records:
            if not is_present(record):
                continue
            employee = employees.get(record.employee_id)
            if not employee or not employee.is_active:
                continue
            counts[(employee.department or "").strip() or UNKNOWN_DEPARTMENT] += 1

        return [
            DepartmentCount(department=name, present=n)
            for name, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

    def _department_stats(self, records: Sequence[AttendanceRecord]) -> list[DepartmentStat]:
        present_ids = {r.employee_id for r in records if is_present(r)}
        stats = []
        for name in self._directory.list_departments():
            members = list(self._directory.find_active_by_department(name))
            present = sum(1 for e in members if e.employee_id in present_ids)
            stats.append(
                DepartmentStat(
                    department=name,
                    total=len(members),
                    present=present,
                    attendance_rate=attendance_rate(present, len(members)),
                )
            )
        return stats

    # ----- operations -----

    def report(
        self,
        period: ReportPeriod | str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        department: Optional[str] = None,
        employee_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceReport:
        period = parse_period(period)
        today = (now or now_local()).date()
        window = resolve_window(period, today=today, start=start, end=end)

        department = department_filter(department)
        employee_ids, active = self._population(department, employee_id)
        records = list(
            self._attendance.list_in_range(start_date=window.start, end_date=window.end, employee_ids=employee_ids)
        )
        employees = self._lookup(r.employee_id for r in records)

        buckets = self._strategies.for_period(period).build(
            BucketInput(window=window, records=records, active_employees=active, today=today)
        )

        present = sum(1 for r in records if is_present(r))
        late = sum(1 for r in records if is_late(r))
        expected_days = elapsed_days(window, today)
        expected = active * expected_days

        summary = ReportSummary(
            total_records=len(records),
            present=present,
            absent=max(0, expected - present),
            late=late,
            total_employees=active,
            expected_days=expected_days,
            attendance_rate=attendance_rate(present, expected),
        )

        logger.info(
            "report period=%s window=%s..%s department=%s employee=%s records=%s",
            period.value, window.start, window.end, department, employee_id, len(records),
        )

        return AttendanceReport(
            period=period,
            window=window,
            buckets=buckets,
            summary=summary,
            department_breakdown=self._breakdown(records, employees),
            rows=[ReportRow(record=r, employee=employees.get(r.employee_id)) for r in records],
        )

    def dashboard(self, *, now: Optional[datetime] = None) -> DashboardSnapshot:
        today = (now or now_local()).date()
        active = int(self._directory.count_active())

        week = DateWindow(start=start_of_week(today), end=end_of_week(today))
        week_records = list(self._attendance.list_in_range(start_date=week.start, end_date=week.end))
        today_records = [r for r in week_records if r.work_date == today]

        present_today = sum(1 for r in today_records if is_present(r))
        employees = self._lookup(r.employee_id for r in today_records)

        return DashboardSnapshot(
            day=today,
            total_employees=active,
            present_today=present_today,
            late_today=sum(1 for r in today_records if is_late(r)),
            absent_today=max(0, active - present_today),
            weekly=DailyBucketStrategy().build(
                BucketInput(window=week, records=week_records, active_employees=active, today=today)
            ),
            departments=self._breakdown(today_records, employees),
            department_stats=self._department_stats(today_records),
        )

    def employee_summary(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> EmployeeSummary:
        employee = self._directory.find_by_id(int(employee_id))
        if not employee:
            raise EmployeeNotFoundError("Employee not found")

        today = (now or now_local()).date()
        window = resolve_window(
            ReportPeriod.MONTHLY,
            today=today,
            start=start or (start_of_month(end) if end else None),
            end=end or (end_of_month(start) if start else None),
        )

        records = list(
            self._attendance.list_in_range(
                start_date=window.start, end_date=window.end, employee_ids=[employee.employee_id]
            )
        )
        worked = [r.worked_minutes for r in records if r.check_out_time is not None]
        total_worked = sum(worked)

        return EmployeeSummary(
            employee=employee,
            window=window,
            total_days=len(records),
            present=sum(1 for r in records if is_present(r)),
            late=sum(1 for r in records if is_late(r)),
            total_worked_minutes=total_worked,
            average_worked_minutes=round(total_worked / len(worked), 2) if worked else 0.0,
            total_overtime_minutes=sum(r.overtime_minutes for r in records),
            records=records,
        )
