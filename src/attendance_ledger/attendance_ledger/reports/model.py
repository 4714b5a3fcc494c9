from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence, Union

from ..attendance.model import AttendanceRecord
from ..core.enums import ReportPeriod
from ..employees.model import Employee


@dataclass(frozen=True)
class DateWindow:
    """Inclusive range of calendar days."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True)
class HourBucket:
    """Check-ins of one clock hour split by arrival category."""

    hour: int
    early: int = 0
    on_time: int = 0
    late: int = 0
    very_late: int = 0
    check_outs: int = 0

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:00"


@dataclass(frozen=True)
class DayBucket:
    day: date
    present: int = 0
    late: int = 0
    absent: int = 0

    @property
    def label(self) -> str:
        return f"{self.day:%a, %b} {self.day.day}"


@dataclass(frozen=True)
class WeekBucket:
    """One Sunday-start week, clipped to the report window."""

    index: int
    start: date
    end: date
    present: int = 0
    late: int = 0
    absent: int = 0
    workdays: int = 0

    @property
    def label(self) -> str:
        return f"W{self.index}: {self.start:%b} {self.start.day}"

    @property
    def full_name(self) -> str:
        return f"{self.start:%b} {self.start.day} - {self.end:%b} {self.end.day}"


Bucket = Union[HourBucket, DayBucket, WeekBucket]


@dataclass(frozen=True)
class ReportSummary:
    total_records: int
    present: int
    absent: int
    late: int
    total_employees: int
    expected_days: int
    attendance_rate: float


@dataclass(frozen=True)
class DepartmentCount:
    department: str
    present: int


@dataclass(frozen=True)
class DepartmentStat:
    """Active headcount of one department against its check-ins for a day."""

    department: str
    total: int
    present: int
    attendance_rate: float


@dataclass(frozen=True)
class ReportRow:
    record: AttendanceRecord
    employee: Optional[Employee] = None


@dataclass(frozen=True)
class AttendanceReport:
    period: ReportPeriod
    window: DateWindow
    buckets: Sequence[Bucket]
    summary: ReportSummary
    department_breakdown: Sequence[DepartmentCount]
    rows: Sequence[ReportRow] = field(default_factory=list)


@dataclass(frozen=True)
class DashboardSnapshot:
    day: date
    total_employees: int
    present_today: int
    late_today: int
    absent_today: int
    weekly: Sequence[DayBucket]
    departments: Sequence[DepartmentCount]
    department_stats: Sequence[DepartmentStat] = field(default_factory=list)


@dataclass(frozen=True)
class EmployeeSummary:
    employee: Employee
    window: DateWindow
    total_days: int
    present: int
    late: int
    total_worked_minutes: int
    average_worked_minutes: float
    total_overtime_minutes: int
    records: Sequence[AttendanceRecord] = field(default_factory=list)
