from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence, Union

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class RequestContext:
    """Where a check-in/out request came from."""

    source_ip: Optional[str] = None
    device_info: Optional[str] = None


@dataclass(frozen=True)
class Stamp:
    time: datetime
    location: Optional[str] = None
    source_ip: Optional[str] = None
    device_info: Optional[str] = None


@dataclass(frozen=True)
class Approval:
    approved_by: int
    approved_at: datetime


@dataclass(frozen=True)
class AttendanceRecord:
    """One employee's attendance for one calendar day.

    Natural key: (employee_id, work_date).
    """

    attendance_id: int
    employee_id: int
    work_date: date
    check_in: Optional[Stamp] = None
    check_out: Optional[Stamp] = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    worked_minutes: int = 0
    overtime_minutes: int = 0
    notes: Optional[str] = None
    approval: Optional[Approval] = None

    @property
    def check_in_time(self) -> Optional[datetime]:
        return self.check_in.time if self.check_in else None

    @property
    def check_out_time(self) -> Optional[datetime]:
        return self.check_out.time if self.check_out else None

    @property
    def is_checked_in(self) -> bool:
        return self.check_in_time is not None

    @property
    def is_checked_out(self) -> bool:
        return self.check_out_time is not None


@dataclass(frozen=True)
class RecordFilters:
    employee_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None
    page: int = 1
    limit: int = 10


@dataclass(frozen=True)
class RecordPage:
    items: Sequence[AttendanceRecord]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


@dataclass(frozen=True)
class SingleRecord:
    """Today's view for a regular employee: their record, or none yet."""

    work_date: date
    record: Optional[AttendanceRecord]
    kind: str = field(default="single", init=False)


@dataclass(frozen=True)
class ManyRecords:
    """Today's view for admin/hr: every record of the day."""

    work_date: date
    records: Sequence[AttendanceRecord]
    kind: str = field(default="many", init=False)


TodaySnapshot = Union[SingleRecord, ManyRecords]
