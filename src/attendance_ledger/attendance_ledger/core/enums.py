from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role carried by the authenticated principal."""

    EMPLOYEE = "employee"
    HR = "hr"
    ADMIN = "admin"

    @property
    def is_privileged(self) -> bool:
        return self in (Role.ADMIN, Role.HR)


class AttendanceStatus(str, Enum):
    """Status stored on a record. Informational only for reporting."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    LEAVE = "leave"


class QRAction(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"

    @classmethod
    def parse(cls, value: object) -> "QRAction":
        """Accept the canonical names plus the legacy ``checkin``/``checkout`` spelling."""
        if isinstance(value, QRAction):
            return value
        raw = str(value or "").strip().lower()
        raw = {"checkin": "check-in", "checkout": "check-out"}.get(raw, raw)
        return cls(raw)


class ReportPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
