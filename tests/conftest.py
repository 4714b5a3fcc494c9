from __future__ import annotations

from datetime import datetime

import pytest

from src.attendance_ledger.attendance_ledger.attendance.service import AttendanceLedger
from src.attendance_ledger.attendance_ledger.auth.model import Principal
from src.attendance_ledger.attendance_ledger.core.enums import Role
from src.attendance_ledger.attendance_ledger.reports.service import AttendanceReportService
from src.attendance_ledger.attendance_ledger.tokens.service import QRTokenService, derive_qr_secret
from tests.fakes import InMemoryAttendance, InMemoryDirectory, employee

SECRET = "test-secret"


@pytest.fixture
def fixed_now() -> datetime:
    # Wednesday
    return datetime(2026, 1, 14, 9, 45, 0)


@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory(
        [
            employee(1, role=Role.ADMIN),
            employee(2, department="Sales"),
            employee(3),
            employee(4, active=False),
        ]
    )


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def tokens() -> QRTokenService:
    return QRTokenService(derive_qr_secret(SECRET))


@pytest.fixture
def ledger(attendance_repo, directory, tokens) -> AttendanceLedger:
    return AttendanceLedger(attendance_repo, directory, tokens)


@pytest.fixture
def reports(attendance_repo, directory) -> AttendanceReportService:
    return AttendanceReportService(attendance_repo, directory)


@pytest.fixture
def admin() -> Principal:
    return Principal(employee_id=1, role=Role.ADMIN)


@pytest.fixture
def staff() -> Principal:
    return Principal(employee_id=3, role=Role.EMPLOYEE)
