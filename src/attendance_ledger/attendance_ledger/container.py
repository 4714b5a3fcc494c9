from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeDirectory
from .employees.repository import EmployeeDirectory
from .reports.service import AttendanceReportService
from .tokens.service import QRTokenService, derive_qr_secret


@dataclass(frozen=True)
class Container:
    directory: EmployeeDirectory
    attendance_repo: AttendanceRepository

    token_service: QRTokenService
    ledger: AttendanceLedger
    report_service: AttendanceReportService


def wire(
    *,
    directory: EmployeeDirectory,
    attendance_repo: AttendanceRepository,
    secret_key: str,
    qr_secret: str = "",
    qr_ttl_seconds: int = 300,
) -> Container:
    token_service = QRTokenService(derive_qr_secret(secret_key, qr_secret), default_ttl_seconds=qr_ttl_seconds)
    ledger = AttendanceLedger(attendance_repo, directory, token_service)
    report_service = AttendanceReportService(attendance_repo, directory)

    return Container(
        directory=directory,
        attendance_repo=attendance_repo,
        token_service=token_service,
        ledger=ledger,
        report_service=report_service,
    )


def build_container(*, db_config: dict, secret_key: str, qr_secret: str = "", qr_ttl_seconds: int = 300) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))

    return wire(
        directory=MySQLEmployeeDirectory(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        secret_key=secret_key,
        qr_secret=qr_secret,
        qr_ttl_seconds=qr_ttl_seconds,
    )
