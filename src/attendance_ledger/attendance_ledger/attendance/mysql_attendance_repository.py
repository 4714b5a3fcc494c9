from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyCheckedInError, RecordNotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Approval, AttendanceRecord, RecordFilters, Stamp
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date,
    check_in_time, check_in_location, check_in_ip, check_in_device,
    check_out_time, check_out_location, check_out_ip, check_out_device,
    status, worked_minutes, overtime_minutes, notes, approved_by, approved_at
"""


def _stamp(r: Dict[str, Any], prefix: str) -> Optional[Stamp]:
    t = r.get(f"{prefix}_time")
    if t is None:
        return None
    return Stamp(
        time=t,
        location=r.get(f"{prefix}_location"),
        source_ip=r.get(f"{prefix}_ip"),
        device_info=r.get(f"{prefix}_device"),
    )


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    approval = None
    if r.get("approved_by") is not None and r.get("approved_at") is not None:
        approval = Approval(approved_by=int(r["approved_by"]), approved_at=r["approved_at"])
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=_stamp(r, "check_in"),
        check_out=_stamp(r, "check_out"),
        status=AttendanceStatus(r["status"]),
        worked_minutes=int(r.get("worked_minutes") or 0),
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        notes=r.get("notes"),
        approval=approval,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _fetch_by_id(self, cur, attendance_id: int) -> AttendanceRecord:
        cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
        row = fetchone(cur)
        if not row:
            raise RecordNotFoundError("Attendance record not found")
        return _to_record(row)

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date=%s
                """,
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_checkin(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: Stamp,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        # UNIQUE(employee_id, work_date) makes the insert the single race winner.
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        employee_id, work_date,
                        check_in_time, check_in_location, check_in_ip, check_in_device,
                        status, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(employee_id),
                        work_date,
                        check_in.time,
                        check_in.location,
                        check_in.source_ip,
                        check_in.device_info,
                        status.value,
                        notes,
                    ),
                )
                return self._fetch_by_id(cur, int(cur.lastrowid))
        except mysql.connector.IntegrityError as e:
            raise AlreadyCheckedInError("Already checked in today") from e

    def stamp_checkin(self, *, attendance_id: int, check_in: Stamp, notes: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_in_location=%s, check_in_ip=%s, check_in_device=%s,
                    notes=COALESCE(%s, notes)
                WHERE attendance_id=%s AND check_in_time IS NULL
                """,
                (
                    check_in.time,
                    check_in.location,
                    check_in.source_ip,
                    check_in.device_info,
                    notes,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def stamp_checkout(
        self,
        *,
        attendance_id: int,
        check_out: Stamp,
        worked_minutes: int,
        overtime_minutes: int,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, check_out_location=%s, check_out_ip=%s, check_out_device=%s,
                    worked_minutes=%s, overtime_minutes=%s, notes=COALESCE(%s, notes)
                WHERE attendance_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                """,
                (
                    check_out.time,
                    check_out.location,
                    check_out.source_ip,
                    check_out.device_info,
                    int(worked_minutes),
                    int(overtime_minutes),
                    notes,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def create_marked_day(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(employee_id, work_date, status, notes)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status), notes=COALESCE(VALUES(notes), notes)
                """,
                (int(employee_id), work_date, status.value, notes),
            )
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            return _to_record(fetchone(cur))

    def update_status_notes(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        notes: Optional[str],
        approval: Optional[Approval] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, notes=%s,
                    approved_by=COALESCE(%s, approved_by), approved_at=COALESCE(%s, approved_at)
                WHERE attendance_id=%s
                """,
                (
                    status.value,
                    notes,
                    approval.approved_by if approval else None,
                    approval.approved_at if approval else None,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_out_time=%s,
                    worked_minutes=%s, overtime_minutes=%s,
                    approved_by=%s, approved_at=%s
                WHERE attendance_id=%s
                """,
                (
                    check_in_time,
                    check_out_time,
                    int(worked_minutes),
                    int(overtime_minutes),
                    int(approval.approved_by),
                    approval.approved_at,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def list_records(self, filters: RecordFilters) -> Tuple[Sequence[AttendanceRecord], int]:
        clauses = ["1=1"]
        params: list[object] = []

        if filters.employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(filters.employee_id))
        if filters.start_date is not None:
            clauses.append("work_date >= %s")
            params.append(filters.start_date)
        if filters.end_date is not None:
            clauses.append("work_date <= %s")
            params.append(filters.end_date)
        if filters.status is not None:
            clauses.append("status=%s")
            params.append(filters.status.value)

        where = " AND ".join(clauses)
        offset = (max(filters.page, 1) - 1) * filters.limit

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY work_date DESC, attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(filters.limit), int(offset)),
            )
            return [_to_record(r) for r in fetchall(cur)], total

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE work_date=%s
                ORDER BY check_in_time IS NULL, check_in_time, attendance_id
                """,
                (work_date,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_in_range(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if employee_ids is not None:
            ids = [int(i) for i in employee_ids]
            if not ids:
                return []
            clauses.append(f"employee_id IN ({', '.join(['%s'] * len(ids))})")
            params.extend(ids)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY work_date ASC, check_in_time ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
