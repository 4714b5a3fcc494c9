from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeDirectory

_COLUMNS = "employee_id, name, employee_code, email, department, position, role, is_active"


def _to_employee(r: Dict[str, Any]) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        name=r["name"],
        employee_code=r["employee_code"],
        email=r.get("email"),
        department=r.get("department"),
        position=r.get("position"),
        role=Role(r.get("role") or Role.EMPLOYEE.value),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def find_active_by_department(self, department: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE department=%s AND is_active=1
                ORDER BY employee_id
                """,
                (department,),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def count_active(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM employees WHERE is_active=1")
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def list_departments(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT department
                FROM employees
                WHERE department IS NOT NULL AND department <> ''
                ORDER BY department
                """
            )
            return [r["department"] for r in fetchall(cur)]
