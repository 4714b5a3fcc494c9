from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeDirectory(Protocol):
    """Read-only directory lookup consumed by the ledger and reports."""

    def find_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def find_active_by_department(self, department: str) -> Sequence[Employee]:
        raise NotImplementedError

    def count_active(self) -> int:
        raise NotImplementedError

    def list_departments(self) -> Sequence[str]:
        raise NotImplementedError
