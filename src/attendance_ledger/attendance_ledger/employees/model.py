from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Directory entry for an employee.

    Note: Owned by the directory service; the ledger only reads it.
    """

    employee_id: int
    name: str
    employee_code: str
    email: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    role: Role = Role.EMPLOYEE
    is_active: bool = True
