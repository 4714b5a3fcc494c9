from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Principal:
    """Already-authenticated caller injected by the upstream auth layer."""

    employee_id: int
    role: Role

    @property
    def is_privileged(self) -> bool:
        return self.role.is_privileged
