from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class WorkedTime:
    worked_minutes: int
    overtime_minutes: int


class WorkedTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for derived fields)."""

    @abstractmethod
    def compute(self, check_in_time: datetime, check_out_time: datetime) -> WorkedTime:
        raise NotImplementedError
