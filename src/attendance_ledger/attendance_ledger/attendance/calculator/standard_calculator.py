from __future__ import annotations

from datetime import datetime

from ...core.constants import STANDARD_WORKDAY_MINUTES
from .base import WorkedTime, WorkedTimeCalculator


class StandardWorkdayCalculator(WorkedTimeCalculator):
    """Standard rule: whole minutes between in and out, overtime past an 8 hour day, never below 0."""

    def __init__(self, standard_minutes: int = STANDARD_WORKDAY_MINUTES):
        self._standard_minutes = int(standard_minutes)

    def compute(self, check_in_time: datetime, check_out_time: datetime) -> WorkedTime:
        minutes = int((check_out_time - check_in_time).total_seconds() // 60)
        worked = max(minutes, 0)
        return WorkedTime(worked_minutes=worked, overtime_minutes=max(worked - self._standard_minutes, 0))
