from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from ...attendance.model import AttendanceRecord
from ...common.datetime_utils import minutes_since_midnight
from ...core.constants import ON_TIME_UNTIL_MINUTES
from ..model import Bucket, DateWindow


@dataclass(frozen=True)
class BucketInput:
    window: DateWindow
    records: Sequence[AttendanceRecord]
    active_employees: int
    today: date


def is_present(record: AttendanceRecord) -> bool:
    """A record counts as present when it has a check-in, whatever its status says."""
    return record.check_in_time is not None


def is_late(record: AttendanceRecord) -> bool:
    return is_present(record) and minutes_since_midnight(record.check_in_time) > ON_TIME_UNTIL_MINUTES


class BucketStrategy(ABC):
    """Strategy Pattern: how a report window is cut into chart buckets."""

    @abstractmethod
    def build(self, data: BucketInput) -> list[Bucket]:
        raise NotImplementedError
