from __future__ import annotations

from collections import defaultdict

from ...common.datetime_utils import is_weekend, iter_days
from ..model import DayBucket
from .base import BucketInput, BucketStrategy, is_late, is_present


class DailyBucketStrategy(BucketStrategy):
    """One bucket per calendar day of the window, zero-filled."""

    def build(self, data: BucketInput) -> list[DayBucket]:
        present: dict = defaultdict(int)
        late: dict = defaultdict(int)
        for record in data.records:
            if is_present(record):
                present[record.work_date] += 1
            if is_late(record):
                late[record.work_date] += 1

        buckets = []
        for day in iter_days(data.window.start, data.window.end):
            absent = 0
            # Future days have not happened; weekends are not expected.
            if day <= data.today and not is_weekend(day):
                absent = max(0, data.active_employees - present[day])
            buckets.append(DayBucket(day=day, present=present[day], late=late[day], absent=absent))
        return buckets
