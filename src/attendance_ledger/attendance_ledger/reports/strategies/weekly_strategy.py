from __future__ import annotations

from datetime import timedelta

from ...common.datetime_utils import is_weekend, iter_days, start_of_week
from ..model import DateWindow, WeekBucket
from .base import BucketInput, BucketStrategy, is_late, is_present


class WeeklyBucketStrategy(BucketStrategy):
    """One bucket per Sunday-start week overlapping the window.

    Partial weeks at either edge only count the days inside the window.
    Expected attendance per week is active employees times the workdays
    that are both inside the window and not after today.
    """

    def build(self, data: BucketInput) -> list[WeekBucket]:
        window = data.window
        buckets: list[WeekBucket] = []

        week_start = start_of_week(window.start)
        index = 1
        while week_start <= window.end:
            start = max(week_start, window.start)
            end = min(week_start + timedelta(days=6), window.end)

            week = DateWindow(start=start, end=end)
            in_week = [r for r in data.records if week.contains(r.work_date)]
            present = sum(1 for r in in_week if is_present(r))
            late = sum(1 for r in in_week if is_late(r))

            workdays = sum(1 for d in iter_days(start, min(end, data.today)) if not is_weekend(d))
            absent = max(0, data.active_employees * workdays - present)

            buckets.append(
                WeekBucket(
                    index=index,
                    start=start,
                    end=end,
                    present=present,
                    late=late,
                    absent=absent,
                    workdays=workdays,
                )
            )
            week_start += timedelta(days=7)
            index += 1

        return buckets
