from __future__ import annotations

from dataclasses import replace

from ...common.datetime_utils import minutes_since_midnight
from ...core.constants import (
    DAILY_FIRST_HOUR,
    DAILY_LAST_HOUR,
    EARLY_BEFORE_MINUTES,
    LATE_UNTIL_MINUTES,
    ON_TIME_UNTIL_MINUTES,
)
from ..model import HourBucket
from .base import BucketInput, BucketStrategy


def arrival_category(minutes: int) -> str:
    if minutes < EARLY_BEFORE_MINUTES:
        return "early"
    if minutes < ON_TIME_UNTIL_MINUTES:
        return "on_time"
    if minutes < LATE_UNTIL_MINUTES:
        return "late"
    return "very_late"


class HourlyBucketStrategy(BucketStrategy):
    """One bucket per clock hour: office hours always, plus any hour that saw activity."""

    def build(self, data: BucketInput) -> list[HourBucket]:
        buckets = {h: HourBucket(hour=h) for h in range(DAILY_FIRST_HOUR, DAILY_LAST_HOUR + 1)}

        for record in data.records:
            if record.check_in_time is not None:
                hour = record.check_in_time.hour
                category = arrival_category(minutes_since_midnight(record.check_in_time))
                bucket = buckets.get(hour) or HourBucket(hour=hour)
                buckets[hour] = replace(bucket, **{category: getattr(bucket, category) + 1})

            if record.check_out_time is not None:
                hour = record.check_out_time.hour
                bucket = buckets.get(hour) or HourBucket(hour=hour)
                buckets[hour] = replace(bucket, check_outs=bucket.check_outs + 1)

        return [buckets[h] for h in sorted(buckets)]
