from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import ReportPeriod
from .strategies.base import BucketStrategy
from .strategies.daily_strategy import DailyBucketStrategy
from .strategies.hourly_strategy import HourlyBucketStrategy
from .strategies.summary_only_strategy import SummaryOnlyStrategy
from .strategies.weekly_strategy import WeeklyBucketStrategy


@dataclass
class BucketStrategyFactory:
    """Factory Pattern: pick the bucketing for a report period."""

    def for_period(self, period: ReportPeriod) -> BucketStrategy:
        if period == ReportPeriod.DAILY:
            return HourlyBucketStrategy()
        if period == ReportPeriod.WEEKLY:
            return DailyBucketStrategy()
        if period == ReportPeriod.MONTHLY:
            return WeeklyBucketStrategy()
        return SummaryOnlyStrategy()
