from __future__ import annotations

from .base import BucketInput, BucketStrategy


class SummaryOnlyStrategy(BucketStrategy):
    """Yearly and custom reports carry totals only."""

    def build(self, data: BucketInput) -> list:
        return []
