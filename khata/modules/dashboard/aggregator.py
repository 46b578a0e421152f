"""
Daily summary aggregator.

A running, date-keyed accumulator of realized cash. Every money-moving ledger
operation calls `apply()`:

    sale created with an initial payment  ->  +paid
    settlement (add payment)              ->  +amount
    return                                ->  -(sum of the sale's payments)

`total_sales` is signed and goes down on reversals. `number_of_transactions`
only counts positive events, so a return never lowers it.
"""

from __future__ import annotations

import logging
from typing import Optional

from ...database.repositories.daily_summary_repo import DailySummary, DailySummaryRepo
from ...database.repositories.settings_repo import SettingsRepo
from ...utils.helpers import today_str

_log = logging.getLogger(__name__)


class DailySummaryAggregator:
    def __init__(self, store) -> None:
        self.store = store
        self.repo = DailySummaryRepo(store)
        self.settings = SettingsRepo(store)

    def apply(self, amount: float, currency: Optional[str] = None, date: Optional[str] = None) -> DailySummary:
        """
        Add `amount` to the bucket for `date` (local ISO date, default today),
        creating the bucket with zero accumulators on first use. The bucket keeps
        the currency it was created with.
        """
        day = date or today_str()
        amount = float(amount)
        bucket = self.repo.get(day)
        if bucket is None:
            bucket = DailySummary(date=day, currency=currency or self.settings.get().currency)

        bucket.total_sales += amount
        if amount > 0:
            bucket.number_of_transactions += 1

        self.repo.put(bucket)
        _log.debug(
            "daily summary %s: %+.2f -> total=%.2f tx=%d",
            day, amount, bucket.total_sales, bucket.number_of_transactions,
        )
        return bucket

    def summary_for(self, date: Optional[str] = None) -> Optional[DailySummary]:
        return self.repo.get(date or today_str())
