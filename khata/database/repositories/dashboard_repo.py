# khata/database/repositories/dashboard_repo.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from ...modules.payments.payment_utilities.status import RETURNED
from .customers_repo import CustomersRepo
from .daily_summary_repo import DailySummary, DailySummaryRepo
from .sales_repo import Sale, SalesRepo
from .settings_repo import SettingsRepo


class DashboardRepo:
    """
    Thin query layer for the Dashboard.

    All methods are read-only. Day boundaries are local calendar dates; the
    caller may pass `today` to pin the window (tests, reports for a past day).

    Consistency note:
    - "Today's earnings" come from the daily summary (realized cash, net of
      returns), NOT from sale headers. Edits never move the summary, so the two
      can legitimately differ.
    - Outstanding receivables sum due_amount over non-returned sales.
    """

    def __init__(self, store) -> None:
        self.store = store
        self.sales = SalesRepo(store)
        self.customers = CustomersRepo(store)
        self.daily = DailySummaryRepo(store)
        self.settings = SettingsRepo(store)

    def todays_summary(self, today: Optional[date] = None) -> DailySummary:
        day = (today or date.today()).isoformat()
        found = self.daily.get(day)
        if found is not None:
            return found
        return DailySummary(date=day, currency=self.settings.get().currency)

    def pending_amount(self) -> float:
        return float(
            sum(s.due_amount or 0.0 for s in self.sales.list_all() if s.payment_status != RETURNED)
        )

    def total_customers(self) -> int:
        return len(self.customers.list_all())

    def recent_sales(self, limit: int = 5) -> List[Sale]:
        """Newest first."""
        sales = self.sales.list_all()
        return list(reversed(sales[-limit:])) if limit > 0 else []

    def last_n_days(self, n: int = 7, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        Oldest → newest: [{"date": "2025-03-01", "label": "Sat", "total_sales": 120.0}, ...].
        Days without a bucket report 0.
        """
        end = today or date.today()
        summaries = self.daily.all()
        out: List[Dict[str, Any]] = []
        for i in range(n - 1, -1, -1):
            d = end - timedelta(days=i)
            key = d.isoformat()
            bucket = summaries.get(key)
            out.append({
                "date": key,
                "label": d.strftime("%a"),
                "total_sales": bucket.total_sales if bucket else 0.0,
            })
        return out
