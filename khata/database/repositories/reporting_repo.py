# khata/database/repositories/reporting_repo.py
from __future__ import annotations

from typing import Any, Dict, List

from ...constants import UNKNOWN_CUSTOMER
from .customers_repo import CustomersRepo
from .sales_repo import SaleItemsRepo, SalesRepo


class ReportingRepo:
    """
    Read-only aggregations for the Reports screen.

    Each method returns plain lists of dicts so the UI can chart them directly.
    Sales are counted whatever their status (a returned sale still shows in
    purchase counts); earnings use paid_amount on the sale header.
    """

    def __init__(self, store) -> None:
        self.sales = SalesRepo(store)
        self.items = SaleItemsRepo(store)
        self.customers = CustomersRepo(store)

    def _names(self) -> Dict[str, str]:
        return self.customers.name_index()

    # ----------------------------- Earnings -----------------------------

    def monthly_earnings(self) -> List[Dict[str, Any]]:
        """[{"month": "2025-03", "earnings": 1200.0}, ...] in chronological order."""
        buckets: Dict[str, float] = {}
        for s in self.sales.list_all():
            if not s.date:
                continue
            month = str(s.date)[:7]
            buckets[month] = buckets.get(month, 0.0) + float(s.paid_amount or 0.0)
        return [{"month": m, "earnings": v} for m, v in sorted(buckets.items())]

    # ----------------------------- Customers ----------------------------

    def top_customers_by_spending(self, limit: int = 5) -> List[Dict[str, Any]]:
        totals: Dict[str, float] = {}
        for s in self.sales.list_all():
            totals[s.customer_id] = totals.get(s.customer_id, 0.0) + float(s.total_amount or 0.0)
        names = self._names()
        ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:limit]
        return [
            {"customer_id": cid, "name": names.get(cid, UNKNOWN_CUSTOMER), "total": total}
            for cid, total in ranked
        ]

    def top_customers_by_purchases(self, limit: int = 5) -> List[Dict[str, Any]]:
        counts: Dict[str, int] = {}
        for s in self.sales.list_all():
            counts[s.customer_id] = counts.get(s.customer_id, 0) + 1
        names = self._names()
        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
        return [
            {"customer_id": cid, "name": names.get(cid, UNKNOWN_CUSTOMER), "purchases": n}
            for cid, n in ranked
        ]

    # ------------------------------ Items -------------------------------

    def top_sold_items(self, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Group lines by product name, case-insensitively. The first spelling
        seen is the one reported.
        """
        grouped: Dict[str, Dict[str, Any]] = {}
        for it in self.items.list_all():
            key = (it.product_name or "").strip().lower()
            if not key:
                continue
            row = grouped.setdefault(key, {"name": it.product_name, "quantity": 0})
            row["quantity"] += int(it.quantity or 0)
        return sorted(grouped.values(), key=lambda r: r["quantity"], reverse=True)[:limit]
