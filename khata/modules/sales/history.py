from __future__ import annotations

from datetime import date as _date
from typing import Optional, Union

from ...constants import UNKNOWN_CUSTOMER
from ...database.repositories.customers_repo import CustomersRepo
from ...database.repositories.sales_repo import Sale, SalesRepo
from ...utils.helpers import date_part
from ..payments.payment_utilities.status import ALL, is_valid, normalize

DateLike = Union[str, _date, None]


def _iso(d: DateLike) -> Optional[str]:
    if d is None or d == "":
        return None
    return d.isoformat() if isinstance(d, _date) else str(d)[:10]


class SalesHistoryService:
    """
    Presenter/service behind the sales history screen.

    Sales come back newest first. Customer names are resolved at display
    time; a sale whose customer no longer exists shows as "Unknown".
    """

    def __init__(self, store):
        self.sales = SalesRepo(store)
        self.customers = CustomersRepo(store)

    def customer_name(self, customer_id: str) -> str:
        c = self.customers.get(customer_id)
        return c.name if c else UNKNOWN_CUSTOMER

    def search(
        self,
        query: str = "",
        status: Optional[str] = None,
        date_from: DateLike = None,
        date_to: DateLike = None,
    ) -> list[Sale]:
        """
        Filters (all optional, combined with AND):
          status    : exact payment_status; None or "all" = any
          date_from / date_to : inclusive local dates on the sale's creation day
          query     : case-insensitive substring of customer name or sale id
        """
        wanted = normalize(status)
        if wanted == ALL:
            wanted = None
        elif wanted and not is_valid(wanted):
            return []
        lo, hi = _iso(date_from), _iso(date_to)
        q = (query or "").strip().lower()
        names = self.customers.name_index()

        out: list[Sale] = []
        for s in reversed(self.sales.list_all()):
            if wanted and s.payment_status != wanted:
                continue
            if lo or hi:
                day = date_part(s.date)
                if day is None or (lo and day < lo) or (hi and day > hi):
                    continue
            if q:
                name = names.get(s.customer_id, "").lower()
                if q not in name and q not in str(s.sale_id).lower():
                    continue
            out.append(s)
        return out
