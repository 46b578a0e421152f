from __future__ import annotations
from dataclasses import dataclass

from ...constants import DEFAULT_PAYMENT_METHOD, KEY_PAYMENTS
from .base_repo import CollectionRepo


@dataclass
class Payment:
    payment_id: str | None
    sale_id: str
    amount: float
    date: str | None = None
    method: str = DEFAULT_PAYMENT_METHOD


class SalePaymentsRepo(CollectionRepo[Payment]):
    """
    Append-only log of cash received against sales.

    Lifecycle:
      • record_payment(...) appends a receipt.
      • list_by_sale(...) / total_for_sale(...) feed history and reconciliation.
      • delete_for_sale(...) is used only when a sale is edited or deleted.
    """

    KEY = KEY_PAYMENTS
    RECORD = Payment
    ID_FIELD = "payment_id"
    CREATED_FIELD = "date"

    def record_payment(self, *, sale_id: str, amount: float, method: str = DEFAULT_PAYMENT_METHOD) -> Payment:
        return self.insert(Payment(payment_id=None, sale_id=sale_id, amount=float(amount), method=method))

    def list_by_sale(self, sale_id: str) -> list[Payment]:
        return self.find(lambda p: p.sale_id == sale_id)

    def total_for_sale(self, sale_id: str) -> float:
        return float(sum(p.amount for p in self.list_by_sale(sale_id)))

    def totals_by_sale(self) -> dict[str, float]:
        out: dict[str, float] = {}
        for p in self.list_all():
            out[p.sale_id] = out.get(p.sale_id, 0.0) + float(p.amount)
        return out

    def delete_for_sale(self, sale_id: str) -> int:
        return self.delete_where(lambda p: p.sale_id == sale_id)
