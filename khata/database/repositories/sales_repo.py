from __future__ import annotations
from dataclasses import dataclass

from ...constants import KEY_SALE_ITEMS, KEY_SALES
from .base_repo import CollectionRepo


@dataclass
class Sale:
    sale_id: str | None
    customer_id: str
    total_amount: float
    paid_amount: float
    due_amount: float
    payment_status: str
    currency: str
    date: str | None = None
    updated_date: str | None = None


@dataclass
class SaleItem:
    item_id: str | None
    sale_id: str
    product_name: str
    quantity: int
    unit_price: float
    total_price: float


class SalesRepo(CollectionRepo[Sale]):
    """
    Sale headers. paid_amount / due_amount / payment_status are cached values
    maintained by the ledger; nothing here recomputes them.
    """

    KEY = KEY_SALES
    RECORD = Sale
    ID_FIELD = "sale_id"
    CREATED_FIELD = "date"

    def list_for_customer(self, customer_id: str) -> list[Sale]:
        return self.find(lambda s: s.customer_id == customer_id)

    def delete_sale(self, sid: str) -> int:
        return self.delete_where(lambda s: s.sale_id == sid)


class SaleItemsRepo(CollectionRepo[SaleItem]):
    KEY = KEY_SALE_ITEMS
    RECORD = SaleItem
    ID_FIELD = "item_id"

    def list_for_sale(self, sid: str) -> list[SaleItem]:
        return self.find(lambda it: it.sale_id == sid)

    def delete_for_sale(self, sid: str) -> int:
        return self.delete_where(lambda it: it.sale_id == sid)

    def replace_for_sale(self, sid: str, items: list[SaleItem]) -> list[SaleItem]:
        """
        Drop every line of the sale and insert `items` in one write.
        Lines are never patched in place.
        """
        kept = [it for it in self._load() if it.sale_id != sid]
        added = []
        for it in items:
            it.sale_id = sid
            added.append(self._stamp(it))
        self._save(kept + added)
        return added
