from __future__ import annotations
from dataclasses import dataclass

from ...constants import KEY_CUSTOMERS
from .base_repo import CollectionRepo


@dataclass
class Customer:
    customer_id: str | None
    name: str
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    created_date: str | None = None


class CustomersRepo(CollectionRepo[Customer]):
    KEY = KEY_CUSTOMERS
    RECORD = Customer
    ID_FIELD = "customer_id"
    CREATED_FIELD = "created_date"

    def search(self, term: str | None) -> list[Customer]:
        """
        Case-insensitive match on name, or plain substring match on phone.
        An empty term returns every customer.
        """
        if not term or not term.strip():
            return self.list_all()
        raw = term.strip()
        lowered = raw.lower()
        return self.find(
            lambda c: lowered in (c.name or "").lower()
            or (bool(c.phone) and raw in str(c.phone))
        )

    def name_index(self) -> dict[str, str]:
        """customer_id -> name, for display-time resolution."""
        return {c.customer_id: c.name for c in self.list_all() if c.customer_id}
