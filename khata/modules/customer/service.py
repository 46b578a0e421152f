from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ...database.repositories.customers_repo import Customer, CustomersRepo
from ...database.repositories.sales_repo import Sale, SalesRepo
from ...errors import CustomerValidationError
from ..payments.payment_utilities.status import RETURNED

_log = logging.getLogger(__name__)

_EDITABLE = ("name", "phone", "email", "address")


@dataclass
class CustomerProfile:
    customer: Customer
    sales: List[Sale] = field(default_factory=list)  # newest first
    total_spent: float = 0.0
    total_due: float = 0.0


class CustomerService:
    """
    Customer create/update with the form rules, plus search and the profile
    roll-up. Repositories stay validation-free; the checks live here.
    """

    def __init__(self, store):
        self.repo = CustomersRepo(store)
        self.sales = SalesRepo(store)

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _normalize_text(s: Optional[str]) -> Optional[str]:
        if s is None:
            return None
        s = str(s).strip()
        return s or None

    @staticmethod
    def _ensure_non_empty(value: Optional[str], field_label: str) -> None:
        if value is None or str(value).strip() == "":
            raise CustomerValidationError(f"{field_label} cannot be empty.")

    # ---- Queries ----------------------------------------------------------

    def get_customer(self, customer_id: str) -> Customer | None:
        return self.repo.get(customer_id)

    def search_customers(self, term: str | None = None) -> list[Customer]:
        return self.repo.search(term)

    def customer_profile(self, customer_id: str) -> CustomerProfile | None:
        customer = self.repo.get(customer_id)
        if customer is None:
            return None
        sales = list(reversed(self.sales.list_for_customer(customer_id)))
        live = [s for s in sales if s.payment_status != RETURNED]
        return CustomerProfile(
            customer=customer,
            sales=sales,
            total_spent=float(sum(s.total_amount or 0.0 for s in live)),
            total_due=float(sum(s.due_amount or 0.0 for s in live)),
        )

    # ---- Mutations --------------------------------------------------------

    def create_customer(
        self,
        name: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Customer:
        self._ensure_non_empty(name, "Customer name")
        customer = self.repo.insert(
            Customer(
                customer_id=None,
                name=self._normalize_text(name),
                phone=self._normalize_text(phone),
                email=self._normalize_text(email),
                address=self._normalize_text(address),
            )
        )
        _log.info("customer %s created", customer.customer_id)
        return customer

    def update_customer(self, customer_id: str, **changes) -> Customer | None:
        """
        Patch name/phone/email/address. The id and creation date never change.
        Returns None when the customer does not exist.
        """
        unknown = set(changes) - set(_EDITABLE)
        if unknown:
            raise CustomerValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        if "name" in changes:
            self._ensure_non_empty(changes["name"], "Customer name")

        customer = self.repo.get(customer_id)
        if customer is None:
            return None
        for key, value in changes.items():
            setattr(customer, key, self._normalize_text(value))
        self.repo.update(customer)
        _log.info("customer %s updated (%s)", customer_id, ", ".join(sorted(changes)) or "no fields")
        return customer
