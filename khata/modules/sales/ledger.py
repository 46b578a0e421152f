"""
modules/sales/ledger.py

The ledger engine: every operation that moves money on a sale goes through
here so the cached header fields, the item lines, the payment log and the
daily summary stay in step.

Header invariant (all non-returned sales):
    due_amount     = max(0, total_amount - paid_amount)
    paid_amount    = sum of the sale's payments
    payment_status agrees with paid/due
A 'returned' sale is frozen: no edits, no settlements, no second reversal.

Each mutating call runs inside one store transaction, so a failure part way
through (validation or storage) leaves nothing half-written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from ...database.repositories.customers_repo import CustomersRepo
from ...database.repositories.sale_payments_repo import Payment, SalePaymentsRepo
from ...database.repositories.sales_repo import Sale, SaleItem, SaleItemsRepo, SalesRepo
from ...database.repositories.settings_repo import SettingsRepo
from ...errors import SaleValidationError
from ...utils.helpers import now_iso
from ...utils.validators import (
    is_non_negative_number,
    is_positive_whole_number,
    non_empty,
    try_parse_float,
)
from ..dashboard.aggregator import DailySummaryAggregator
from ..payments.payment_utilities.calculations import (
    EPSILON,
    line_total,
    money_equal,
    project_sale_after_receipt,
    remaining_due_sale,
    status_agrees,
    status_from_paid,
)
from ..payments.payment_utilities.status import (
    PAID,
    PENDING,
    RETURNED,
    ensure_entry_state,
)

_log = logging.getLogger(__name__)


@dataclass
class SaleResult:
    sale: Sale
    items: list[SaleItem]


@dataclass
class SaleDetails:
    sale: Sale
    items: list[SaleItem]
    payments: list[Payment]


@dataclass
class Discrepancy:
    """One cached value that does not match what the ledger implies."""
    sale_id: str
    field: str
    cached: Any
    expected: Any
    record_id: Optional[str] = None


@dataclass
class _Line:
    product_name: str
    quantity: int
    unit_price: float
    total_price: float = field(init=False)

    def __post_init__(self) -> None:
        self.total_price = line_total(self.quantity, self.unit_price)


def _get(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


class LedgerEngine:
    """
    Sale creation/edit/delete/return and payment settlement.

    Collaborators pass primitives (ids, item dicts, status, amounts) and get
    back dataclass records, None for unknown ids, or a SaleValidationError.
    """

    def __init__(self, store, aggregator: Optional[DailySummaryAggregator] = None) -> None:
        self.store = store
        self.customers = CustomersRepo(store)
        self.sales = SalesRepo(store)
        self.items = SaleItemsRepo(store)
        self.payments = SalePaymentsRepo(store)
        self.settings = SettingsRepo(store)
        self.aggregator = aggregator or DailySummaryAggregator(store)

    # ---------------------------------------------------------------------
    # Validation helpers
    # ---------------------------------------------------------------------
    def _reject(self, message: str) -> SaleValidationError:
        _log.warning("sale rejected: %s", message)
        return SaleValidationError(message)

    @staticmethod
    def _valid_lines(items: Iterable[Any]) -> list[_Line]:
        """
        Keep entries with a product name, a whole quantity >= 1 and a price >= 0.
        Anything else is dropped silently, the way blank form rows are.
        """
        out: list[_Line] = []
        for raw in items or ():
            name = _get(raw, "product_name")
            qty = _get(raw, "quantity")
            price = _get(raw, "unit_price")
            if not non_empty(name):
                continue
            if not is_positive_whole_number(qty) or not is_non_negative_number(price):
                continue
            out.append(_Line(str(name).strip(), int(float(qty)), float(price)))
        return out

    def _initial_paid(self, status: str, total: float, hint: Any) -> float:
        if status == PAID:
            return total
        if status == PENDING:
            return 0.0
        ok, value = try_parse_float(hint)
        if not ok or value <= 0 or remaining_due_sale(total, value) <= EPSILON:
            raise self._reject(
                "For partial payment, paid amount must be greater than 0 and less than total."
            )
        return float(value)

    # ---------------------------------------------------------------------
    # WRITE: create / edit
    # ---------------------------------------------------------------------
    def create_or_update_sale(
        self,
        customer_id: str,
        items: Iterable[Any],
        payment_status: str,
        paid_amount_hint: Any = 0.0,
        currency: Optional[str] = None,
        existing_sale_id: Optional[str] = None,
    ) -> Optional[SaleResult]:
        """
        Save a sale from form input.

        items: iterable of dicts/objects with product_name, quantity, unit_price.
        payment_status: 'pending' (paid forced to 0), 'paid' (paid forced to
            total) or 'partial' (paid = paid_amount_hint, 0 < hint < total).

        New sale: one payment is recorded for the initial paid amount (if > 0)
        and that amount goes into today's summary.

        Edit (existing_sale_id): header replaced, items replaced, the old
        payment history dropped and a single payment for the new paid amount
        recorded. Edits do not touch the daily summary. Returns None if the
        sale does not exist.
        """
        if not customer_id or self.customers.get(customer_id) is None:
            raise self._reject("Please select a customer.")
        try:
            status = ensure_entry_state(payment_status)
        except ValueError as exc:
            raise self._reject(str(exc)) from exc

        lines = self._valid_lines(items)
        if not lines:
            raise self._reject("Please add at least one valid item.")

        total = float(sum(ln.total_price for ln in lines))
        paid = self._initial_paid(status, total, paid_amount_hint)
        due = remaining_due_sale(total, paid)

        if existing_sale_id:
            return self._update_sale(existing_sale_id, customer_id, lines, status, total, paid, due, currency)
        return self._create_sale(customer_id, lines, status, total, paid, due, currency)

    @staticmethod
    def _to_items(lines: list[_Line]) -> list[SaleItem]:
        return [
            SaleItem(
                item_id=None,
                sale_id="",
                product_name=ln.product_name,
                quantity=ln.quantity,
                unit_price=ln.unit_price,
                total_price=ln.total_price,
            )
            for ln in lines
        ]

    def _create_sale(self, customer_id, lines, status, total, paid, due, currency) -> SaleResult:
        currency = currency or self.settings.get().currency
        with self.store.transaction():
            sale = self.sales.insert(
                Sale(
                    sale_id=None,
                    customer_id=customer_id,
                    total_amount=total,
                    paid_amount=paid,
                    due_amount=due,
                    payment_status=status,
                    currency=currency,
                )
            )
            new_items = self.items.replace_for_sale(sale.sale_id, self._to_items(lines))
            if paid > 0:
                self.payments.record_payment(sale_id=sale.sale_id, amount=paid)
            self.aggregator.apply(paid, currency)

        _log.info(
            "sale %s created: total=%.2f paid=%.2f status=%s",
            sale.sale_id, total, paid, status,
        )
        return SaleResult(sale=sale, items=new_items)

    def _update_sale(self, sid, customer_id, lines, status, total, paid, due, currency) -> Optional[SaleResult]:
        existing = self.sales.get(sid)
        if existing is None:
            _log.warning("edit ignored: sale %s not found", sid)
            return None
        if existing.payment_status == RETURNED:
            raise self._reject("Returned sales cannot be edited.")
        currency = currency or existing.currency or self.settings.get().currency

        updated = Sale(
            sale_id=existing.sale_id,
            customer_id=customer_id,
            total_amount=total,
            paid_amount=paid,
            due_amount=due,
            payment_status=status,
            currency=currency,
            date=existing.date,
            updated_date=now_iso(),
        )
        with self.store.transaction():
            self.sales.update(updated)
            new_items = self.items.replace_for_sale(sid, self._to_items(lines))
            dropped = self.payments.delete_for_sale(sid)
            if paid > 0:
                self.payments.record_payment(sale_id=sid, amount=paid)

        _log.info(
            "sale %s updated: total=%.2f paid=%.2f status=%s (%d prior payment(s) replaced)",
            sid, total, paid, status, dropped,
        )
        return SaleResult(sale=updated, items=new_items)

    # ---------------------------------------------------------------------
    # WRITE: settlement
    # ---------------------------------------------------------------------
    def add_payment_to_sale(self, sale_id: str, amount: Any) -> Optional[Sale]:
        """
        Record an extra payment against a sale. Overpayment is accepted
        (due clamps at 0). Returns the updated sale, or None if unknown
        (the sale is looked up before the amount is checked).
        """
        sale = self.sales.get(sale_id)
        if sale is None:
            _log.warning("payment ignored: sale %s not found", sale_id)
            return None

        ok, value = try_parse_float(amount)
        if not ok or value <= 0:
            raise self._reject("Payment amount must be greater than zero.")
        if sale.payment_status == RETURNED:
            raise self._reject("Cannot add a payment to a returned sale.")

        paid, due, status = project_sale_after_receipt(
            total_amount=sale.total_amount,
            current_paid_amount=sale.paid_amount or 0.0,
            new_receipt_amount=value,
        )
        sale.paid_amount, sale.due_amount, sale.payment_status = paid, due, status

        with self.store.transaction():
            self.sales.update(sale)
            self.payments.record_payment(sale_id=sale_id, amount=value)
            self.aggregator.apply(value, sale.currency)

        _log.info("payment %.2f recorded on sale %s (due now %.2f, %s)", value, sale_id, due, status)
        return sale

    # ---------------------------------------------------------------------
    # WRITE: delete / return
    # ---------------------------------------------------------------------
    def delete_sale(self, sale_id: str, *, reverse_summary: bool = False) -> bool:
        """
        Remove a sale with its items and payments. Unknown ids are a no-op.

        By default the daily summary keeps whatever the sale contributed.
        With reverse_summary=True the sale's payments are taken back out of
        today's bucket, as a return would (not repeated for a sale that was
        already returned).
        """
        sale = self.sales.get(sale_id)
        if sale is None:
            _log.debug("delete ignored: sale %s not found", sale_id)
            return False

        with self.store.transaction():
            if reverse_summary and sale.payment_status != RETURNED:
                received = self.payments.total_for_sale(sale_id)
                if received > 0:
                    self.aggregator.apply(-received, sale.currency)
            self.sales.delete_sale(sale_id)
            n_items = self.items.delete_for_sale(sale_id)
            n_payments = self.payments.delete_for_sale(sale_id)

        _log.info("sale %s deleted (%d item(s), %d payment(s))", sale_id, n_items, n_payments)
        return True

    def return_sale(self, sale_id: str) -> Optional[Sale]:
        """
        Mark a sale returned and reverse everything it brought in from the
        daily summary. Items and payments stay for audit; the transaction count
        is not lowered. Returning twice does nothing the second time.
        """
        sale = self.sales.get(sale_id)
        if sale is None:
            _log.debug("return ignored: sale %s not found", sale_id)
            return None
        if sale.payment_status == RETURNED:
            _log.info("sale %s already returned", sale_id)
            return sale

        sale.payment_status = RETURNED
        sale.updated_date = now_iso()
        with self.store.transaction():
            self.sales.update(sale)
            received = self.payments.total_for_sale(sale_id)
            if received > 0:
                self.aggregator.apply(-received, sale.currency)

        _log.info("sale %s returned (reversed %.2f)", sale_id, received)
        return sale

    # ---------------------------------------------------------------------
    # READ
    # ---------------------------------------------------------------------
    def get_sale_with_details(self, sale_id: str) -> Optional[SaleDetails]:
        sale = self.sales.get(sale_id)
        if sale is None:
            return None
        return SaleDetails(
            sale=sale,
            items=self.items.list_for_sale(sale_id),
            payments=self.payments.list_by_sale(sale_id),
        )

    # ---------------------------------------------------------------------
    # RECONCILIATION
    # ---------------------------------------------------------------------
    def reconcile(self, *, repair: bool = False) -> list[Discrepancy]:
        """
        Compare every cached value against the ledger it is derived from:

          item.total_price  vs quantity × unit_price
          sale.total_amount vs Σ item totals
          sale.paid_amount  vs Σ payments
          sale.due_amount   vs max(0, total - paid)
          payment_status    agrees with paid/due (returned sales exempt)

        plus items/payments whose sale no longer exists.

        repair=True rewrites the cached values from the ledger and removes
        orphans, in one transaction. Returns what was found (before repair).
        """
        sales = self.sales.list_all()
        sale_ids = {s.sale_id for s in sales}
        all_items = self.items.list_all()
        all_payments = self.payments.list_all()
        paid_by_sale = self.payments.totals_by_sale()

        found: list[Discrepancy] = []
        items_by_sale: dict[str, list[SaleItem]] = {}
        bad_items: list[SaleItem] = []

        for it in all_items:
            if it.sale_id not in sale_ids:
                found.append(Discrepancy(it.sale_id, "orphan_item", it.item_id, None, it.item_id))
                continue
            items_by_sale.setdefault(it.sale_id, []).append(it)
            expected_line = line_total(it.quantity, it.unit_price)
            if not money_equal(it.total_price, expected_line):
                found.append(Discrepancy(it.sale_id, "total_price", it.total_price, expected_line, it.item_id))
                it.total_price = expected_line
                bad_items.append(it)

        for p in all_payments:
            if p.sale_id not in sale_ids:
                found.append(Discrepancy(p.sale_id, "orphan_payment", p.payment_id, None, p.payment_id))

        fixed_sales: list[Sale] = []
        for s in sales:
            lines = items_by_sale.get(s.sale_id, [])
            total = float(sum(it.total_price for it in lines))
            paid = float(paid_by_sale.get(s.sale_id, 0.0))
            due = remaining_due_sale(total, paid)
            before = len(found)

            if not money_equal(s.total_amount, total):
                found.append(Discrepancy(s.sale_id, "total_amount", s.total_amount, total))
            if not money_equal(s.paid_amount or 0.0, paid):
                found.append(Discrepancy(s.sale_id, "paid_amount", s.paid_amount, paid))
            if not money_equal(s.due_amount or 0.0, due):
                found.append(Discrepancy(s.sale_id, "due_amount", s.due_amount, due))
            expected_status = s.payment_status
            if s.payment_status != RETURNED and not status_agrees(s.payment_status, total, paid):
                expected_status = status_from_paid(total, paid)
                found.append(Discrepancy(s.sale_id, "payment_status", s.payment_status, expected_status))

            if len(found) > before:
                s.total_amount, s.paid_amount, s.due_amount = total, paid, due
                s.payment_status = expected_status
                fixed_sales.append(s)

        if found:
            _log.warning("reconcile: %d discrepancy(ies) found", len(found))
        if repair and found:
            with self.store.transaction():
                for it in bad_items:
                    self.items.update(it)
                for s in fixed_sales:
                    self.sales.update(s)
                self.items.delete_where(lambda it: it.sale_id not in sale_ids)
                self.payments.delete_where(lambda p: p.sale_id not in sale_ids)
            _log.info("reconcile: repaired %d sale(s)", len(fixed_sales))
        return found

    def check_invariants(self) -> bool:
        return not self.reconcile()


__all__ = [
    "LedgerEngine",
    "SaleResult",
    "SaleDetails",
    "Discrepancy",
]
