"""
Tests for the ledger engine.

Covers sale creation under each payment status, form-style input filtering,
settlements (including overpayment), edits, deletes, returns, the daily
summary side effects of each, atomicity when a step fails part way, and
reconciliation of cached header values against items and payments.
"""

from __future__ import annotations

import pytest

from khata.constants import KEY_SALE_ITEMS, KEY_SALES
from khata.database.repositories import SalePaymentsRepo, SalesRepo, SettingsRepo
from khata.errors import DomainError, SaleValidationError
from khata.modules.dashboard.aggregator import DailySummaryAggregator
from khata.modules.sales.ledger import LedgerEngine
from khata.utils.helpers import today_str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _item(name: str = "Rice 5kg", quantity=1, unit_price=100.0, **extra) -> dict:
    return {"product_name": name, "quantity": quantity, "unit_price": unit_price, **extra}


def _today(engine: LedgerEngine):
    return engine.aggregator.summary_for(today_str())


def _snapshot(store) -> dict:
    return {k: store.read(k, None) for k in store.keys()}


class _ExplodingAggregator(DailySummaryAggregator):
    def apply(self, amount, currency=None, date=None):
        super().apply(amount, currency, date)
        raise RuntimeError("disk full")


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def test_ledger_create_pending_sale(engine, customer):
    res = engine.create_or_update_sale(
        customer.customer_id, [_item(quantity=2, unit_price=150)], "pending"
    )
    s = res.sale
    assert (s.total_amount, s.paid_amount, s.due_amount) == (300.0, 0.0, 300.0)
    assert s.payment_status == "pending"
    assert s.currency == "PKR" and s.date
    assert engine.payments.list_by_sale(s.sale_id) == []

    bucket = _today(engine)
    assert bucket.total_sales == 0.0 and bucket.number_of_transactions == 0


def test_ledger_create_paid_sale_records_payment_and_summary(engine, customer):
    s = engine.create_or_update_sale(
        customer.customer_id, [_item(quantity=3, unit_price=50), _item("Oil", 1, 250)], "paid"
    ).sale
    assert s.total_amount == 400.0 and s.paid_amount == 400.0 and s.due_amount == 0.0

    pays = engine.payments.list_by_sale(s.sale_id)
    assert [p.amount for p in pays] == [400.0]
    assert pays[0].method == "cash"

    bucket = _today(engine)
    assert bucket.total_sales == 400.0 and bucket.number_of_transactions == 1


def test_ledger_create_partial_sale(engine, customer):
    s = engine.create_or_update_sale(
        customer.customer_id, [_item(quantity=2, unit_price=500)], "partial", paid_amount_hint="400"
    ).sale
    assert (s.paid_amount, s.due_amount, s.payment_status) == (400.0, 600.0, "partial")
    assert engine.payments.total_for_sale(s.sale_id) == 400.0
    assert _today(engine).total_sales == 400.0


@pytest.mark.parametrize("hint", [0, -5, 1000, 1500, "abc", None, "nan", "inf", float("nan")])
def test_ledger_partial_hint_out_of_range_is_rejected(engine, customer, store, hint):
    before = _snapshot(store)
    with pytest.raises(SaleValidationError) as exc:
        engine.create_or_update_sale(
            customer.customer_id, [_item(quantity=2, unit_price=500)], "partial", paid_amount_hint=hint
        )
    assert "partial payment" in str(exc.value)
    assert _snapshot(store) == before


def test_ledger_partial_hint_equal_to_total_within_float_noise_is_rejected(engine, customer):
    # 3 x 0.1 sums to 0.30000000000000004
    with pytest.raises(SaleValidationError, match="partial payment"):
        engine.create_or_update_sale(
            customer.customer_id, [_item("A", 3, 0.1)], "partial", paid_amount_hint=0.3
        )
    assert engine.sales.list_all() == []

    s = engine.create_or_update_sale(customer.customer_id, [_item("A", 3, 0.1)], "pending").sale
    s = engine.add_payment_to_sale(s.sale_id, 0.3)
    assert s.payment_status == "paid" and s.due_amount == 0.0
    assert engine.check_invariants()


def test_ledger_nan_payment_leaves_sale_and_summary_untouched(engine, customer):
    sid = engine.create_or_update_sale(customer.customer_id, [_item(unit_price=100)], "pending").sale.sale_id
    with pytest.raises(SaleValidationError):
        engine.add_payment_to_sale(sid, "nan")
    s = engine.sales.get(sid)
    assert (s.paid_amount, s.due_amount, s.payment_status) == (0.0, 100.0, "pending")
    assert _today(engine).total_sales == 0.0
    assert engine.check_invariants()


def test_ledger_status_drives_paid_amount_not_hint(engine, customer):
    pending = engine.create_or_update_sale(
        customer.customer_id, [_item(unit_price=80)], "pending", paid_amount_hint=50
    ).sale
    paid = engine.create_or_update_sale(
        customer.customer_id, [_item(unit_price=80)], " PAID ", paid_amount_hint=5
    ).sale
    assert pending.paid_amount == 0.0
    assert paid.paid_amount == 80.0 and paid.payment_status == "paid"


def test_ledger_rejects_missing_or_unknown_customer(engine, store):
    before = _snapshot(store)
    for cid in ("", None, "no-such-customer"):
        with pytest.raises(SaleValidationError, match="select a customer"):
            engine.create_or_update_sale(cid, [_item()], "paid")
    assert _snapshot(store) == before


@pytest.mark.parametrize("status", ["returned", "bogus", "", None])
def test_ledger_rejects_status_not_allowed_on_entry(engine, customer, status):
    with pytest.raises(SaleValidationError):
        engine.create_or_update_sale(customer.customer_id, [_item()], status)
    assert engine.sales.list_all() == []


def test_ledger_filters_invalid_lines_and_recomputes_totals(engine, customer):
    res = engine.create_or_update_sale(
        customer.customer_id,
        [
            _item("  Sugar ", "2", "45.5", total_price=1.0),
            _item("", 1, 10),
            _item("Zero qty", 0, 10),
            _item("Fraction", 2.5, 10),
            _item("Negative price", 1, -1),
            _item("Not a number", "x", 10),
            _item("Infinite price", 1, "inf"),
            _item("NaN price", 1, float("nan")),
            _item("Infinite qty", float("inf"), 10),
            _item("Free sample", 1, 0),
        ],
        "pending",
    )
    names = [(it.product_name, it.quantity, it.total_price) for it in res.items]
    assert names == [("Sugar", 2, 91.0), ("Free sample", 1, 0.0)]
    assert res.sale.total_amount == 91.0


def test_ledger_rejects_when_no_valid_items(engine, customer, store):
    before = _snapshot(store)
    with pytest.raises(SaleValidationError, match="at least one valid item"):
        engine.create_or_update_sale(customer.customer_id, [_item("", 1, 10), _item("X", 0, 5)], "paid")
    with pytest.raises(SaleValidationError):
        engine.create_or_update_sale(customer.customer_id, [], "paid")
    assert _snapshot(store) == before


def test_ledger_currency_defaults_to_settings(engine, customer, store):
    SettingsRepo(store).update(currency="USD")
    s = engine.create_or_update_sale(customer.customer_id, [_item()], "paid").sale
    assert s.currency == "USD"
    assert _today(engine).currency == "USD"

    explicit = engine.create_or_update_sale(customer.customer_id, [_item()], "paid", currency="AED").sale
    assert explicit.currency == "AED"


def test_ledger_create_is_atomic_when_summary_write_fails(store, customer):
    engine = LedgerEngine(store, aggregator=_ExplodingAggregator(store))
    before = _snapshot(store)
    with pytest.raises(RuntimeError):
        engine.create_or_update_sale(customer.customer_id, [_item()], "paid")
    assert _snapshot(store) == before


def test_validation_errors_are_domain_errors():
    assert issubclass(SaleValidationError, DomainError)


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------

def test_ledger_add_payment_moves_to_partial_then_paid(engine, customer):
    sid = engine.create_or_update_sale(customer.customer_id, [_item(unit_price=1000)], "pending").sale.sale_id

    s = engine.add_payment_to_sale(sid, 400)
    assert (s.paid_amount, s.due_amount, s.payment_status) == (400.0, 600.0, "partial")

    s = engine.add_payment_to_sale(sid, "600")
    assert (s.paid_amount, s.due_amount, s.payment_status) == (1000.0, 0.0, "paid")

    assert [p.amount for p in engine.payments.list_by_sale(sid)] == [400.0, 600.0]
    bucket = _today(engine)
    assert bucket.total_sales == 1000.0 and bucket.number_of_transactions == 2
    assert engine.check_invariants()


def test_ledger_overpayment_clamps_due_at_zero(engine, customer):
    sid = engine.create_or_update_sale(
        customer.customer_id, [_item(quantity=2, unit_price=500)], "partial", paid_amount_hint=400
    ).sale.sale_id
    s = engine.add_payment_to_sale(sid, 700)
    assert s.paid_amount == 1100.0
    assert s.due_amount == 0.0
    assert s.payment_status == "paid"
    assert engine.check_invariants()


@pytest.mark.parametrize("amount", [0, -10, "", "abc", None, True, "nan", "inf", float("-inf")])
def test_ledger_rejects_non_positive_payment(engine, customer, store, amount):
    sid = engine.create_or_update_sale(customer.customer_id, [_item()], "pending").sale.sale_id
    before = _snapshot(store)
    with pytest.raises(SaleValidationError, match="greater than zero"):
        engine.add_payment_to_sale(sid, amount)
    assert _snapshot(store) == before


def test_ledger_payment_on_unknown_sale_returns_none(engine, store):
    before = _snapshot(store)
    assert engine.add_payment_to_sale("missing", 50) is None
    assert engine.add_payment_to_sale("missing", "nan") is None
    assert _snapshot(store) == before


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

def test_ledger_edit_replaces_items_and_payment_history(engine, customer, store):
    first = engine.create_or_update_sale(
        customer.customer_id, [_item("Tea", 2, 100), _item("Milk", 1, 50)], "pending"
    ).sale
    engine.add_payment_to_sale(first.sale_id, 100)
    engine.add_payment_to_sale(first.sale_id, 50)
    summary_before = store.read("khata_daily_summary", {})

    res = engine.create_or_update_sale(
        customer.customer_id, [_item("Flour", 3, 200)], "partial",
        paid_amount_hint=250, existing_sale_id=first.sale_id,
    )

    s = res.sale
    assert s.sale_id == first.sale_id and s.date == first.date and s.updated_date
    assert (s.total_amount, s.paid_amount, s.due_amount, s.payment_status) == (600.0, 250.0, 350.0, "partial")
    assert [it.product_name for it in engine.items.list_for_sale(s.sale_id)] == ["Flour"]
    assert [p.amount for p in engine.payments.list_by_sale(s.sale_id)] == [250.0]
    assert len(store.read(KEY_SALES, [])) == 1
    # edits never feed the daily summary
    assert store.read("khata_daily_summary", {}) == summary_before
    assert engine.check_invariants()


def test_ledger_edit_to_pending_leaves_no_payments(engine, customer):
    sid = engine.create_or_update_sale(customer.customer_id, [_item()], "paid").sale.sale_id
    s = engine.create_or_update_sale(customer.customer_id, [_item()], "pending", existing_sale_id=sid).sale
    assert s.paid_amount == 0.0 and s.due_amount == 100.0
    assert engine.payments.list_by_sale(sid) == []


def test_ledger_edit_keeps_existing_currency(engine, customer, store):
    sid = engine.create_or_update_sale(customer.customer_id, [_item()], "paid", currency="AED").sale.sale_id
    SettingsRepo(store).update(currency="USD")
    s = engine.create_or_update_sale(customer.customer_id, [_item()], "paid", existing_sale_id=sid).sale
    assert s.currency == "AED"


def test_ledger_edit_of_missing_sale_returns_none(engine, customer, store):
    before = _snapshot(store)
    assert engine.create_or_update_sale(
        customer.customer_id, [_item()], "paid", existing_sale_id="ghost"
    ) is None
    assert _snapshot(store) == before


def test_ledger_invalid_edit_leaves_sale_unchanged(engine, customer, store):
    sid = engine.create_or_update_sale(customer.customer_id, [_item("Tea", 2, 100)], "paid").sale.sale_id
    before = _snapshot(store)
    with pytest.raises(SaleValidationError):
        engine.create_or_update_sale(customer.customer_id, [], "paid", existing_sale_id=sid)
    assert _snapshot(store) == before


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

def test_ledger_delete_removes_sale_items_and_payments(engine, customer, store):
    keep = engine.create_or_update_sale(customer.customer_id, [_item("Keep")], "paid").sale
    gone = engine.create_or_update_sale(customer.customer_id, [_item("Gone")], "paid").sale
    summary_before = store.read("khata_daily_summary", {})

    assert engine.delete_sale(gone.sale_id) is True

    assert [s.sale_id for s in engine.sales.list_all()] == [keep.sale_id]
    assert all(it.sale_id == keep.sale_id for it in store.read(KEY_SALE_ITEMS, []))
    assert engine.payments.list_by_sale(gone.sale_id) == []
    assert store.read("khata_daily_summary", {}) == summary_before
    assert engine.check_invariants()


def test_ledger_delete_is_idempotent(engine, customer, store):
    sid = engine.create_or_update_sale(customer.customer_id, [_item()], "pending").sale.sale_id
    assert engine.delete_sale(sid) is True
    before = _snapshot(store)
    assert engine.delete_sale(sid) is False
    assert engine.delete_sale("never-existed") is False
    assert _snapshot(store) == before


def test_ledger_delete_can_reverse_summary(engine, customer):
    sid = engine.create_or_update_sale(
        customer.customer_id, [_item(unit_price=300)], "partial", paid_amount_hint=100
    ).sale.sale_id
    engine.add_payment_to_sale(sid, 50)
    engine.delete_sale(sid, reverse_summary=True)
    bucket = _today(engine)
    assert bucket.total_sales == pytest.approx(0.0)
    assert bucket.number_of_transactions == 2


# ---------------------------------------------------------------------------
# Return
# ---------------------------------------------------------------------------

def test_ledger_return_reverses_everything_received(engine, customer):
    sid = engine.create_or_update_sale(
        customer.customer_id, [_item(unit_price=1000)], "partial", paid_amount_hint=300
    ).sale.sale_id
    engine.add_payment_to_sale(sid, 200)
    other = engine.create_or_update_sale(customer.customer_id, [_item(unit_price=75)], "paid").sale

    s = engine.return_sale(sid)

    assert s.payment_status == "returned" and s.updated_date
    assert engine.sales.get(sid).payment_status == "returned"
    # payments and items stay for audit
    assert engine.payments.total_for_sale(sid) == 500.0
    assert len(engine.items.list_for_sale(sid)) == 1
    bucket = _today(engine)
    assert bucket.total_sales == pytest.approx(other.paid_amount)
    assert bucket.number_of_transactions == 3


def test_ledger_return_twice_does_not_double_reverse(engine, customer):
    sid = engine.create_or_update_sale(customer.customer_id, [_item(unit_price=100)], "paid").sale.sale_id
    engine.return_sale(sid)
    after_first = _today(engine).total_sales
    again = engine.return_sale(sid)
    assert again.payment_status == "returned"
    assert _today(engine).total_sales == after_first == 0.0


def test_ledger_return_of_pending_sale_leaves_summary_alone(engine, customer):
    sid = engine.create_or_update_sale(customer.customer_id, [_item()], "pending").sale.sale_id
    engine.return_sale(sid)
    assert _today(engine).total_sales == 0.0


def test_ledger_returned_sale_is_frozen(engine, customer, store):
    sid = engine.create_or_update_sale(customer.customer_id, [_item()], "pending").sale.sale_id
    engine.return_sale(sid)
    before = _snapshot(store)

    with pytest.raises(SaleValidationError, match="returned sale"):
        engine.add_payment_to_sale(sid, 10)
    with pytest.raises(SaleValidationError, match="Returned sales cannot be edited"):
        engine.create_or_update_sale(customer.customer_id, [_item()], "paid", existing_sale_id=sid)
    assert _snapshot(store) == before


def test_ledger_return_unknown_sale_returns_none(engine):
    assert engine.return_sale("nope") is None


def test_ledger_delete_returned_sale_with_reverse_does_not_reverse_again(engine, customer):
    sid = engine.create_or_update_sale(customer.customer_id, [_item(unit_price=90)], "paid").sale.sale_id
    engine.return_sale(sid)
    engine.delete_sale(sid, reverse_summary=True)
    assert _today(engine).total_sales == 0.0


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

def test_ledger_get_sale_with_details(engine, customer):
    sid = engine.create_or_update_sale(
        customer.customer_id, [_item("A", 1, 10), _item("B", 2, 5)], "paid"
    ).sale.sale_id
    d = engine.get_sale_with_details(sid)
    assert d.sale.sale_id == sid
    assert [it.product_name for it in d.items] == ["A", "B"]
    assert [p.amount for p in d.payments] == [20.0]
    assert engine.get_sale_with_details("missing") is None


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def test_reconcile_clean_ledger_has_no_findings(engine, customer):
    sid = engine.create_or_update_sale(customer.customer_id, [_item(unit_price=500)], "pending").sale.sale_id
    engine.add_payment_to_sale(sid, 200)
    engine.create_or_update_sale(customer.customer_id, [_item()], "paid")
    engine.return_sale(sid)
    assert engine.reconcile() == []
    assert engine.check_invariants() is True


def test_reconcile_detects_and_repairs_drift(engine, customer, store):
    sid = engine.create_or_update_sale(
        customer.customer_id, [_item(quantity=2, unit_price=100)], "partial", paid_amount_hint=50
    ).sale.sale_id

    sales = store.read(KEY_SALES, [])
    sales[0].update(total_amount=999.0, paid_amount=0.0, due_amount=0.0, payment_status="paid")
    store.write(KEY_SALES, sales)
    items = store.read(KEY_SALE_ITEMS, [])
    items.append({"item_id": "orphan", "sale_id": "gone", "product_name": "X",
                  "quantity": 1, "unit_price": 1.0, "total_price": 1.0})
    store.write(KEY_SALE_ITEMS, items)
    SalePaymentsRepo(store).record_payment(sale_id="gone", amount=5)

    found = engine.reconcile()
    fields = {(d.sale_id, d.field) for d in found}
    assert {
        (sid, "total_amount"),
        (sid, "paid_amount"),
        (sid, "due_amount"),
        (sid, "payment_status"),
        ("gone", "orphan_item"),
        ("gone", "orphan_payment"),
    } == fields
    assert engine.check_invariants() is False
    # read-only unless asked
    assert SalesRepo(store).get(sid).total_amount == 999.0

    engine.reconcile(repair=True)

    s = SalesRepo(store).get(sid)
    assert (s.total_amount, s.paid_amount, s.due_amount, s.payment_status) == (200.0, 50.0, 150.0, "partial")
    assert all(it["sale_id"] == sid for it in store.read(KEY_SALE_ITEMS, []))
    assert engine.reconcile() == []


def test_reconcile_fixes_line_total(engine, customer, store):
    engine.create_or_update_sale(customer.customer_id, [_item(quantity=3, unit_price=10)], "pending")
    items = store.read(KEY_SALE_ITEMS, [])
    items[0]["total_price"] = 25.0
    store.write(KEY_SALE_ITEMS, items)

    found = engine.reconcile(repair=True)
    assert [d.field for d in found] == ["total_price"]
    assert (found[0].cached, found[0].expected) == (25.0, 30.0)
    assert store.read(KEY_SALE_ITEMS, [])[0]["total_price"] == 30.0
    assert engine.reconcile() == []


def test_ledger_works_on_sqlite_store(sqlite_store):
    from khata.modules.customer.service import CustomerService

    c = CustomerService(sqlite_store).create_customer("Sqlite Customer")
    engine = LedgerEngine(sqlite_store)
    sid = engine.create_or_update_sale(c.customer_id, [_item(unit_price=250)], "pending").sale.sale_id
    engine.add_payment_to_sale(sid, 250)
    assert engine.sales.get(sid).payment_status == "paid"
    assert engine.check_invariants()


def test_ledger_worked_example(engine, customer):
    cid = customer.customer_id
    lines = [_item("Tea", 2, 100), _item("Milk", 1, 50)]
    with pytest.raises(SaleValidationError):
        engine.create_or_update_sale(cid, lines, "partial", paid_amount_hint=300)

    sid = engine.create_or_update_sale(cid, lines, "partial", paid_amount_hint=30).sale.sale_id
    assert engine.sales.get(sid).total_amount == 250.0
    engine.add_payment_to_sale(sid, 20)
    tx_before = _today(engine).number_of_transactions
    total_before = _today(engine).total_sales

    s = engine.return_sale(sid)

    assert s.payment_status == "returned"
    assert _today(engine).total_sales == pytest.approx(total_before - 50)
    assert _today(engine).number_of_transactions == tx_before
