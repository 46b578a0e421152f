"""
Repository-level tests.

Repositories are plain accessors: they assign ids and creation stamps,
read/modify/write whole collections and never validate business rules.
"""

from __future__ import annotations

import pytest

from khata.constants import KEY_SALES
from khata.database.repositories import (
    Customer,
    CustomersRepo,
    DailySummary,
    DailySummaryRepo,
    Payment,
    Sale,
    SaleItem,
    SaleItemsRepo,
    SalePaymentsRepo,
    SalesRepo,
    SettingsRepo,
    record_from_dict,
    required_fields,
)


def _sale(customer_id: str = "c1", total: float = 100.0) -> Sale:
    return Sale(
        sale_id=None,
        customer_id=customer_id,
        total_amount=total,
        paid_amount=0.0,
        due_amount=total,
        payment_status="pending",
        currency="PKR",
    )


def _line(name: str, qty: int = 1, price: float = 10.0) -> SaleItem:
    return SaleItem(
        item_id=None, sale_id="", product_name=name,
        quantity=qty, unit_price=price, total_price=qty * price,
    )


# ---------------------------------------------------------------------------
# Base behaviour
# ---------------------------------------------------------------------------

def test_repo_insert_assigns_unique_id_and_timestamp(store):
    repo = CustomersRepo(store)
    a = repo.insert(Customer(customer_id=None, name="A"))
    b = repo.insert(Customer(customer_id=None, name="B"))
    assert a.customer_id and b.customer_id and a.customer_id != b.customer_id
    assert a.created_date and "T" in a.created_date
    assert [c.name for c in repo.list_all()] == ["A", "B"]


def test_repo_insert_many_stamps_each_record_in_one_write(store):
    repo = SalePaymentsRepo(store)
    added = repo.insert_many([
        Payment(payment_id=None, sale_id="s1", amount=10.0),
        Payment(payment_id="keep", sale_id="s1", amount=5.0),
    ])
    assert added[0].payment_id and added[0].date
    assert added[1].payment_id == "keep"
    assert [p.payment_id for p in repo.list_all()] == [added[0].payment_id, "keep"]
    assert repo.total_for_sale("s1") == 15.0


def test_repo_insert_keeps_caller_supplied_id(store):
    repo = SalesRepo(store)
    s = _sale()
    s.sale_id = "fixed-id"
    repo.insert(s)
    assert repo.get("fixed-id") is not None


def test_repo_update_and_delete_missing_are_noops(store):
    repo = SalesRepo(store)
    ghost = _sale()
    ghost.sale_id = "ghost"
    assert repo.update(ghost) is False
    assert repo.delete_sale("ghost") == 0
    assert repo.list_all() == []


def test_record_from_dict_ignores_unknown_fields():
    p = record_from_dict(Payment, {"payment_id": "p", "sale_id": "s", "amount": 5, "legacy": True})
    assert p == Payment(payment_id="p", sale_id="s", amount=5, date=None, method="cash")


def test_required_fields_are_those_without_defaults():
    assert required_fields(Payment) == {"payment_id", "sale_id", "amount"}
    assert required_fields(Customer) == {"customer_id", "name"}


def test_repo_reads_records_written_by_older_versions(store):
    store.write(KEY_SALES, [{
        "sale_id": "old", "customer_id": "c", "total_amount": 10, "paid_amount": 0,
        "due_amount": 10, "payment_status": "pending", "currency": "PKR",
        "notes": "field no longer used",
    }])
    assert SalesRepo(store).get("old").total_amount == 10


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def test_customers_search_by_name_or_phone(store):
    repo = CustomersRepo(store)
    repo.insert(Customer(customer_id=None, name="Ali Raza", phone="0300-111"))
    repo.insert(Customer(customer_id=None, name="Sana", phone="0321-999"))
    repo.insert(Customer(customer_id=None, name="Bilal"))

    assert [c.name for c in repo.search("ali")] == ["Ali Raza"]
    assert [c.name for c in repo.search("0321")] == ["Sana"]
    assert len(repo.search("  ")) == 3
    assert repo.search("nobody") == []


# ---------------------------------------------------------------------------
# Sale items / payments
# ---------------------------------------------------------------------------

def test_items_replace_for_sale_only_touches_that_sale(store):
    items = SaleItemsRepo(store)
    items.replace_for_sale("s1", [_line("Tea"), _line("Sugar")])
    items.replace_for_sale("s2", [_line("Milk")])

    new = items.replace_for_sale("s1", [_line("Flour", 2, 50.0)])

    assert [it.product_name for it in items.list_for_sale("s1")] == ["Flour"]
    assert [it.product_name for it in items.list_for_sale("s2")] == ["Milk"]
    assert new[0].sale_id == "s1" and new[0].item_id


def test_payments_totals(store):
    pays = SalePaymentsRepo(store)
    pays.record_payment(sale_id="s1", amount=30)
    pays.record_payment(sale_id="s1", amount=20.5)
    pays.record_payment(sale_id="s2", amount=7)

    assert pays.total_for_sale("s1") == pytest.approx(50.5)
    assert pays.totals_by_sale() == pytest.approx({"s1": 50.5, "s2": 7.0})
    assert all(p.method == "cash" and p.date for p in pays.list_by_sale("s1"))
    assert pays.delete_for_sale("s1") == 2
    assert pays.total_for_sale("s1") == 0.0


# ---------------------------------------------------------------------------
# Daily summary / settings
# ---------------------------------------------------------------------------

def test_daily_summary_put_and_get(store):
    repo = DailySummaryRepo(store)
    assert repo.get("2025-03-01") is None
    repo.put(DailySummary(date="2025-03-02", total_sales=10.0, number_of_transactions=1))
    repo.put(DailySummary(date="2025-03-01", total_sales=5.0, currency="USD"))

    assert list(repo.all()) == ["2025-03-01", "2025-03-02"]
    got = repo.get("2025-03-01")
    assert got.currency == "USD" and got.total_sales == 5.0
    assert "date" not in store.read("khata_daily_summary", {})["2025-03-01"]


def test_settings_update_merges_and_rejects_unknown(store):
    repo = SettingsRepo(store)
    created = repo.get().created
    s = repo.update(currency="USD", tax_rate="5")
    assert s.currency == "USD" and s.tax_rate == 5.0
    assert s.business_name == "My Business" and s.created == created

    with pytest.raises(TypeError):
        repo.update(colour="blue")
