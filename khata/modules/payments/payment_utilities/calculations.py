"""
payment_utilities/calculations.py

Pure helpers for sale money math. Used by the ledger when it writes cached
header fields and by reconciliation when it re-derives them.

Do not import repos or touch the store here.
Only compute numbers; formatting belongs in the UI.
"""
from __future__ import annotations

from typing import Tuple

from .status import PAID, PARTIAL, PENDING

__all__ = [
    "EPSILON",
    "clamp_non_negative",
    "money_equal",
    "line_total",
    "remaining_due_sale",
    "project_sale_after_receipt",
    "status_from_paid",
    "status_agrees",
]

# Tolerance for float comparisons on money amounts
EPSILON = 1e-9


# -----------------------------
# Core utilities
# -----------------------------

def clamp_non_negative(x: float) -> float:
    """Return x if x > 0, else 0.0."""
    return x if x > 0.0 else 0.0


def money_equal(a: float, b: float) -> bool:
    return abs(float(a) - float(b)) <= EPSILON


# -----------------------------
# Sales helpers
# -----------------------------

def line_total(quantity: float, unit_price: float) -> float:
    """total_price of a sale line; always recomputed, never taken from the caller."""
    return float(quantity) * float(unit_price)


def remaining_due_sale(total_amount: float, paid_amount: float) -> float:
    """
    remaining_due = total_amount - paid_amount, clamped at >= 0.
    Overpayment therefore shows as zero due, never as a negative balance.
    A remainder within EPSILON is float noise and counts as 0.
    """
    due = clamp_non_negative(float(total_amount) - float(paid_amount))
    return due if due > EPSILON else 0.0


def project_sale_after_receipt(
    *,
    total_amount: float,
    current_paid_amount: float,
    new_receipt_amount: float,
) -> Tuple[float, float, str]:
    """
    Returns (projected_paid_amount, projected_due_amount, projected_status)
    for a settlement. A receipt never moves a sale back to 'pending':
      - 'paid'    if due reaches 0
      - 'partial' otherwise
    """
    paid = float(current_paid_amount) + float(new_receipt_amount)
    due = remaining_due_sale(total_amount, paid)
    return paid, due, (PAID if due <= EPSILON else PARTIAL)


# -----------------------------
# Common status helpers
# -----------------------------

def status_from_paid(total: float, paid: float) -> str:
    """
    Threshold helper:
      - 'paid'    if paid >= total
      - 'partial' if 0 < paid < total
      - 'pending' if paid == 0
    """
    if paid + EPSILON >= total:
        return PAID
    if paid > EPSILON:
        return PARTIAL
    return PENDING


def status_agrees(status: str, total: float, paid: float) -> bool:
    """
    True when a stored (non-returned) status is consistent with the amounts.
    A zero-total sale with nothing paid is consistent as either pending or paid.
    """
    due = remaining_due_sale(total, paid)
    if status == PAID:
        return due <= EPSILON
    if status == PENDING:
        return paid <= EPSILON
    if status == PARTIAL:
        return paid > EPSILON and due > EPSILON
    return False
