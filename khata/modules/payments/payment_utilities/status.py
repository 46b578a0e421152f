from __future__ import annotations
from typing import Optional

# ---------- Canonical set ----------
PENDING = "pending"
PARTIAL = "partial"
PAID = "paid"
RETURNED = "returned"

VALID_STATES: tuple[str, ...] = (PENDING, PARTIAL, PAID, RETURNED)

# States a caller may pick when saving a sale; 'returned' is reached only via a return.
ENTRY_STATES: tuple[str, ...] = (PENDING, PARTIAL, PAID)

# Filter value meaning "any status" on history screens
ALL = "all"

# ---------- API ----------

def normalize(state: Optional[str]) -> Optional[str]:
    """Lowercase & strip; return None if empty. Does NOT invent synonyms."""
    if state is None:
        return None
    s = str(state).strip().lower()
    return s or None


def is_valid(state: Optional[str]) -> bool:
    """Return True iff state is one of the canonical values."""
    s = normalize(state)
    return s in VALID_STATES if s is not None else False


def ensure_entry_state(state: Optional[str]) -> str:
    """
    Return the normalized state if it can be chosen on a sale form; raise
    ValueError otherwise.
    """
    s = normalize(state)
    if s not in ENTRY_STATES:
        raise ValueError("payment_status must be one of: pending, partial, paid")
    return s  # type: ignore[return-value]
