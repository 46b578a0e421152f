"""
Khata: a single-user sales ledger (customers, sales, payments, daily totals)
backed by a local key-value store.
"""

__version__ = "1.0.0"
