"""
Sales module package exports.

- LedgerEngine      : create/edit/settle/delete/return sales
- SalesHistoryService : filtered sale lists for the history screen
"""

from .history import SalesHistoryService
from .ledger import Discrepancy, LedgerEngine, SaleDetails, SaleResult

__all__ = [
    "LedgerEngine",
    "SaleResult",
    "SaleDetails",
    "Discrepancy",
    "SalesHistoryService",
]
