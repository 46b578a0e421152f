# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from khata.database.repositories import (
        # Customers
        CustomersRepo, Customer,
        # Sales
        SalesRepo, Sale, SaleItemsRepo, SaleItem, SalePaymentsRepo, Payment,
        # Daily summary & settings
        DailySummaryRepo, DailySummary, SettingsRepo, Settings,
        # Read-only queries
        DashboardRepo, ReportingRepo,
    )
"""

# ------------------ Base -------------------
from .base_repo import CollectionRepo, record_from_dict, required_fields

# ---------------- Customers ----------------
from .customers_repo import CustomersRepo, Customer

# ------------------ Sales ------------------
from .sales_repo import SalesRepo, Sale, SaleItemsRepo, SaleItem
from .sale_payments_repo import SalePaymentsRepo, Payment

# ----------- Daily summary / settings ------
from .daily_summary_repo import DailySummaryRepo, DailySummary
from .settings_repo import SettingsRepo, Settings

# ------------- Read-only queries -----------
from .dashboard_repo import DashboardRepo
from .reporting_repo import ReportingRepo

__all__ = [
    # base_repo
    "CollectionRepo",
    "record_from_dict",
    "required_fields",
    # customers_repo
    "CustomersRepo",
    "Customer",
    # sales
    "SalesRepo",
    "Sale",
    "SaleItemsRepo",
    "SaleItem",
    "SalePaymentsRepo",
    "Payment",
    # daily summary / settings
    "DailySummaryRepo",
    "DailySummary",
    "SettingsRepo",
    "Settings",
    # queries
    "DashboardRepo",
    "ReportingRepo",
]
