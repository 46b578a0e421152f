"""
modules/reporting/sales_export.py

CSV export of every sale: the stored sale fields plus the resolved customer
name, with the creation timestamp rendered as a plain MM/DD/YYYY date.
Quoting follows the csv module's default (RFC 4180 style): fields holding
commas, quotes or newlines are quoted and inner quotes doubled.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Union

from ...constants import UNKNOWN_CUSTOMER
from ...database.repositories.customers_repo import CustomersRepo
from ...database.repositories.sales_repo import Sale, SalesRepo
from ...utils.helpers import fmt_date_human

_log = logging.getLogger(__name__)

SALE_COLUMNS: list[str] = [f.name for f in fields(Sale)] + ["customer_name"]
DEFAULT_FILE_NAME = "sales_export.csv"


def sales_rows(store) -> list[dict]:
    names = CustomersRepo(store).name_index()
    rows = []
    for s in SalesRepo(store).list_all():
        row = asdict(s)
        row["customer_name"] = names.get(s.customer_id, UNKNOWN_CUSTOMER)
        row["date"] = fmt_date_human(s.date)
        rows.append(row)
    return rows


def sales_to_csv(store) -> str:
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=SALE_COLUMNS, lineterminator="\r\n")
    w.writeheader()
    for row in sales_rows(store):
        w.writerow(row)
    return buf.getvalue()


def export_sales_csv(store, path: Union[str, Path]) -> Path:
    out = Path(path)
    if out.is_dir():
        out = out / DEFAULT_FILE_NAME
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", newline="", encoding="utf-8") as f:
        f.write(sales_to_csv(store))
    _log.info("sales exported to %s", out)
    return out
