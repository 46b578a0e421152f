# khata/tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets its own store; nothing is shared between tests
# - `store` is a seeded MemoryStore, `sqlite_store` a seeded SqliteStore
#   on a temp file (closed after the test)
# - `engine` + `customer` cover the common "one customer, then sell" setup
# - Qt runs headless; pytest-qt owns QApplication when a test needs it
# ---------------------------------------------------------------------

from __future__ import annotations

import logging
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from khata.database import MemoryStore, initialize_storage, open_store
from khata.modules.customer.service import CustomerService
from khata.modules.sales.ledger import LedgerEngine


# ---------- Stores ----------
@pytest.fixture()
def store() -> MemoryStore:
    return initialize_storage(MemoryStore())


@pytest.fixture()
def sqlite_store(tmp_path):
    s = open_store(tmp_path / "khata.db")
    try:
        yield s
    finally:
        s.close()


# ---------- Ledger ----------
@pytest.fixture()
def engine(store) -> LedgerEngine:
    return LedgerEngine(store)


@pytest.fixture()
def customers(store) -> CustomerService:
    return CustomerService(store)


@pytest.fixture()
def customer(customers):
    return customers.create_customer("Ali Raza", phone="0300-1234567")


# ---------- Job logging: keep test runs out of logs/ ----------
@pytest.fixture()
def job_logger() -> logging.Logger:
    log = logging.getLogger("khata.tests.jobs")
    log.propagate = True
    return log

