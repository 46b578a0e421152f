# database/__init__.py
from __future__ import annotations

from pathlib import Path
import sqlite3

from ..config import DB_PATH
from ..constants import SCHEMA_VERSION, STORAGE_KEYS
from . import schema as schema_module
from .seeders.default_data import seed as seed_default_data
from .store import KeyValueStore, MemoryStore, SqliteStore
from .versioning import get_current_version, set_current_version
from ..utils.loggers import get_logger


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """
    Returns a sqlite3.Connection with:
      - WAL mode (file databases)
      - row_factory = sqlite3.Row
      - check_same_thread=False, so backup/restore jobs on a worker thread can use it
    Ensures schema & version row are applied idempotently.
    """
    target = str(db_path) if db_path is not None else str(DB_PATH)
    if target != ":memory:":
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(target, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if target != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL;")

    schema_module.init_schema(conn)
    if get_current_version(conn) is None:
        set_current_version(conn, SCHEMA_VERSION)

    conn.commit()
    return conn


def initialize_storage(store: KeyValueStore) -> KeyValueStore:
    """Seed default settings and empty collections (idempotent)."""
    seed_default_data(store)
    return store


def open_store(db_path: Path | str | None = None) -> SqliteStore:
    """
    Durable store on the app database, seeded and ready to use.
    Also configures the package logger on first call.
    """
    log = get_logger()
    store = SqliteStore(get_connection(db_path))
    initialize_storage(store)
    log.info("ledger store opened at %s", db_path if db_path is not None else DB_PATH)
    return store


def reset_storage(store: KeyValueStore) -> None:
    """
    Remove every ledger collection and re-seed defaults ("clear all data").
    """
    with store.transaction():
        for key in STORAGE_KEYS:
            store.delete(key)
        seed_default_data(store)


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "get_connection",
    "initialize_storage",
    "open_store",
    "reset_storage",
]
