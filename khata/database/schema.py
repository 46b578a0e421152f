import sqlite3

from ..constants import TABLE_KV_STORE, TABLE_SCHEMA_VERSION

SQL = rf"""
/* ======================== KEY-VALUE STORE ======================== */

/* one row per collection; value is the JSON text of the whole collection */
CREATE TABLE IF NOT EXISTS {TABLE_KV_STORE} (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

/* -------- schema version (singleton) -------- */
CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION} (
    id      INTEGER PRIMARY KEY CHECK (id = 1),
    version TEXT NOT NULL
);
"""


def init_schema(conn: sqlite3.Connection) -> None:
    """Apply the (idempotent) schema to an open connection."""
    conn.executescript(SQL)
    conn.commit()
