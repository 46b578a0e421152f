# database/store.py
"""
Key-value storage port for the ledger.

Every collection is read and written whole: `read(key)` returns the full
value (a list of records or a JSON object) and `write(key, value)` replaces
it. A key that was never written reads back as the caller's empty default.

Two adapters:
  - MemoryStore  : dict-backed, for tests and throwaway sessions.
  - SqliteStore  : one row per key in the kv_store table (JSON text).

Both support `transaction()` so that a sale + its items + its payments + the
day bucket land together or not at all.
"""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Protocol

from ..constants import TABLE_KV_STORE

_log = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def read(self, key: str, default: Any = None) -> Any: ...
    def write(self, key: str, value: Any) -> None: ...
    def keys(self) -> list[str]: ...
    def delete(self, key: str) -> None: ...
    def transaction(self): ...


def _empty(default: Any) -> Any:
    # Callers pass [] / {} literals; never hand out a shared instance.
    return [] if default is None else copy.deepcopy(default)


class MemoryStore:
    """In-process store. Values are JSON round-tripped so callers never share references."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        self._depth = 0
        for k, v in (initial or {}).items():
            self.write(k, v)

    def read(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return _empty(default)
        return json.loads(raw)

    def write(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    @contextmanager
    def transaction(self) -> Iterator["MemoryStore"]:
        snapshot = dict(self._data) if self._depth == 0 else None
        self._depth += 1
        try:
            yield self
        except BaseException:
            if snapshot is not None:
                self._data = snapshot
            raise
        finally:
            self._depth -= 1


class SqliteStore:
    """
    Durable store on a sqlite3 connection.

    Outside a transaction each write commits immediately. Inside
    `transaction()` writes are committed once, when the outermost block exits
    cleanly, and rolled back otherwise. sqlite3 errors (disk full, corrupt
    file, locked DB) are not caught here.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        conn.row_factory = sqlite3.Row
        self.conn = conn
        self._depth = 0

    def read(self, key: str, default: Any = None) -> Any:
        row = self.conn.execute(
            f"SELECT value FROM {TABLE_KV_STORE} WHERE key=?", (key,)
        ).fetchone()
        if row is None:
            return _empty(default)
        return json.loads(row["value"])

    def write(self, key: str, value: Any) -> None:
        self.conn.execute(
            f"INSERT INTO {TABLE_KV_STORE}(key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, json.dumps(value)),
        )
        if self._depth == 0:
            self.conn.commit()

    def delete(self, key: str) -> None:
        self.conn.execute(f"DELETE FROM {TABLE_KV_STORE} WHERE key=?", (key,))
        if self._depth == 0:
            self.conn.commit()

    def keys(self) -> list[str]:
        rows = self.conn.execute(f"SELECT key FROM {TABLE_KV_STORE} ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    @contextmanager
    def transaction(self) -> Iterator["SqliteStore"]:
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield self
        except BaseException:
            if outermost:
                self.conn.rollback()
                _log.debug("kv transaction rolled back")
            raise
        else:
            if outermost:
                self.conn.commit()
        finally:
            self._depth -= 1

    def close(self) -> None:
        self.conn.close()
