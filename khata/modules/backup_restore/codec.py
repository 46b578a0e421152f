"""
modules/backup_restore/codec.py

Purpose
-------
Whole-store snapshot to / from the portable backup document.

Document format
---------------
A flat JSON object. Each key is a storage key (khata_customers, khata_sales,
...) and each value is the JSON *text* of that collection, i.e. a string:

    {"khata_sales": "[{\"sale_id\": \"...\", ...}]", "khata_settings": "{...}"}

There is no version field.

Restore rules
-------------
- Unrecognized keys are ignored; empty / null values are skipped.
- Every recognized value is decoded and shape-checked BEFORE anything is
  written. List records must carry every required field of their record
  type, and each daily summary entry must be an object. Any failure raises
  BackupFormatError and the store is untouched.
- Writes happen inside one store transaction.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Union

from ...constants import (
    BACKUP_FILE_PREFIX,
    BACKUP_FILE_SUFFIX,
    KEY_DAILY_SUMMARY,
    LIST_KEYS,
    MAPPING_KEYS,
    STORAGE_KEYS,
)
from ...database.repositories import (
    CustomersRepo,
    SaleItemsRepo,
    SalePaymentsRepo,
    SalesRepo,
    required_fields,
)
from ...errors import BackupFormatError
from ...utils.helpers import today_str

_log = logging.getLogger(__name__)

__all__ = [
    "export_document",
    "encode_document",
    "decode_document",
    "import_document",
    "default_backup_filename",
]


def _empty_for(key: str) -> Any:
    return [] if key in LIST_KEYS else {}


# collection key -> fields every stored record must carry
_REQUIRED: Dict[str, set] = {
    repo.KEY: required_fields(repo.RECORD)
    for repo in (CustomersRepo, SalesRepo, SaleItemsRepo, SalePaymentsRepo)
}


def _check_records(key: str, value: Any) -> None:
    if not isinstance(value, list) or not all(isinstance(r, dict) for r in value):
        raise BackupFormatError(f"Collection '{key}' must be a list of records.")
    required = _REQUIRED.get(key, set())
    for i, record in enumerate(value):
        missing = required - set(record)
        if missing:
            raise BackupFormatError(
                f"Collection '{key}' record {i} is missing field(s): {', '.join(sorted(missing))}"
            )


def _check_summary(value: Any) -> None:
    for day, bucket in value.items():
        if not isinstance(bucket, dict):
            raise BackupFormatError(f"Daily summary entry '{day}' must be an object.")


def export_document(store) -> Dict[str, str]:
    """Snapshot every collection, value-encoded as JSON text."""
    return {key: json.dumps(store.read(key, _empty_for(key))) for key in STORAGE_KEYS}


def encode_document(document: Mapping[str, str]) -> str:
    return json.dumps(dict(document), indent=2, ensure_ascii=False)


def decode_document(payload: Union[str, bytes, Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Parse a backup document into {storage_key: decoded value} for the
    recognized keys. Raises BackupFormatError on anything malformed.
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BackupFormatError("Backup file is not valid UTF-8 text.") from exc
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise BackupFormatError(f"Backup file is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, Mapping):
        raise BackupFormatError("Backup document must be a JSON object keyed by collection.")

    decoded: Dict[str, Any] = {}
    for key in STORAGE_KEYS:
        raw = payload.get(key)
        if not raw:
            continue
        if isinstance(raw, str):
            try:
                value = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise BackupFormatError(f"Collection '{key}' is not valid JSON: {exc.msg}") from exc
        else:
            value = raw

        if key in LIST_KEYS:
            _check_records(key, value)
        elif key in MAPPING_KEYS:
            if not isinstance(value, dict):
                raise BackupFormatError(f"Collection '{key}' must be an object.")
            if key == KEY_DAILY_SUMMARY:
                _check_summary(value)
        decoded[key] = value

    ignored = sorted(k for k in payload if k not in STORAGE_KEYS)
    if ignored:
        _log.info("backup: ignoring unrecognized key(s): %s", ", ".join(ignored))
    return decoded


def import_document(store, payload: Union[str, bytes, Mapping[str, Any]]) -> list[str]:
    """
    Restore collections from a backup document. Returns the keys written.
    """
    decoded = decode_document(payload)
    with store.transaction():
        for key, value in decoded.items():
            store.write(key, value)
    _log.info("backup: restored %d collection(s)", len(decoded))
    return list(decoded)


def default_backup_filename(day: str | None = None) -> str:
    """khata_backup_YYYY-MM-DD.json"""
    return f"{BACKUP_FILE_PREFIX}{day or today_str()}{BACKUP_FILE_SUFFIX}"
