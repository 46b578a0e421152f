"""
modules/backup_restore/logging_utils.py

Purpose
-------
Append-only JSON-lines logging for backup/restore jobs.

Public API
----------
- get_logger() -> logging.Logger
- log_event(logger, op, phase, message, extra: dict = {})
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from ... import config

__all__ = ["get_logger", "log_event"]

_LOGGER_NAME = "khata.backup_restore"
_LOG_FILE_NAME = "backup_restore.log"


def _ensure_log_dir(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
        return True
    except OSError:
        return False


def get_logger(file_path: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Return the job logger, writing JSON lines to <LOG_PATH>/backup_restore.log.
    Handlers are attached once; later calls reuse the configured logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        return logger

    log_file = Path(file_path) if file_path else Path(config.LOG_PATH) / _LOG_FILE_NAME

    if _ensure_log_dir(log_file.parent):
        fh = logging.FileHandler(str(log_file), mode="a", encoding="utf-8", delay=True)
        fh.setLevel(level)
        fh.setFormatter(_JsonLineFormatter())
        logger.addHandler(fh)

    # WARNING+ also goes to stderr
    sh = logging.StreamHandler()
    sh.setLevel(logging.WARNING if logger.handlers else level)
    sh.setFormatter(_JsonLineFormatter())
    logger.addHandler(sh)

    return logger


class _JsonLineFormatter(logging.Formatter):
    """
    {"ts":"2026-01-05T12:00:01.123Z","level":"INFO","name":"khata.backup_restore","msg":"...","extra":{...}}
    """
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra_payload", None)
        if isinstance(extra, dict):
            payload["extra"] = extra
        return json.dumps(payload, ensure_ascii=False, default=str)


def log_event(
    logger: logging.Logger,
    op: str,
    phase: str,
    message: str,
    extra: Dict[str, object] | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Log one structured event line.

    Args:
        op: "backup" or "restore".
        phase: "preflight", "export", "write", "read", "import", "done".
        extra: file paths, sizes, collection counts. Never overrides op/phase.
    """
    extra_payload: Dict[str, object] = {"op": op, "phase": phase}
    for k, v in (extra or {}).items():
        extra_payload.setdefault(k, v)
    logger.log(level, message, extra={"extra_payload": extra_payload})
