# utils/helpers.py
from datetime import date, datetime
import logging
import uuid
from typing import Optional

_log = logging.getLogger(__name__)


def today_str() -> str:
    """Return today's local date as ISO string (YYYY-MM-DD)."""
    return date.today().isoformat()


def now_iso() -> str:
    """Local timestamp with millisecond precision, e.g. 2025-03-01T10:15:02.120."""
    return datetime.now().isoformat(timespec="milliseconds")


def new_id() -> str:
    """Collision-resistant record id (safe for many inserts in the same tick)."""
    return uuid.uuid4().hex


def date_part(timestamp: Optional[str]) -> Optional[str]:
    """
    'YYYY-MM-DD' portion of an ISO timestamp, or None when it can't be read.
    Stored timestamps are local time, so no timezone conversion happens here.
    """
    if not timestamp:
        return None
    try:
        return datetime.fromisoformat(str(timestamp)).date().isoformat()
    except ValueError:
        _log.debug("date_part: unreadable timestamp %r", timestamp)
        return None


def fmt_date_human(timestamp: Optional[str]) -> str:
    """MM/DD/YYYY for exports; falls back to the raw value."""
    if not timestamp:
        return ""
    try:
        return datetime.fromisoformat(str(timestamp)).strftime("%m/%d/%Y")
    except ValueError:
        return str(timestamp)

