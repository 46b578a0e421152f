"""
Backup & Restore: whole-store JSON snapshot and the file jobs around it.

The Qt-backed jobs are imported lazily so that the codec stays usable
without PySide6 being loaded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .codec import (
    decode_document,
    default_backup_filename,
    encode_document,
    export_document,
    import_document,
)

if TYPE_CHECKING:
    from .service import BackupJob, RestoreJob  # pragma: no cover

__all__ = [
    "export_document",
    "encode_document",
    "decode_document",
    "import_document",
    "default_backup_filename",
    "BackupJob",
    "RestoreJob",
]


def __getattr__(name: str):
    if name in ("BackupJob", "RestoreJob"):
        from . import service
        return getattr(service, name)
    raise AttributeError(name)
