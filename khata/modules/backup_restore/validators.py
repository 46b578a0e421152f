"""
modules/backup_restore/validators.py

Purpose
-------
Preflight checks for backup/restore file paths with user-facing messages.

Public API
---------
- validate_backup_destination(dest_file: str) -> None
- validate_backup_source(path: str) -> None
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable


def _is_writable_dir(p: Path) -> bool:
    return p.is_dir() and os.access(str(p), os.W_OK | os.X_OK)


def _windows_reserved_names() -> Iterable[str]:
    return {
        "con", "prn", "aux", "nul",
        *(f"com{i}" for i in range(1, 10)),
        *(f"lpt{i}" for i in range(1, 10)),
    }


def validate_backup_destination(dest_file: str) -> None:
    """
    Validate that `dest_file` can receive a backup document.

    Rules:
      - Parent folder must exist and be writable.
      - Filename must be non-empty and not point at a directory.
    Raises:
      RuntimeError with a user-facing message on failure.
    """
    path = Path(dest_file)
    parent = path.parent if str(path.parent) not in ("", ".") else Path.cwd()

    if not parent.exists():
        raise RuntimeError(f"Destination folder does not exist: {parent}")
    if not _is_writable_dir(parent):
        raise RuntimeError(f"Destination folder is not writable: {parent}")

    name = path.name.strip()
    if not name:
        raise RuntimeError("Please provide a file name for the backup.")
    if sys.platform.startswith("win"):
        stem = path.stem.lower().rstrip(".")
        if stem in _windows_reserved_names():
            raise RuntimeError(f"The backup filename '{path.stem}' is reserved on Windows.")
        if path.name.endswith((" ", ".")):
            raise RuntimeError("Windows filenames cannot end with a space or dot.")

    if path.is_dir():
        raise RuntimeError("Destination path points to a directory, not a file.")


def validate_backup_source(path: str) -> None:
    """
    Validate that a backup file exists and is readable before restoring.

    Raises:
      RuntimeError with a user-facing message on failure.
    """
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"Backup file not found: {p}")
    if not p.is_file():
        raise RuntimeError(f"Backup path is not a file: {p}")
    if not os.access(str(p), os.R_OK):
        raise RuntimeError(f"Backup file is not readable: {p}")
    if p.stat().st_size <= 0:
        raise RuntimeError("The backup file is empty (0 bytes).")
