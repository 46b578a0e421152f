"""
modules/backup_restore/fsops.py

Purpose
-------
File-system helpers so a backup file is either fully written or not there.

Public interface
----------------
- make_temp_file(suffix: str = "", dir: Optional[str] = None) -> str
- atomic_move(src: str, dest: str, *, logger: Optional[logging.Logger] = None) -> None
- write_text_atomic(dest: str, text: str, *, logger: Optional[logging.Logger] = None) -> str
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

__all__ = ["make_temp_file", "atomic_move", "write_text_atomic"]


# ----------------------------
# Helpers (private)
# ----------------------------

def _fsync_file(path: Path) -> None:
    """Best-effort fsync for a file."""
    try:
        fd = os.open(str(path), os.O_RDONLY | getattr(os, "O_BINARY", 0))
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        pass


def _fsync_dir(path: Path) -> None:
    """Best-effort fsync for a directory (after rename/replace)."""
    try:
        fd = os.open(str(path), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        pass


# ----------------------------
# Public API
# ----------------------------

def make_temp_file(suffix: str = "", dir: Optional[str] = None) -> str:
    """
    Create an empty temp file that survives close and return its absolute path.
    Caller moves or removes it.
    """
    d = Path(dir) if dir else Path(tempfile.gettempdir())
    d.mkdir(parents=True, exist_ok=True)
    f = tempfile.NamedTemporaryFile(prefix="khata_", suffix=suffix, dir=str(d), delete=False)
    f_path = Path(f.name).resolve()
    f.close()
    return str(f_path)


def atomic_move(src: str, dest: str, *, logger: Optional[logging.Logger] = None) -> None:
    """
    Move `src` onto `dest` with os.replace(). Both must be on the same volume,
    which write_text_atomic guarantees by creating its temp file beside `dest`.
    """
    src_p = Path(src).resolve()
    dest_p = Path(dest).resolve()
    dest_p.parent.mkdir(parents=True, exist_ok=True)

    _fsync_file(src_p)
    os.replace(str(src_p), str(dest_p))
    _fsync_dir(dest_p.parent)

    if logger:
        logger.debug("atomic_move src=%s dest=%s size=%d", src_p, dest_p, dest_p.stat().st_size)


def write_text_atomic(dest: str, text: str, *, logger: Optional[logging.Logger] = None) -> str:
    """Write UTF-8 `text` to a temp file beside `dest`, then move it into place."""
    dest_p = Path(dest)
    tmp = make_temp_file(suffix=".tmp", dir=str(dest_p.parent.resolve()))
    try:
        with open(tmp, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
        atomic_move(tmp, str(dest_p), logger=logger)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    return str(dest_p.resolve())
