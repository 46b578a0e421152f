"""
modules/backup_restore/service.py

Purpose
-------
Run backup / restore of the whole ledger store against a JSON file, either
inline (`run`) or on the Qt global thread pool (`run_async`), reporting
progress through duck-typed callbacks.

Public interface
----------------
- BackupJob(store).run(dest_file, callbacks=None) -> (ok, message, path)
- BackupJob(store).run_async(dest_file, callbacks) -> None
- RestoreJob(store).run(src_file, callbacks=None) -> (ok, message, path)
- RestoreJob(store).run_async(src_file, callbacks) -> None

Where callbacks is any object (or simple namespace) that may expose:
- phase(text: str)
- progress(pct: int)                  # 0..100, or negative for indeterminate
- log(line: str)
- finished(success: bool, message: str, path: Optional[str])
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Slot

from ...constants import BACKUP_FILE_SUFFIX
from . import codec, fsops
from .logging_utils import get_logger, log_event
from .validators import validate_backup_destination, validate_backup_source

JobOutcome = Tuple[bool, str, Optional[str]]

__all__ = ["BackupJob", "RestoreJob", "JobOutcome"]


# ----------------------------
# Utilities
# ----------------------------

def _safe_call(fn: Optional[Callable], *args, **kwargs) -> None:
    """Call a callback if present; a failing callback never aborts the job."""
    if fn is None:
        return
    try:
        fn(*args, **kwargs)
    except Exception:
        logging.getLogger(__name__).debug("callback failed:\n%s", traceback.format_exc())


def _fmt_err(msg: str, exc: BaseException | None = None) -> str:
    if exc is None:
        return msg
    return f"{msg}\n\n{exc.__class__.__name__}: {exc}"


@dataclass
class _Callbacks:
    phase: Optional[Callable[[str], None]] = None
    progress: Optional[Callable[[int], None]] = None
    log: Optional[Callable[[str], None]] = None
    finished: Optional[Callable[[bool, str, Optional[str]], None]] = None

    @classmethod
    def wrap(cls, callbacks) -> "_Callbacks":
        return cls(
            phase=getattr(callbacks, "phase", None),
            progress=getattr(callbacks, "progress", None),
            log=getattr(callbacks, "log", None),
            finished=getattr(callbacks, "finished", None),
        )


# ----------------------------
# Base runnable
# ----------------------------

class _JobRunnable(QRunnable):
    """QRunnable wrapper around a zero-arg callable."""
    def __init__(self, work: Callable[[], None]) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._work = work

    @Slot()
    def run(self) -> None:  # type: ignore[override]
        self._work()


class _StoreJob(QObject):
    OP = ""

    def __init__(self, store, logger: Optional[logging.Logger] = None, pool: Optional[QThreadPool] = None) -> None:
        super().__init__()
        self._store = store
        self._pool = pool or QThreadPool.globalInstance()
        self._log = logger or get_logger()

    def run_async(self, path: str, callbacks) -> None:
        cb = _Callbacks.wrap(callbacks)
        self._pool.start(_JobRunnable(lambda: self._run(path, cb)))

    def run(self, path: str, callbacks=None) -> JobOutcome:
        return self._run(path, _Callbacks.wrap(callbacks))

    def _run(self, path: str, cb: _Callbacks) -> JobOutcome:
        raise NotImplementedError

    def _fail(self, cb: _Callbacks, message: str, exc: BaseException, path: str) -> JobOutcome:
        self._log.debug("%s failed:\n%s", self.OP, traceback.format_exc())
        log_event(self._log, self.OP, "failed", str(exc), {"path": path}, level=logging.WARNING)
        text = _fmt_err(message, exc)
        _safe_call(cb.finished, False, text, None)
        return False, text, None


# ----------------------------
# Backup Job
# ----------------------------

class BackupJob(_StoreJob):
    """
    Writes the store snapshot to `dest_file`.

    A directory destination receives the default khata_backup_<date>.json
    name; any other name is forced to the .json extension.
    """
    OP = "backup"

    @staticmethod
    def resolve_destination(dest_file: str) -> Path:
        dest = Path(dest_file)
        if dest.is_dir():
            return dest / codec.default_backup_filename()
        if dest.suffix.lower() != BACKUP_FILE_SUFFIX:
            dest = dest.with_suffix(BACKUP_FILE_SUFFIX)
        return dest

    def _run(self, dest_file: str, cb: _Callbacks) -> JobOutcome:
        try:
            _safe_call(cb.phase, "Preflight")
            _safe_call(cb.progress, -1)
            dest = self.resolve_destination(dest_file)
            validate_backup_destination(str(dest))
            log_event(self._log, self.OP, "preflight", "destination ok", {"dest": str(dest)})

            _safe_call(cb.phase, "Exporting data")
            document = codec.export_document(self._store)
            text = codec.encode_document(document)
            _safe_call(cb.progress, 50)
            _safe_call(cb.log, f"Collections exported: {len(document)}")

            _safe_call(cb.phase, "Saving")
            final = fsops.write_text_atomic(str(dest), text, logger=self._log)
            _safe_call(cb.progress, 100)
            _safe_call(cb.log, f"Backup written to: {final}")
            log_event(self._log, self.OP, "done", "backup written", {"dest": final, "bytes": len(text.encode("utf-8"))})

            message = "Backup completed successfully."
            _safe_call(cb.finished, True, message, final)
            return True, message, final

        except Exception as exc:
            return self._fail(cb, "Backup failed.", exc, dest_file)


# ----------------------------
# Restore Job
# ----------------------------

class RestoreJob(_StoreJob):
    """
    Replaces stored collections with the ones found in `src_file`.

    The document is fully decoded and checked before any write, and the
    writes share one store transaction, so a bad file leaves the store as it was.
    """
    OP = "restore"

    def _run(self, src_file: str, cb: _Callbacks) -> JobOutcome:
        try:
            _safe_call(cb.phase, "Validating backup")
            _safe_call(cb.progress, 5)
            validate_backup_source(src_file)
            log_event(self._log, self.OP, "preflight", "source ok", {"src": src_file})

            _safe_call(cb.phase, "Reading backup")
            payload = Path(src_file).read_bytes()
            _safe_call(cb.progress, 30)

            _safe_call(cb.phase, "Restoring data")
            restored = codec.import_document(self._store, payload)
            _safe_call(cb.progress, 100)
            _safe_call(cb.log, f"Collections restored: {', '.join(restored) or '(none)'}")
            log_event(self._log, self.OP, "done", "restore applied", {"src": src_file, "keys": restored})

            message = "Restore completed successfully."
            _safe_call(cb.finished, True, message, src_file)
            return True, message, src_file

        except Exception as exc:
            return self._fail(cb, "Restore failed.", exc, src_file)
