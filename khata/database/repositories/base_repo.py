from __future__ import annotations

from dataclasses import MISSING, asdict, fields
from typing import Any, Callable, Generic, Iterable, TypeVar

from ..store import KeyValueStore
from ...utils.helpers import new_id, now_iso

T = TypeVar("T")


def record_from_dict(cls: type[T], data: dict[str, Any]) -> T:
    """Build a dataclass from a stored dict, ignoring keys the class doesn't know."""
    names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in data.items() if k in names})


def required_fields(cls: type) -> set[str]:
    """Fields a stored dict must carry for record_from_dict to succeed."""
    return {
        f.name for f in fields(cls)
        if f.default is MISSING and f.default_factory is MISSING  # type: ignore[misc]
    }


class CollectionRepo(Generic[T]):
    """
    Accessors over one list-shaped collection in the key-value store.

    Every call is a full read-modify-write of the collection. No field
    validation happens here; callers (services / ledger) own the rules.

    Subclasses set:
      KEY          : storage key
      RECORD       : dataclass type
      ID_FIELD     : identity attribute, assigned on insert when empty
      CREATED_FIELD: timestamp attribute stamped on insert (None = no stamp)
    """

    KEY: str
    RECORD: type
    ID_FIELD: str
    CREATED_FIELD: str | None = None

    def __init__(self, store: KeyValueStore):
        self.store = store

    # ---- Internal helpers -------------------------------------------------

    def _load(self) -> list[T]:
        return [record_from_dict(self.RECORD, r) for r in self.store.read(self.KEY, [])]

    def _save(self, records: Iterable[T]) -> None:
        self.store.write(self.KEY, [asdict(r) for r in records])  # type: ignore[arg-type]

    def _id_of(self, record: T) -> Any:
        return getattr(record, self.ID_FIELD)

    def _stamp(self, record: T) -> T:
        if not self._id_of(record):
            setattr(record, self.ID_FIELD, new_id())
        if self.CREATED_FIELD and not getattr(record, self.CREATED_FIELD):
            setattr(record, self.CREATED_FIELD, now_iso())
        return record

    # ---- Queries ----------------------------------------------------------

    def list_all(self) -> list[T]:
        return self._load()

    def get(self, record_id: str) -> T | None:
        for r in self._load():
            if self._id_of(r) == record_id:
                return r
        return None

    def find(self, predicate: Callable[[T], bool]) -> list[T]:
        return [r for r in self._load() if predicate(r)]

    # ---- Mutations --------------------------------------------------------

    def insert(self, record: T) -> T:
        """Append a record; assigns id and creation timestamp when missing."""
        records = self._load()
        records.append(self._stamp(record))
        self._save(records)
        return record

    def insert_many(self, new_records: Iterable[T]) -> list[T]:
        records = self._load()
        added = [self._stamp(r) for r in new_records]
        records.extend(added)
        self._save(records)
        return added

    def replace_where(self, predicate: Callable[[T], bool], updated: T) -> int:
        """Swap every matching record for `updated`; returns how many were replaced."""
        records = self._load()
        n = 0
        for i, r in enumerate(records):
            if predicate(r):
                records[i] = updated
                n += 1
        if n:
            self._save(records)
        return n

    def update(self, record: T) -> bool:
        """Replace the stored record carrying the same id."""
        rid = self._id_of(record)
        return self.replace_where(lambda r: self._id_of(r) == rid, record) > 0

    def delete_where(self, predicate: Callable[[T], bool]) -> int:
        records = self._load()
        kept = [r for r in records if not predicate(r)]
        removed = len(records) - len(kept)
        if removed:
            self._save(kept)
        return removed
