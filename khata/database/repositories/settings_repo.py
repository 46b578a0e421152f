from __future__ import annotations
from dataclasses import asdict, dataclass

from ...constants import (
    DEFAULT_BUSINESS_NAME,
    DEFAULT_CURRENCY,
    DEFAULT_TAX_RATE,
    KEY_SETTINGS,
)
from ...utils.helpers import now_iso
from .base_repo import record_from_dict


@dataclass
class Settings:
    currency: str = DEFAULT_CURRENCY
    business_name: str = DEFAULT_BUSINESS_NAME
    tax_rate: float = DEFAULT_TAX_RATE
    created: str | None = None


class SettingsRepo:
    """Singleton settings record, merged over defaults on read."""

    def __init__(self, store):
        self.store = store

    def get(self) -> Settings:
        raw = self.store.read(KEY_SETTINGS, {})
        return record_from_dict(Settings, raw)

    def ensure_defaults(self) -> Settings:
        """Create the record on first run; leaves an existing one untouched."""
        raw = self.store.read(KEY_SETTINGS, {})
        if raw:
            return record_from_dict(Settings, raw)
        settings = Settings(created=now_iso())
        self.store.write(KEY_SETTINGS, asdict(settings))
        return settings

    def update(self, **patch) -> Settings:
        """
        Merge-patch: only the given fields change. Unknown field names raise
        TypeError so typos don't silently disappear.
        """
        current = asdict(self.get())
        unknown = set(patch) - set(current)
        if unknown:
            raise TypeError(f"Unknown settings field(s): {', '.join(sorted(unknown))}")
        if "tax_rate" in patch and patch["tax_rate"] is not None:
            patch["tax_rate"] = float(patch["tax_rate"])
        current.update(patch)
        self.store.write(KEY_SETTINGS, current)
        return record_from_dict(Settings, current)
