from __future__ import annotations
from dataclasses import dataclass

from ...constants import DEFAULT_CURRENCY, KEY_DAILY_SUMMARY


@dataclass
class DailySummary:
    date: str
    total_sales: float = 0.0
    currency: str = DEFAULT_CURRENCY
    number_of_transactions: int = 0

    def to_dict(self) -> dict:
        # the date is the mapping key, not part of the stored value
        return {
            "total_sales": self.total_sales,
            "currency": self.currency,
            "number_of_transactions": self.number_of_transactions,
        }


class DailySummaryRepo:
    """
    Date-keyed rollup stored as one JSON object: {"YYYY-MM-DD": {...}, ...}.
    """

    def __init__(self, store):
        self.store = store

    @staticmethod
    def _from_raw(day: str, raw: dict) -> DailySummary:
        return DailySummary(
            date=day,
            total_sales=float(raw.get("total_sales") or 0.0),
            currency=raw.get("currency") or DEFAULT_CURRENCY,
            number_of_transactions=int(raw.get("number_of_transactions") or 0),
        )

    def all(self) -> dict[str, DailySummary]:
        data = self.store.read(KEY_DAILY_SUMMARY, {})
        return {day: self._from_raw(day, raw) for day, raw in sorted(data.items())}

    def get(self, day: str) -> DailySummary | None:
        raw = self.store.read(KEY_DAILY_SUMMARY, {}).get(day)
        return self._from_raw(day, raw) if raw is not None else None

    def put(self, summary: DailySummary) -> None:
        data = self.store.read(KEY_DAILY_SUMMARY, {})
        data[summary.date] = summary.to_dict()
        self.store.write(KEY_DAILY_SUMMARY, data)
