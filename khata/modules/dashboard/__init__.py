"""
Dashboard module package exports.
"""

from .aggregator import DailySummaryAggregator

__all__ = [
    "DailySummaryAggregator",
]
