"""Persistence gateway for stored classifications.

Exports:
    ClassificationStore: CRUD, query, convenience lookups and statistics.
    StatisticsProvider / ClientSideStatistics: aggregate computation seam.
    with_retry: bounded retry on transient network failures.
"""

from .retry import with_retry
from .statistics import ClientSideStatistics, StatisticsProvider
from .store import ClassificationStore

__all__ = [
    "ClassificationStore",
    "StatisticsProvider",
    "ClientSideStatistics",
    "with_retry",
]
