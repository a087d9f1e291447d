from __future__ import annotations

from abc import ABC, abstractmethod

import pandas as pd
from sqlalchemy import select
from sqlalchemy.engine import Connection

from hs_classifier.helpers.data_operations import summarize_statistics
from hs_classifier.models import ClassificationStatistics
from hs_classifier.utils.logging import get_logger

from .schema import classifications

logger = get_logger(__name__)


class StatisticsProvider(ABC):
    """Computes aggregate statistics over the stored classifications."""

    @abstractmethod
    def compute(self, conn: Connection) -> ClassificationStatistics:
        raise NotImplementedError


class ClientSideStatistics(StatisticsProvider):
    """Aggregates in-process over a full (confidence, is_dual_use, chapter) projection.

    Cost grows with the table size; fine while the catalog stays small.
    """

    def compute(self, conn: Connection) -> ClassificationStatistics:
        query = select(
            classifications.c.confidence,
            classifications.c.is_dual_use,
            classifications.c.chapter,
        )
        df = pd.read_sql_query(query, conn)
        logger.debug("Statistics projection: %d rows", len(df))
        return summarize_statistics(df)


__all__ = ["StatisticsProvider", "ClientSideStatistics"]
