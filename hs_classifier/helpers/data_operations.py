from __future__ import annotations

import csv
import math
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from hs_classifier.config.constants import CHAPTER_SEPARATOR, CSV_COLUMNS, TOP_CHAPTERS
from hs_classifier.models import ChapterCount, ClassificationRecord, ClassificationStatistics
from hs_classifier.utils.logging import get_logger

logger = get_logger(__name__)


def chapter_bucket(chapter: Optional[str]) -> str:
    """Chapter code: the text before the first " - " separator."""
    return (chapter or "").split(CHAPTER_SEPARATOR, 1)[0]


def summarize_statistics(
    df: pd.DataFrame,
    top_n: int = TOP_CHAPTERS,
) -> ClassificationStatistics:
    """Aggregate a (confidence, is_dual_use, chapter) projection.

    Args:
        df: DataFrame with at least those three columns, one row per record.
        top_n: Number of chapter buckets to report.

    Returns:
        Totals, half-up rounded mean confidence, and the most frequent
        chapter buckets (ties keep first-seen order).
    """
    total = len(df)
    if total == 0:
        return ClassificationStatistics(total=0, dual_use_count=0, average_confidence=0)

    dual_use_count = int(df["is_dual_use"].fillna(False).astype(bool).sum())
    mean = float(df["confidence"].astype(float).mean())
    average_confidence = int(math.floor(mean + 0.5))

    buckets = Counter(chapter_bucket(c) for c in df["chapter"].fillna("").astype(str))
    top_chapters = [ChapterCount(chapter=ch, count=n) for ch, n in buckets.most_common(top_n)]

    logger.info(
        "Statistics: %d records, %d dual-use, avg confidence %d%%, %d chapter buckets",
        total,
        dual_use_count,
        average_confidence,
        len(buckets),
    )
    logger.debug("Top chapters: %s", [(c.chapter, c.count) for c in top_chapters])

    return ClassificationStatistics(
        total=total,
        dual_use_count=dual_use_count,
        average_confidence=average_confidence,
        top_chapters=top_chapters,
    )


def records_to_dataframe(records: Iterable[ClassificationRecord]) -> pd.DataFrame:
    """Shape records into the export columns, in the given order."""
    rows: List[List[str]] = [
        [
            r.product_name,
            r.hs_code,
            r.chapter,
            f"{r.confidence}%",
            "Yes" if r.is_dual_use else "No",
            r.customer_name or "",
            r.created_at.isoformat(),
        ]
        for r in records
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def export_csv(
    records: Iterable[ClassificationRecord],
    path: Path | str | None = None,
) -> str:
    """Render records as CSV with every field quoted; optionally write it atomically."""
    df = records_to_dataframe(records)
    # Rows are joined with "\n"; no terminator after the last one
    content = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n").removesuffix("\n")

    if path is not None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")
        tmp.write_text(content, encoding="utf-8")
        tmp.replace(p)
        logger.info("Exported %d rows to %s", len(df), p)
    return content


__all__ = ["chapter_bucket", "summarize_statistics", "records_to_dataframe", "export_csv"]
