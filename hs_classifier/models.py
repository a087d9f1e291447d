"""Domain types for HS code classification."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from hs_classifier.config.constants import (
    DEFAULT_PAGE_SIZE,
    SORT_COLUMNS,
    SORT_ORDERS,
)


@dataclass(frozen=True)
class ReferenceLinks:
    """Named research URLs derived from an HS code."""

    wto: str
    wcoomic: str
    chapter: str
    detailed: str
    search: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["ReferenceLinks"]:
        if not data:
            return None
        return cls(
            wto=str(data.get("wto", "")),
            wcoomic=str(data.get("wcoomic", "")),
            chapter=str(data.get("chapter", "")),
            detailed=str(data.get("detailed", "")),
            search=str(data.get("search", "")),
        )


@dataclass(frozen=True)
class Classification:
    """Validated classification returned by the completion pipeline."""

    hs_code: str
    chapter: str
    description: str
    confidence: int
    is_dual_use: bool = False
    reasoning: str = ""


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: Any) -> Optional["RiskLevel"]:
        if not isinstance(value, str):
            return None
        for level in cls:
            if level.value.lower() == value.strip().lower():
                return level
        return None


@dataclass(frozen=True)
class CompanyProduct:
    name: str
    category: str
    hs_code: str
    confidence: int
    is_dual_use: bool = False


@dataclass(frozen=True)
class PortfolioAnalysis:
    products: List[CompanyProduct]
    industry: str
    risk_level: Optional[RiskLevel]


@dataclass
class ClassificationInsert:
    """Field set accepted by the store when creating a record."""

    product_name: str
    hs_code: str
    chapter: str
    description: str
    confidence: int
    is_dual_use: bool = False
    customer_name: Optional[str] = None
    reasoning: Optional[str] = None
    wto_links: Optional[ReferenceLinks] = None

    @classmethod
    def from_classification(
        cls,
        classification: Classification,
        product_name: str,
        customer_name: Optional[str] = None,
        links: Optional[ReferenceLinks] = None,
    ) -> "ClassificationInsert":
        return cls(
            product_name=product_name,
            customer_name=customer_name,
            hs_code=classification.hs_code,
            chapter=classification.chapter,
            description=classification.description,
            confidence=classification.confidence,
            is_dual_use=classification.is_dual_use,
            reasoning=classification.reasoning or None,
            wto_links=links,
        )

    def validate(self) -> None:
        for name in ("product_name", "hs_code", "chapter", "description"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string")
        _check_confidence(self.confidence)

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["wto_links"] = self.wto_links.to_dict() if self.wto_links else None
        return row


@dataclass
class ClassificationUpdate:
    """Partial field set; only fields left as non-None are written."""

    product_name: Optional[str] = None
    customer_name: Optional[str] = None
    hs_code: Optional[str] = None
    chapter: Optional[str] = None
    description: Optional[str] = None
    confidence: Optional[int] = None
    is_dual_use: Optional[bool] = None
    reasoning: Optional[str] = None
    wto_links: Optional[ReferenceLinks] = None

    def validate(self) -> None:
        for name in ("product_name", "hs_code", "chapter", "description"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, str) or not value.strip()):
                raise ValueError(f"{name} must be a non-empty string")
        if self.confidence is not None:
            _check_confidence(self.confidence)

    def to_row(self) -> Dict[str, Any]:
        row = {k: v for k, v in asdict(self).items() if v is not None}
        if self.wto_links is not None:
            row["wto_links"] = self.wto_links.to_dict()
        return row


@dataclass(frozen=True)
class ClassificationRecord:
    id: str
    product_name: str
    hs_code: str
    chapter: str
    description: str
    confidence: int
    is_dual_use: bool
    created_at: datetime
    updated_at: datetime
    customer_name: Optional[str] = None
    reasoning: Optional[str] = None
    wto_links: Optional[ReferenceLinks] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ClassificationRecord":
        return cls(
            id=str(row["id"]),
            product_name=row["product_name"],
            customer_name=row.get("customer_name"),
            hs_code=row["hs_code"],
            chapter=row["chapter"],
            description=row["description"],
            confidence=int(row["confidence"]),
            is_dual_use=bool(row.get("is_dual_use")),
            reasoning=row.get("reasoning"),
            wto_links=ReferenceLinks.from_dict(row.get("wto_links")),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass(frozen=True)
class QueryOptions:
    limit: Optional[int] = None
    offset: Optional[int] = None
    search_term: Optional[str] = None
    dual_use_only: bool = False
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        if self.sort_by not in SORT_COLUMNS:
            raise ValueError(f"sort_by must be one of {SORT_COLUMNS}, got {self.sort_by!r}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"sort_order must be one of {SORT_ORDERS}, got {self.sort_order!r}")
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be non-negative")
        if self.offset is not None and self.offset < 0:
            raise ValueError("offset must be non-negative")

    @property
    def page_size(self) -> Optional[int]:
        """Effective row limit; an offset without a limit pages by 50."""
        if self.limit:
            return self.limit
        if self.offset:
            return DEFAULT_PAGE_SIZE
        return None


@dataclass(frozen=True)
class QueryPage:
    records: List[ClassificationRecord]
    count: int


@dataclass(frozen=True)
class ChapterCount:
    chapter: str
    count: int


@dataclass(frozen=True)
class ClassificationStatistics:
    total: int
    dual_use_count: int
    average_confidence: int
    top_chapters: List[ChapterCount] = field(default_factory=list)


def _check_confidence(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"confidence must be an integer, got {value!r}")
    if not 0 <= value <= 100:
        raise ValueError(f"confidence must be within 0-100, got {value}")


__all__ = [
    "ReferenceLinks",
    "Classification",
    "RiskLevel",
    "CompanyProduct",
    "PortfolioAnalysis",
    "ClassificationInsert",
    "ClassificationUpdate",
    "ClassificationRecord",
    "QueryOptions",
    "QueryPage",
    "ChapterCount",
    "ClassificationStatistics",
]
