"""Submission flow: classify, derive links, save, remember for the session.

A store failure after a successful classification never discards the
classification. The result comes back with ``saved=False`` and the error
attached, and stays in the session list like any other result.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from hs_classifier.config.constants import HISTORY_PAGE_SIZE
from hs_classifier.config.exceptions import ErrorKind, StoreOperationFailed
from hs_classifier.db.store import ClassificationStore
from hs_classifier.models import (
    Classification,
    ClassificationInsert,
    ClassificationRecord,
    QueryOptions,
    ReferenceLinks,
)
from hs_classifier.services.links import build_reference_links
from hs_classifier.services.llm.classification_orchestrator import Classifier
from hs_classifier.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    product_name: str
    customer_name: Optional[str]
    classification: Classification
    links: ReferenceLinks
    record: Optional[ClassificationRecord] = None
    save_error: Optional[StoreOperationFailed] = None

    @property
    def saved(self) -> bool:
        return self.record is not None


class ClassificationSession:
    """Holds the transient, newest-first list of results for one session."""

    def __init__(self, classifier: Classifier, store: Optional[ClassificationStore] = None):
        self.classifier = classifier
        self.store = store
        self.results: List[SubmissionResult] = []

    def submit(self, product_name: str, customer_name: Optional[str] = None) -> SubmissionResult:
        """Classify a product and try to persist it.

        Classification errors propagate; persistence errors are attached to
        the returned result instead.
        """
        product_name = (product_name or "").strip()
        customer_name = (customer_name or "").strip() or None

        classification = self.classifier.classify(product_name, customer_name)
        links = build_reference_links(classification.hs_code)

        record: Optional[ClassificationRecord] = None
        save_error: Optional[StoreOperationFailed] = None
        if self.store is None:
            save_error = StoreOperationFailed(
                "save classification", "store is not configured", ErrorKind.CONFIG
            )
        else:
            payload = ClassificationInsert.from_classification(
                classification, product_name, customer_name, links
            )
            try:
                record = self.store.create(payload)
            except StoreOperationFailed as e:
                save_error = e
            except ValueError as e:
                save_error = StoreOperationFailed("save classification", str(e))
        if save_error is not None:
            logger.warning("Classification kept locally only: %s", save_error)

        result = SubmissionResult(
            product_name=product_name,
            customer_name=customer_name,
            classification=classification,
            links=links,
            record=record,
            save_error=save_error,
        )
        self.results.insert(0, result)
        return result

    def load_history(self, limit: int = HISTORY_PAGE_SIZE) -> List[ClassificationRecord]:
        """Most recent stored classifications, newest first."""
        if self.store is None:
            return []
        page = self.store.list(QueryOptions(limit=limit, sort_by="created_at", sort_order="desc"))
        return page.records


__all__ = ["ClassificationSession", "SubmissionResult"]
