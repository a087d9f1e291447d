"""Classification store backed by a hosted Postgres database.

The engine is built from ``StoreSettings`` (``STORE_URL`` plus ``STORE_KEY``
as the access key/password). Every public operation wraps database failures
into ``StoreOperationFailed``; reads and inserts also go through the bounded
network retry in ``db.retry``.
"""
from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, TypeVar

from sqlalchemy import and_, create_engine, delete, func, insert, or_, select, update
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement

from hs_classifier.config.constants import HS_CODE_SEARCH_PATTERN
from hs_classifier.config.exceptions import ErrorKind, StoreOperationFailed
from hs_classifier.config.settings import StoreSettings
from hs_classifier.models import (
    ClassificationInsert,
    ClassificationRecord,
    ClassificationStatistics,
    ClassificationUpdate,
    QueryOptions,
    QueryPage,
)
from hs_classifier.utils.logging import get_logger

from .retry import with_retry
from .schema import classifications, metadata
from .statistics import ClientSideStatistics, StatisticsProvider

logger = get_logger(__name__)

T = TypeVar("T")

SORTABLE = {
    "created_at": classifications.c.created_at,
    "confidence": classifications.c.confidence,
    "product_name": classifications.c.product_name,
}


def error_kind(exc: SQLAlchemyError) -> ErrorKind:
    """Classify a SQLAlchemy failure; only connection-level problems are NETWORK."""
    if isinstance(exc, DisconnectionError):
        return ErrorKind.NETWORK
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return ErrorKind.NETWORK
    if isinstance(exc, OperationalError):
        sqlstate = getattr(exc.orig, "sqlstate", None)
        # Client-side connection failures carry no SQLSTATE; class 08 is "connection exception"
        if sqlstate is None or str(sqlstate).startswith("08"):
            return ErrorKind.NETWORK
    return ErrorKind.DATABASE


def search_filter(search_term: str) -> ColumnElement[bool]:
    """Filter for a free-text search term.

    HS-code-shaped terms (``NNNN``, ``NNNN.NN``, ``NNNN.NN.NN``) only match
    the HS code column; anything else matches product name, customer name or
    HS code.
    """
    c = classifications.c
    if HS_CODE_SEARCH_PATTERN.match(search_term):
        return c.hs_code.icontains(search_term, autoescape=True)
    return or_(
        c.product_name.icontains(search_term, autoescape=True),
        c.customer_name.icontains(search_term, autoescape=True),
        c.hs_code.icontains(search_term, autoescape=True),
    )


def build_filters(options: QueryOptions) -> List[ColumnElement[bool]]:
    filters: List[ColumnElement[bool]] = []
    term = (options.search_term or "").strip()
    if term:
        filters.append(search_filter(term))
    if options.dual_use_only:
        filters.append(classifications.c.is_dual_use.is_(True))
    return filters


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return False
    return True


class ClassificationStore:
    """Manage stored classifications via a lazily-created SQLAlchemy engine."""

    def __init__(
        self,
        settings: StoreSettings,
        *,
        engine: Engine | None = None,
        statistics: StatisticsProvider | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings.require()
        self.retry_delay = settings.retry_delay
        self.statistics_provider = statistics or ClientSideStatistics()
        self._sleep = sleep
        self._engine: Engine | None = engine

    # ------------------------ Internal helpers ------------------------
    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        url = make_url(self.settings.url)
        connect_args: dict[str, Any] = {}
        if url.get_backend_name() == "postgresql":
            url = url.set(password=self.settings.key)
            connect_args["connect_timeout"] = self.settings.connect_timeout
        logger.debug("Creating engine for %s", url.render_as_string(hide_password=True))
        return create_engine(
            url,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args=connect_args,
        )

    @contextmanager
    def get_connection(self) -> Iterator[Connection]:
        """Context-managed connection (commit on success, rollback on exception)."""
        conn = self.engine.connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _execute(self, operation: str, fn: Callable[[Connection], T]) -> T:
        try:
            with self.get_connection() as conn:
                return fn(conn)
        except SQLAlchemyError as exc:
            kind = error_kind(exc)
            message = str(getattr(exc, "orig", None) or exc)
            logger.error("Database error during '%s' (%s): %s", operation, kind.value, message)
            raise StoreOperationFailed(operation, message, kind) from exc

    def _run(self, operation: str, fn: Callable[[Connection], T]) -> T:
        return with_retry(
            lambda: self._execute(operation, fn),
            delay=self.retry_delay,
            sleep=self._sleep,
        )

    def _select_records(
        self,
        operation: str,
        *filters: ColumnElement[bool],
        limit: Optional[int] = None,
    ) -> List[ClassificationRecord]:
        query = (
            select(classifications)
            .where(*filters)
            .order_by(classifications.c.created_at.desc(), classifications.c.id)
        )
        if limit:
            query = query.limit(limit)

        def fn(conn: Connection) -> List[ClassificationRecord]:
            rows = conn.execute(query).mappings().all()
            return [ClassificationRecord.from_row(r) for r in rows]

        return self._run(operation, fn)

    # ------------------------ Schema ------------------------
    def create_schema(self) -> None:
        """Create the classifications table if missing (no RLS/trigger; see sql/)."""
        self._execute("create schema", lambda conn: metadata.create_all(conn))
        logger.info("Schema ready: %s", classifications.name)

    # ------------------------ CRUD ------------------------
    def create(self, payload: ClassificationInsert) -> ClassificationRecord:
        """Insert one record and return it with its id and timestamps."""
        payload.validate()
        stmt = insert(classifications).values(**payload.to_row()).returning(*classifications.c)

        def fn(conn: Connection) -> ClassificationRecord:
            row = conn.execute(stmt).mappings().one()
            return ClassificationRecord.from_row(row)

        record = self._run("save classification", fn)
        logger.info("Saved classification %s (%s -> %s)", record.id, record.product_name, record.hs_code)
        return record

    def list(self, options: Optional[QueryOptions] = None) -> QueryPage:
        """Return one page of matching records plus the pre-pagination count."""
        options = options or QueryOptions()
        filters = build_filters(options)

        sort_col = SORTABLE[options.sort_by]
        ordering = sort_col.asc() if options.sort_order == "asc" else sort_col.desc()
        query = select(classifications).where(*filters).order_by(ordering, classifications.c.id)
        if options.page_size:
            query = query.limit(options.page_size)
        if options.offset:
            query = query.offset(options.offset)
        count_query = select(func.count()).select_from(classifications).where(*filters)

        def fn(conn: Connection) -> QueryPage:
            rows = conn.execute(query).mappings().all()
            count = conn.execute(count_query).scalar_one()
            return QueryPage(
                records=[ClassificationRecord.from_row(r) for r in rows],
                count=int(count),
            )

        page = self._run("fetch classifications", fn)
        logger.debug(
            "Listed %d/%d classifications (search=%r, dual_use_only=%s, sort=%s %s)",
            len(page.records),
            page.count,
            options.search_term,
            options.dual_use_only,
            options.sort_by,
            options.sort_order,
        )
        return page

    def get(self, record_id: str) -> Optional[ClassificationRecord]:
        """Return the record, or None when no record has this id."""
        if not _is_uuid(record_id):
            return None
        query = select(classifications).where(classifications.c.id == str(record_id))

        def fn(conn: Connection) -> Optional[ClassificationRecord]:
            row = conn.execute(query).mappings().first()
            return ClassificationRecord.from_row(row) if row else None

        return self._execute("fetch classification", fn)

    def update(self, record_id: str, changes: ClassificationUpdate) -> ClassificationRecord:
        """Apply a partial update; ``updated_at`` is refreshed by the store."""
        changes.validate()
        values = changes.to_row()
        if not values:
            raise ValueError("No fields to update")
        if not _is_uuid(record_id):
            raise StoreOperationFailed(
                "update classification", f"no classification with id {record_id}", ErrorKind.NOT_FOUND
            )
        stmt = (
            update(classifications)
            .where(classifications.c.id == str(record_id))
            .values(**values)
            .returning(*classifications.c)
        )

        def fn(conn: Connection) -> Optional[ClassificationRecord]:
            row = conn.execute(stmt).mappings().first()
            return ClassificationRecord.from_row(row) if row else None

        record = self._execute("update classification", fn)
        if record is None:
            raise StoreOperationFailed(
                "update classification", f"no classification with id {record_id}", ErrorKind.NOT_FOUND
            )
        logger.info("Updated classification %s (%s)", record.id, ", ".join(sorted(values)))
        return record

    def delete(self, record_id: str) -> None:
        """Delete by id. Deleting a missing id is not an error."""
        if not _is_uuid(record_id):
            return
        stmt = delete(classifications).where(classifications.c.id == str(record_id))
        deleted = self._execute("delete classification", lambda conn: conn.execute(stmt).rowcount)
        logger.info("Deleted classification %s (%d row(s))", record_id, deleted)

    def statistics(self) -> ClassificationStatistics:
        return self._execute("fetch statistics", self.statistics_provider.compute)

    # ------------------------ Convenience queries ------------------------
    def find_similar_products(self, product_name: str, limit: int = 5) -> List[ClassificationRecord]:
        return self.search_products_by_name(product_name, limit=limit)

    def search_products_by_name(self, product_name: str, limit: int = 10) -> List[ClassificationRecord]:
        return self._select_records(
            "search classifications by product name",
            classifications.c.product_name.icontains(product_name, autoescape=True),
            limit=limit,
        )

    def by_hs_code(self, hs_code: str) -> List[ClassificationRecord]:
        return self._select_records(
            "fetch classifications by HS code",
            classifications.c.hs_code == hs_code,
        )

    def by_customer(self, customer_name: str) -> List[ClassificationRecord]:
        return self._select_records(
            "fetch classifications by customer",
            classifications.c.customer_name == customer_name,
        )

    def dual_use(self) -> List[ClassificationRecord]:
        return self._select_records(
            "fetch dual-use classifications",
            classifications.c.is_dual_use.is_(True),
        )

    def search_by_hs_code_pattern(self, hs_code_prefix: str) -> List[ClassificationRecord]:
        return self._select_records(
            "search classifications by HS code pattern",
            classifications.c.hs_code.istartswith(hs_code_prefix, autoescape=True),
        )

    def search_customers_by_pattern(self, customer_pattern: str) -> List[ClassificationRecord]:
        return self._select_records(
            "search classifications by customer",
            and_(
                classifications.c.customer_name.isnot(None),
                classifications.c.customer_name.icontains(customer_pattern, autoescape=True),
            ),
        )


__all__ = ["ClassificationStore", "build_filters", "search_filter", "error_kind"]
