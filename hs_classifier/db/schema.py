"""SQLAlchemy table definition for stored classifications.

The Postgres deployment is created from ``sql/001_create_classifications.sql``
(RLS policies, indexes, update trigger). ``metadata.create_all`` builds an
equivalent table on other dialects.
"""
from __future__ import annotations

import datetime
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    false,
    func,
)
from sqlalchemy.dialects import postgresql

from hs_classifier.config.constants import CLASSIFICATIONS_TABLE

metadata = MetaData()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


classifications = Table(
    CLASSIFICATIONS_TABLE,
    metadata,
    Column(
        "id",
        String(36).with_variant(postgresql.UUID(as_uuid=False), "postgresql"),
        primary_key=True,
        default=_new_id,
    ),
    Column("product_name", Text, nullable=False),
    Column("customer_name", Text),
    Column("hs_code", Text, nullable=False),
    Column("chapter", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("confidence", Integer, nullable=False),
    Column("is_dual_use", Boolean, nullable=False, default=False, server_default=false()),
    Column("reasoning", Text),
    Column("wto_links", JSON().with_variant(postgresql.JSONB(), "postgresql")),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    ),
    # The Postgres trigger also refreshes this on every row update
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    ),
    CheckConstraint(
        "confidence >= 0 AND confidence <= 100",
        name="classifications_confidence_check",
    ),
)

Index("idx_classifications_hs_code", classifications.c.hs_code)
Index("idx_classifications_created_at", classifications.c.created_at.desc())
Index(
    "idx_classifications_customer_name",
    classifications.c.customer_name,
    postgresql_where=classifications.c.customer_name.isnot(None),
    sqlite_where=classifications.c.customer_name.isnot(None),
)
Index(
    "idx_classifications_is_dual_use",
    classifications.c.is_dual_use,
    postgresql_where=classifications.c.is_dual_use.is_(True),
    sqlite_where=classifications.c.is_dual_use.is_(True),
)


__all__ = ["metadata", "classifications"]
