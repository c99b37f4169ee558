"""
Module: precast_kernel.db.base
Responsibility: Declarative base classes for all pricing ORM models.  Provides
    the UUID primary key convention, the type annotation map that pins money
    and quantity columns to Numeric(38, 9), the TrackedBase audit mixin and
    the SoftDeleteMixin used by catalog entities.
Architecture position: Kernel > DB.  Lowest import target within the kernel.
    MUST NOT import from models/, services/, selectors/, domain/, or outer
    layers.

Invariants enforced:
    - UUID primary keys on every row (uuid4, stored as String(36)).
    - Decimal maps to Numeric(38, 9): prices, consumptions and waste factors
      are never floats in application code.
    - Catalog entities are never hard-deleted; deleted_at marks them
      inactive and keeps historical prices and formulas resolvable.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID stored as String(36) so PostgreSQL and SQLite share one schema.

    Guarantees:
        - UUID -> str on bind, str -> UUID on result.
        - cache_ok=True enables SQLAlchemy statement caching.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all pricing models.

    Contract:
        Every ORM model inherits from Base (or TrackedBase) and receives a
        uuid4 primary key.  The type_annotation_map keeps column types
        consistent across the schema.
    """

    type_annotation_map: ClassVar[dict] = {
        # Prices, quantities and rates: 38 digits, 9 decimal places
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps and actor tracking.

    Contract:
        Records who created and last modified the row, and when.  These
        are audit metadata, so they may change even on append-only price
        rows (see db/immutability.py).

    Guarantees:
        - created_at is server NOW() on INSERT.
        - updated_at auto-updates on every UPDATE.
        - created_by_id is required; updated_by_id is optional.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    updated_by_id: Mapped[PyUUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )


class SoftDeleteMixin:
    """Catalog rows are deactivated by stamping deleted_at, never deleted."""

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None


# Re-export UUID for convenience
UUID = PyUUID
