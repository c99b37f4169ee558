"""
Catalog value types -- material catalog filter, listing rows, import rows.

The filter is a typed value object; MaterialSelector turns each populated
field into one SQLAlchemy predicate.  Nothing here builds SQL strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from precast_kernel.domain.money import ZERO


class StockStatus(str, Enum):
    """Stock level of a material summed across the selected zones."""

    OUT = "out"
    LOW = "low"
    AVAILABLE = "available"


class PriceStatus(str, Enum):
    """Whether the most recent price row is newer than the staleness window."""

    UPDATED = "updated"
    OUTDATED = "outdated"


def classify_stock(total_stock: Decimal, minimum_stock: Decimal) -> StockStatus:
    if total_stock <= ZERO:
        return StockStatus.OUT
    if total_stock <= minimum_stock:
        return StockStatus.LOW
    return StockStatus.AVAILABLE


@dataclass(frozen=True)
class MaterialCatalogFilter:
    """
    Filter for MaterialSelector.list_materials().

    All fields are optional; None means "do not filter on this".
    """

    search: str | None = None
    category: str | None = None
    zone_id: UUID | None = None
    stock_status: StockStatus | None = None
    price_status: PriceStatus | None = None
    include_inactive: bool = False
    page: int = 1
    page_size: int = 50

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.page_size <= 500:
            raise ValueError("page_size must be between 1 and 500")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class MaterialDraft:
    """Input for MaterialService.create_material()."""

    code: str
    name: str
    category: str
    unit: str
    minimum_stock: Decimal = ZERO
    maximum_stock: Decimal = ZERO


@dataclass(frozen=True)
class MaterialInfo:
    id: UUID
    code: str
    name: str
    category: str
    unit: str
    minimum_stock: Decimal
    maximum_stock: Decimal
    is_active: bool

    @classmethod
    def from_model(cls, model) -> MaterialInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            category=model.category,
            unit=model.unit,
            minimum_stock=model.minimum_stock,
            maximum_stock=model.maximum_stock,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class MaterialCatalogEntry:
    """One row of the material catalog listing."""

    id: UUID
    code: str
    name: str
    category: str
    unit: str
    is_active: bool
    total_stock: Decimal
    minimum_stock: Decimal
    stock_status: StockStatus
    last_price_date: date | None
    price_status: PriceStatus


@dataclass(frozen=True)
class CatalogPage:
    items: tuple[MaterialCatalogEntry, ...]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


@dataclass(frozen=True)
class PriceImportRow:
    """One row of a material price import (CSV already parsed by the caller)."""

    material_code: str
    zone_code: str
    price: Decimal
    valid_from: date


@dataclass(frozen=True)
class PriceImportResult:
    """Outcome of one import row.  error_code is the PricingKernelError code."""

    row_number: int
    material_code: str
    zone_code: str
    accepted: bool
    price_id: UUID | None = None
    error_code: str | None = None
    error_message: str | None = None
