"""
DTOs -- Pure domain data transfer objects for piece pricing.

Responsibility:
    Defines the immutable data structures that flow through the pricing
    pipeline: the read-side snapshots (PieceInfo, BOMLine, MaterialPriceInfo,
    ProcessParametersInfo, ParameterLookup), the calculation output
    (BreakdownLine, PriceBreakdown), the historical comparison
    (PriceComparison, Trend) and the persistence boundary (PublishedPriceInfo).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from selectors and services, never from engines.

Invariants enforced:
    - Engines accept and return DTOs, never ORM entities.
    - PriceBreakdown.total is the exact sum of its four components.

Data flow:
    BOMLine + MaterialPriceInfo + ParameterLookup -> PriceBreakdown
        -> PriceComparison -> PublishedPriceInfo
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from precast_kernel.domain.money import ZERO, round_money

if TYPE_CHECKING:
    from precast_kernel.models.material import MaterialPlantPrice as MaterialPlantPriceModel
    from precast_kernel.models.piece import Piece as PieceModel
    from precast_kernel.models.piece_price import PiecePrice as PiecePriceModel
    from precast_kernel.models.process_parameters import (
        ProcessParameters as ProcessParametersModel,
    )
    from precast_kernel.models.zone import Zone as ZoneModel


NO_FORMULA_WARNING = "no formula defined"

PROCESS_PARAMETER_FIELDS: tuple[str, ...] = (
    "energy_curing_per_tn",
    "factory_overhead_per_tn",
    "company_overhead_per_tn",
    "profit_per_tn",
    "engineering_per_tn",
    "hourly_labor_rate",
    "labor_hours_per_tn_steel",
    "labor_hours_per_m3_concrete",
)


# ---------------------------------------------------------------------------
# Read-side snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ZoneInfo:
    """A production plant; prices and process parameters are per zone."""

    id: UUID
    code: str
    name: str

    @classmethod
    def from_model(cls, model: ZoneModel) -> ZoneInfo:
        return cls(id=model.id, code=model.code, name=model.name)


@dataclass(frozen=True)
class PieceInfo:
    """
    Technical attributes of a piece, expressed per unit of measure.

    weight_kg and length_m are per physical piece and feed quotation
    transport; the *_per_um values feed the cost breakdown.
    """

    id: UUID
    code: str
    name: str
    unit_of_measure: str
    weight_tn_per_um: Decimal
    concrete_m3_per_um: Decimal
    steel_kg_per_um: Decimal
    weight_kg: Decimal = ZERO
    length_m: Decimal = ZERO

    @classmethod
    def from_model(cls, model: PieceModel) -> PieceInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            unit_of_measure=model.unit_of_measure,
            weight_tn_per_um=model.weight_tn_per_um,
            concrete_m3_per_um=model.concrete_m3_per_um,
            steel_kg_per_um=model.steel_kg_per_um,
            weight_kg=model.weight_kg,
            length_m=model.length_m,
        )


@dataclass(frozen=True)
class BOMLine:
    """
    One resolved line of a piece's bill of materials.

    waste_factor is a fraction: 0.05 means five percent extra consumption.
    """

    material_id: UUID
    material_code: str
    material_name: str
    category: str
    unit: str
    quantity_per_unit: Decimal
    waste_factor: Decimal
    is_optional: bool = False

    @property
    def effective_quantity(self) -> Decimal:
        return self.quantity_per_unit * (Decimal("1") + self.waste_factor)


@dataclass(frozen=True)
class MaterialPriceInfo:
    """A material price row valid for a zone over [valid_from, valid_until]."""

    id: UUID
    material_id: UUID
    zone_id: UUID
    price: Decimal
    valid_from: date
    valid_until: date | None
    source: str
    is_active: bool = True

    @property
    def is_open(self) -> bool:
        return self.valid_until is None

    @classmethod
    def from_model(cls, model: MaterialPlantPriceModel) -> MaterialPriceInfo:
        return cls(
            id=model.id,
            material_id=model.material_id,
            zone_id=model.zone_id,
            price=model.price,
            valid_from=model.valid_from,
            valid_until=model.valid_until,
            source=model.source,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class ProcessParametersInfo:
    """Per-ton and per-hour process costs of a zone for one month."""

    zone_id: UUID
    month_date: date
    energy_curing_per_tn: Decimal = ZERO
    factory_overhead_per_tn: Decimal = ZERO
    company_overhead_per_tn: Decimal = ZERO
    profit_per_tn: Decimal = ZERO
    engineering_per_tn: Decimal = ZERO
    hourly_labor_rate: Decimal = ZERO
    labor_hours_per_tn_steel: Decimal = ZERO
    labor_hours_per_m3_concrete: Decimal = ZERO
    id: UUID | None = None

    @property
    def process_cost_per_tn(self) -> Decimal:
        """Sum of the five per-ton process components."""
        return (
            self.energy_curing_per_tn
            + self.factory_overhead_per_tn
            + self.company_overhead_per_tn
            + self.profit_per_tn
            + self.engineering_per_tn
        )

    def values(self) -> dict[str, Decimal]:
        return {name: getattr(self, name) for name in PROCESS_PARAMETER_FIELDS}

    @classmethod
    def from_model(cls, model: ProcessParametersModel) -> ProcessParametersInfo:
        return cls(
            id=model.id,
            zone_id=model.zone_id,
            month_date=model.month_date,
            **{name: getattr(model, name) for name in PROCESS_PARAMETER_FIELDS},
        )


@dataclass(frozen=True)
class ParameterLookup:
    """
    Result of resolving process parameters for a (zone, month).

    is_fallback is True when source_month precedes requested_month.
    """

    parameters: ProcessParametersInfo
    is_fallback: bool
    requested_month: date
    source_month: date


# ---------------------------------------------------------------------------
# Calculation output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BreakdownLine:
    """Per-material detail of a breakdown.  unit_price is None when missing."""

    material_id: UUID
    material_code: str
    material_name: str
    quantity_per_unit: Decimal
    waste_factor: Decimal
    effective_quantity: Decimal
    unit_price: Decimal | None
    line_cost: Decimal
    is_optional: bool = False

    @property
    def price_missing(self) -> bool:
        return self.unit_price is None


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Price-per-unit breakdown of a piece in a zone at a date.

    Contract:
        total == materials_cost + process_cost + labor_cost_concrete
        + labor_cost_steel exactly (components are quantized before summing).

    Guarantees:
        - missing_prices lists every material whose price could not be
          resolved; such a breakdown cannot be published.
        - warnings is human-readable and includes "no formula defined" for
          pieces without BOM lines and a fallback notice when parameters
          came from an earlier month.
    """

    piece_id: UUID
    zone_id: UUID
    as_of: date
    lines: tuple[BreakdownLine, ...]
    materials_cost: Decimal
    process_cost: Decimal
    labor_cost_concrete: Decimal
    labor_cost_steel: Decimal
    total: Decimal
    missing_prices: tuple[UUID, ...] = ()
    warnings: tuple[str, ...] = ()
    parameters_month: date | None = None
    is_fallback: bool = False

    @property
    def has_formula(self) -> bool:
        return NO_FORMULA_WARNING not in self.warnings

    @property
    def is_complete(self) -> bool:
        return not self.missing_prices

    @property
    def labor_cost(self) -> Decimal:
        return self.labor_cost_concrete + self.labor_cost_steel

    def rounded(self, decimal_places: int = 2) -> dict[str, Decimal]:
        """Presentation values rounded to ``decimal_places``."""
        return {
            "materials_cost": round_money(self.materials_cost, decimal_places),
            "process_cost": round_money(self.process_cost, decimal_places),
            "labor_cost_concrete": round_money(self.labor_cost_concrete, decimal_places),
            "labor_cost_steel": round_money(self.labor_cost_steel, decimal_places),
            "total": round_money(self.total, decimal_places),
        }


class Trend(str, Enum):
    """Direction of a new total against the previously published price."""

    NEW = "new"
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


@dataclass(frozen=True)
class PriceComparison:
    """
    New total compared with the most recent published final price.

    delta and delta_percent are None when there is no previous price;
    delta_percent is also None when the previous price is zero.
    """

    new_total: Decimal
    previous_price: Decimal | None
    previous_effective_date: date | None
    delta: Decimal | None
    delta_percent: Decimal | None
    trend: Trend


# ---------------------------------------------------------------------------
# Persistence boundary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PublishedPriceInfo:
    """A published piece price row.  final_price is derived, never stored."""

    id: UUID
    piece_id: UUID
    zone_id: UUID
    base_price: Decimal
    adjustment: Decimal
    effective_date: date
    expiry_date: date | None
    created_by_id: UUID | None = None
    materials_cost: Decimal | None = None
    process_cost: Decimal | None = None
    labor_cost_concrete: Decimal | None = None
    labor_cost_steel: Decimal | None = None
    parameters_month: date | None = None

    @property
    def final_price(self) -> Decimal:
        return self.base_price + self.adjustment

    @classmethod
    def from_model(cls, model: PiecePriceModel) -> PublishedPriceInfo:
        return cls(
            id=model.id,
            piece_id=model.piece_id,
            zone_id=model.zone_id,
            base_price=model.base_price,
            adjustment=model.adjustment,
            effective_date=model.effective_date,
            expiry_date=model.expiry_date,
            created_by_id=model.created_by_id,
            materials_cost=model.materials_cost,
            process_cost=model.process_cost,
            labor_cost_concrete=model.labor_cost_concrete,
            labor_cost_steel=model.labor_cost_steel,
            parameters_month=model.parameters_month,
        )


@dataclass(frozen=True)
class PricingResult:
    """A breakdown together with its comparison, as shown before publishing."""

    breakdown: PriceBreakdown
    comparison: PriceComparison
