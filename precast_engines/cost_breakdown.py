"""
precast_engines.cost_breakdown -- Price-per-unit breakdown of a precast piece.

Responsibility:
    Combine a piece's technical attributes, its resolved BOM, the zone
    material prices and the month's process parameters into a
    PriceBreakdown: materials + process + concrete labor + steel labor.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import precast_kernel.domain and the kernel logging module.
    Consumed by precast_services.piece_pricing_service.

Formulas (per unit of measure):
    materials_cost      = sum(quantity_per_unit * (1 + waste_factor) * price)
    process_cost        = weight_tn_per_um * (energy_curing + factory_overhead
                          + company_overhead + profit + engineering)
    labor_cost_concrete = concrete_m3_per_um * labor_hours_per_m3_concrete
                          * hourly_labor_rate
    labor_cost_steel    = steel_kg_per_um * (labor_hours_per_tn_steel / 1000)
                          * hourly_labor_rate
    total               = sum of the four components

Invariants enforced:
    - Conservation: each component is quantized to the internal precision
      (ROUND_HALF_UP) before summing, so total equals the sum exactly.
    - A material without a price contributes 0 and is listed in
      missing_prices; it never raises.
    - A piece without formula lines prices at 0 across every component
      and carries the "no formula defined" warning.
    - Identical inputs produce identical outputs; no clock access.

Usage:
    calculator = CostBreakdownCalculator()
    breakdown = calculator.calculate(
        piece=piece_info,
        zone_id=zone_id,
        as_of=date(2024, 2, 15),
        bom=bom_lines,
        prices={material_id: price_info},
        parameters=parameter_lookup,
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from uuid import UUID

from precast_kernel.domain.dtos import (
    NO_FORMULA_WARNING,
    BOMLine,
    BreakdownLine,
    MaterialPriceInfo,
    ParameterLookup,
    PieceInfo,
    PriceBreakdown,
)
from precast_kernel.domain.money import (
    INTERNAL_DECIMAL_PLACES,
    THOUSAND,
    ZERO,
    quantize_internal,
)
from precast_kernel.logging_config import get_logger
from precast_engines.tracer import traced_engine

logger = get_logger("engines.cost_breakdown")


def fallback_warning(lookup: ParameterLookup) -> str:
    return (
        f"process parameters for {lookup.requested_month:%Y-%m} not configured; "
        f"using {lookup.source_month:%Y-%m}"
    )


def missing_prices_warning(count: int) -> str:
    return f"{count} material(s) without current price in zone"


class CostBreakdownCalculator:
    """
    Pure calculator for piece price breakdowns.

    Contract:
        No I/O, no database access, fully deterministic.  All reference
        data is passed in.

    Guarantees:
        - total == materials_cost + process_cost + labor_cost_concrete
          + labor_cost_steel, exactly.
        - Empty BOM: every component and the total are 0, with the
          "no formula defined" warning; parameters are not needed.

    Non-goals:
        - Does not decide whether a breakdown may be published.
        - Does not round for presentation; see PriceBreakdown.rounded().
    """

    def __init__(self, internal_decimal_places: int = INTERNAL_DECIMAL_PLACES):
        self._places = internal_decimal_places

    def _q(self, value: Decimal) -> Decimal:
        return quantize_internal(value, self._places)

    @traced_engine(
        "cost_breakdown",
        "1.0",
        fingerprint_fields=("piece", "zone_id", "as_of", "bom", "prices", "parameters"),
    )
    def calculate(
        self,
        *,
        piece: PieceInfo,
        zone_id: UUID,
        as_of: date,
        bom: list[BOMLine],
        prices: Mapping[UUID, MaterialPriceInfo | None],
        parameters: ParameterLookup | None,
    ) -> PriceBreakdown:
        """
        Calculate the breakdown of one unit of measure of a piece.

        Args:
            piece: Technical attributes of the piece.
            zone_id: Zone the prices and parameters belong to.
            as_of: Pricing date.
            bom: Resolved BOM lines, in display order.
            prices: material_id -> price valid on as_of (absent or None
                when missing).
            parameters: Resolved process parameters.  May be None only
                when bom is empty.

        Returns:
            PriceBreakdown.
        """
        if not bom:
            return self._without_formula(piece, zone_id, as_of)
        if parameters is None:
            raise ValueError("parameters are required when the piece has formula lines")

        lines: list[BreakdownLine] = []
        missing: list[UUID] = []
        materials_sum = ZERO

        for bom_line in bom:
            price_info = prices.get(bom_line.material_id)
            effective_quantity = bom_line.effective_quantity
            if price_info is None:
                missing.append(bom_line.material_id)
                unit_price = None
                line_cost = ZERO
            else:
                unit_price = price_info.price
                line_cost = effective_quantity * unit_price
            materials_sum += line_cost
            lines.append(
                BreakdownLine(
                    material_id=bom_line.material_id,
                    material_code=bom_line.material_code,
                    material_name=bom_line.material_name,
                    quantity_per_unit=bom_line.quantity_per_unit,
                    waste_factor=bom_line.waste_factor,
                    effective_quantity=effective_quantity,
                    unit_price=unit_price,
                    line_cost=self._q(line_cost),
                    is_optional=bom_line.is_optional,
                )
            )

        params = parameters.parameters
        materials_cost = self._q(materials_sum)
        process_cost = self._q(piece.weight_tn_per_um * params.process_cost_per_tn)
        labor_cost_concrete = self._q(
            piece.concrete_m3_per_um
            * params.labor_hours_per_m3_concrete
            * params.hourly_labor_rate
        )
        labor_cost_steel = self._q(
            piece.steel_kg_per_um
            * (params.labor_hours_per_tn_steel / THOUSAND)
            * params.hourly_labor_rate
        )
        total = materials_cost + process_cost + labor_cost_concrete + labor_cost_steel

        warnings: list[str] = []
        if missing:
            warnings.append(missing_prices_warning(len(missing)))
        if parameters.is_fallback:
            warnings.append(fallback_warning(parameters))

        logger.info(
            "price_breakdown_calculated",
            extra={
                "piece_id": str(piece.id),
                "zone_id": str(zone_id),
                "as_of": as_of.isoformat(),
                "line_count": len(lines),
                "missing_price_count": len(missing),
                "is_fallback": parameters.is_fallback,
                "total": str(total),
            },
        )

        return PriceBreakdown(
            piece_id=piece.id,
            zone_id=zone_id,
            as_of=as_of,
            lines=tuple(lines),
            materials_cost=materials_cost,
            process_cost=process_cost,
            labor_cost_concrete=labor_cost_concrete,
            labor_cost_steel=labor_cost_steel,
            total=total,
            missing_prices=tuple(missing),
            warnings=tuple(warnings),
            parameters_month=parameters.source_month,
            is_fallback=parameters.is_fallback,
        )

    def _without_formula(self, piece: PieceInfo, zone_id: UUID, as_of: date) -> PriceBreakdown:
        logger.warning(
            "price_breakdown_without_formula",
            extra={
                "piece_id": str(piece.id),
                "zone_id": str(zone_id),
                "as_of": as_of.isoformat(),
            },
        )
        return PriceBreakdown(
            piece_id=piece.id,
            zone_id=zone_id,
            as_of=as_of,
            lines=(),
            materials_cost=ZERO,
            process_cost=ZERO,
            labor_cost_concrete=ZERO,
            labor_cost_steel=ZERO,
            total=ZERO,
            warnings=(NO_FORMULA_WARNING,),
        )
