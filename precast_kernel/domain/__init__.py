"""Pure domain types for the pricing kernel (zero I/O)."""

from precast_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from precast_kernel.domain.dtos import (
    NO_FORMULA_WARNING,
    PROCESS_PARAMETER_FIELDS,
    BOMLine,
    BreakdownLine,
    MaterialPriceInfo,
    ParameterLookup,
    PieceInfo,
    PriceBreakdown,
    PriceComparison,
    PricingResult,
    ProcessParametersInfo,
    PublishedPriceInfo,
    Trend,
    ZoneInfo,
)
from precast_kernel.domain.money import round_money

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "NO_FORMULA_WARNING",
    "PROCESS_PARAMETER_FIELDS",
    "BOMLine",
    "BreakdownLine",
    "MaterialPriceInfo",
    "ParameterLookup",
    "PieceInfo",
    "PriceBreakdown",
    "PriceComparison",
    "PricingResult",
    "ProcessParametersInfo",
    "PublishedPriceInfo",
    "Trend",
    "ZoneInfo",
    "round_money",
]
