"""Read-only query selectors for the pricing kernel."""

from precast_kernel.selectors.base import BaseSelector
from precast_kernel.selectors.formula_selector import (
    ACTIVE_MATERIALS_ONLY,
    BOMPolicy,
    FormulaSelector,
)
from precast_kernel.selectors.freight_rate_selector import FreightRateSelector
from precast_kernel.selectors.material_price_selector import (
    IsolatedPriceLookup,
    MaterialPriceSelector,
)
from precast_kernel.selectors.material_selector import MaterialSelector
from precast_kernel.selectors.piece_price_selector import PiecePriceSelector
from precast_kernel.selectors.process_parameter_selector import (
    ProcessParameterSelector,
    ZoneMonthComparison,
)
from precast_kernel.selectors.reference_selector import PieceSelector, ZoneSelector

__all__ = [
    "BaseSelector",
    "ACTIVE_MATERIALS_ONLY",
    "BOMPolicy",
    "FormulaSelector",
    "FreightRateSelector",
    "IsolatedPriceLookup",
    "MaterialPriceSelector",
    "MaterialSelector",
    "PiecePriceSelector",
    "ProcessParameterSelector",
    "ZoneMonthComparison",
    "PieceSelector",
    "ZoneSelector",
]
