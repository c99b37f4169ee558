"""
Orchestration services above the pricing kernel.

PiecePricingService wires the kernel reads into the cost breakdown and
comparison engines; QuotationTotalsService budgets quotations from
published prices.  Both offer a from_settings() constructor, and
precast_services.factories builds the settings-bound kernel services.
"""

from precast_services.piece_pricing_service import (
    BOMSource,
    ParameterSource,
    PiecePricingService,
    PriceSource,
)
from precast_services.quotation_totals_service import QuotationTotalsService

__all__ = [
    "BOMSource",
    "ParameterSource",
    "PiecePricingService",
    "PriceSource",
    "QuotationTotalsService",
]
