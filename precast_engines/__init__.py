"""
Pure calculation engines for piece pricing and quotations.

Engines never touch the database, the clock or configuration; everything
they need is passed in as domain value objects.
"""

from precast_engines.cost_breakdown import CostBreakdownCalculator
from precast_engines.price_comparison import compare_with_previous
from precast_engines.quotation_totals import (
    NO_FREIGHT_BAND_WARNING,
    compute_quotation_totals,
)
from precast_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "CostBreakdownCalculator",
    "NO_FREIGHT_BAND_WARNING",
    "compare_with_previous",
    "compute_input_fingerprint",
    "compute_quotation_totals",
    "traced_engine",
]
