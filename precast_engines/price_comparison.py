"""
precast_engines.price_comparison -- Historical Comparator.

Responsibility:
    Compare a newly calculated total with the final price of the most
    recent published version: absolute delta, percent delta and trend.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Rules:
    - No previous price: trend "new", delta and delta_percent None.
    - delta = round2(new_total) - round2(previous_final_price).
    - delta_percent = delta / round2(previous) * 100, rounded to 2 places;
      None when the previous price is zero.
    - trend is up / down / flat by exact Decimal comparison of the rounded
      values, so it always agrees with the sign of delta.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from precast_kernel.domain.dtos import PriceComparison, Trend
from precast_kernel.domain.money import HUNDRED, MONEY_DECIMAL_PLACES, ZERO, round_money
from precast_engines.tracer import traced_engine


@traced_engine(
    "price_comparison",
    "1.0",
    fingerprint_fields=("previous_final_price", "new_total"),
)
def compare_with_previous(
    previous_final_price: Decimal | None,
    new_total: Decimal,
    previous_effective_date: date | None = None,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> PriceComparison:
    """
    Compare a new total against the previous published final price.

    Args:
        previous_final_price: base_price + adjustment of the previous
            version, or None when the piece was never published.
        new_total: Newly calculated breakdown total.
        previous_effective_date: Carried through for display.
        decimal_places: Presentation precision (default 2).

    Returns:
        PriceComparison.
    """
    new_rounded = round_money(new_total, decimal_places)
    if previous_final_price is None:
        return PriceComparison(
            new_total=new_rounded,
            previous_price=None,
            previous_effective_date=None,
            delta=None,
            delta_percent=None,
            trend=Trend.NEW,
        )

    previous_rounded = round_money(previous_final_price, decimal_places)
    delta = new_rounded - previous_rounded
    delta_percent = (
        None
        if previous_rounded == ZERO
        else round_money(delta / previous_rounded * HUNDRED, decimal_places)
    )

    if delta > ZERO:
        trend = Trend.UP
    elif delta < ZERO:
        trend = Trend.DOWN
    else:
        trend = Trend.FLAT

    return PriceComparison(
        new_total=new_rounded,
        previous_price=previous_rounded,
        previous_effective_date=previous_effective_date,
        delta=delta,
        delta_percent=delta_percent,
        trend=trend,
    )
