"""
precast_engines.quotation_totals -- Final budget of a quotation.

Responsibility:
    Aggregate priced piece lines, transport and mounting into
    QuotationTotals, applying the general-expenses (GG) surcharge to each
    subtotal.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by precast_services.quotation_totals_service.

Formulas:
    pieces_subtotal = sum(quantity * unit_price)
    pieces_gg       = pieces_subtotal * gg_rate
    total_tons      = sum(weight_kg * quantity) / 1000
    transport.base  = total_tons * band rate (long rate when any item is
                      longer than the long-piece threshold)
    mounting        = total_tons * mounting_standard_per_tn
                      + distance_km * 2 * crane_cost_per_km
    total           = pieces_subtotal + pieces_gg + transport.total
                      + mounting.total + additionals

Invariants enforced:
    - Every amount is rounded to 2 places before it is summed, so the
      total equals the sum of the displayed figures.
    - A quotation without items has no transport and no mounting.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from precast_kernel.domain.money import THOUSAND, ZERO, round_money, to_decimal
from precast_kernel.domain.quotation import (
    FreightRateInfo,
    MountingTotals,
    QuotationItem,
    QuotationTariffs,
    QuotationTotals,
    TransportTotals,
)
from precast_engines.tracer import traced_engine

NO_FREIGHT_BAND_WARNING = "no freight rate band covers the distance; transport not charged"


def _total_tons(items: Sequence[QuotationItem]) -> Decimal:
    return sum((item.weight_kg * item.quantity for item in items), ZERO) / THOUSAND


def _transport(
    total_tons: Decimal,
    has_long_pieces: bool,
    freight_rate: FreightRateInfo,
    tariffs: QuotationTariffs,
) -> TransportTotals:
    rate = freight_rate.rate_for(has_long_pieces)
    base = round_money(total_tons * rate)
    gg = round_money(base * tariffs.gg_rate)
    return TransportTotals(
        total_tons=total_tons,
        rate_per_tn=rate,
        has_long_pieces=has_long_pieces,
        base=base,
        gg=gg,
        total=base + gg,
    )


def _mounting(
    total_tons: Decimal,
    distance_km: Decimal,
    tariffs: QuotationTariffs,
) -> MountingTotals:
    standard = round_money(total_tons * tariffs.mounting_standard_per_tn)
    crane_transfer = round_money(distance_km * 2 * tariffs.crane_cost_per_km)
    subtotal = standard + crane_transfer
    gg = round_money(subtotal * tariffs.gg_rate)
    return MountingTotals(
        total_tons=total_tons,
        standard=standard,
        crane_transfer=crane_transfer,
        subtotal=subtotal,
        gg=gg,
        total=subtotal + gg,
    )


@traced_engine(
    "quotation_totals",
    "1.0",
    fingerprint_fields=("items", "distance_km", "freight_rate", "tariffs", "additionals"),
)
def compute_quotation_totals(
    *,
    items: Sequence[QuotationItem],
    distance_km: Decimal = ZERO,
    freight_rate: FreightRateInfo | None = None,
    tariffs: QuotationTariffs | None = None,
    apply_transport: bool = True,
    apply_mounting: bool = True,
    additionals: Decimal = ZERO,
) -> QuotationTotals:
    """
    Compute the final budget of a quotation.

    Args:
        items: Priced piece lines.
        distance_km: Plant-to-site distance.
        freight_rate: Freight band covering distance_km, or None when no
            band matches (transport then contributes 0 and a warning).
        tariffs: Surcharges and tariffs; defaults apply when None.
        apply_transport: Include transport.
        apply_mounting: Include mounting.
        additionals: Extra charges added to the total as-is.

    Raises:
        ValueError: Negative distance, quantity or additionals.
    """
    tariffs = tariffs or QuotationTariffs()
    distance_km = to_decimal(distance_km)
    additionals = round_money(to_decimal(additionals))
    if distance_km < ZERO:
        raise ValueError(f"distance_km must be >= 0, got {distance_km}")
    if additionals < ZERO:
        raise ValueError(f"additionals must be >= 0, got {additionals}")
    for item in items:
        if item.quantity < ZERO:
            raise ValueError(f"quantity must be >= 0 for piece {item.piece_id}")

    pieces_subtotal = round_money(sum((item.subtotal for item in items), ZERO))
    pieces_gg = round_money(pieces_subtotal * tariffs.gg_rate)

    warnings: list[str] = []
    transport: TransportTotals | None = None
    mounting: MountingTotals | None = None

    if items:
        total_tons = _total_tons(items)
        has_long_pieces = any(
            item.length_m > tariffs.long_piece_threshold_m for item in items
        )
        if apply_transport:
            if freight_rate is None:
                warnings.append(NO_FREIGHT_BAND_WARNING)
                transport = TransportTotals(
                    total_tons=total_tons,
                    rate_per_tn=ZERO,
                    has_long_pieces=has_long_pieces,
                    base=ZERO,
                    gg=ZERO,
                    total=ZERO,
                )
            else:
                transport = _transport(total_tons, has_long_pieces, freight_rate, tariffs)
        if apply_mounting:
            mounting = _mounting(total_tons, distance_km, tariffs)

    total = (
        pieces_subtotal
        + pieces_gg
        + (transport.total if transport else ZERO)
        + (mounting.total if mounting else ZERO)
        + additionals
    )
    return QuotationTotals(
        pieces_subtotal=pieces_subtotal,
        pieces_gg=pieces_gg,
        transport=transport,
        mounting=mounting,
        additionals=additionals,
        total=total,
        warnings=tuple(warnings),
    )
