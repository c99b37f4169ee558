"""
Quotation value types -- inputs and outputs of the quotation totals engine.

Responsibility:
    Describes a quotation as priced piece lines plus the freight band and
    tariffs needed to compute transport and mounting.  All amounts are
    Decimal; totals are rounded to 2 places by the engine.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from precast_kernel.domain.money import ZERO

DEFAULT_GG_RATE = Decimal("0.10")
DEFAULT_LONG_PIECE_THRESHOLD_M = Decimal("12")
DEFAULT_MOUNTING_STANDARD_PER_TN = Decimal("85381")
DEFAULT_CRANE_COST_PER_KM = Decimal("2625")


@dataclass(frozen=True)
class QuotationTariffs:
    """
    Surcharges and tariffs applied to quotation subtotals.

    gg_rate is the general-expenses surcharge as a fraction.
    """

    gg_rate: Decimal = DEFAULT_GG_RATE
    long_piece_threshold_m: Decimal = DEFAULT_LONG_PIECE_THRESHOLD_M
    mounting_standard_per_tn: Decimal = DEFAULT_MOUNTING_STANDARD_PER_TN
    crane_cost_per_km: Decimal = DEFAULT_CRANE_COST_PER_KM


@dataclass(frozen=True)
class FreightRateInfo:
    """Per-ton freight tariff for a distance band [km_from, km_to]."""

    km_from: Decimal
    km_to: Decimal
    rate_under_long: Decimal
    rate_over_long: Decimal
    effective_date: date | None = None
    id: UUID | None = None

    def covers(self, distance_km: Decimal) -> bool:
        return self.km_from <= distance_km <= self.km_to

    def rate_for(self, has_long_pieces: bool) -> Decimal:
        """Band rate for the load; each rate falls back to the other when zero."""
        if has_long_pieces:
            return self.rate_over_long if self.rate_over_long > ZERO else self.rate_under_long
        return self.rate_under_long if self.rate_under_long > ZERO else self.rate_over_long

    @classmethod
    def from_model(cls, model) -> FreightRateInfo:
        return cls(
            id=model.id,
            km_from=model.km_from,
            km_to=model.km_to,
            rate_under_long=model.rate_under_long,
            rate_over_long=model.rate_over_long,
            effective_date=model.effective_date,
        )


@dataclass(frozen=True)
class QuotationItem:
    """A priced piece line: quantity units at unit_price each."""

    piece_id: UUID
    quantity: Decimal
    unit_price: Decimal
    weight_kg: Decimal = ZERO
    length_m: Decimal = ZERO
    piece_code: str | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class QuotationLineRequest:
    """What the caller asks to quote: a piece and how many."""

    piece_id: UUID
    quantity: Decimal


@dataclass(frozen=True)
class TransportTotals:
    total_tons: Decimal
    rate_per_tn: Decimal
    has_long_pieces: bool
    base: Decimal
    gg: Decimal
    total: Decimal


@dataclass(frozen=True)
class MountingTotals:
    total_tons: Decimal
    standard: Decimal
    crane_transfer: Decimal
    subtotal: Decimal
    gg: Decimal
    total: Decimal


@dataclass(frozen=True)
class QuotationTotals:
    """
    Final budget of a quotation.

    Contract:
        total == pieces_subtotal + pieces_gg + transport.total
        + mounting.total + additionals (all at 2 places).
    """

    pieces_subtotal: Decimal
    pieces_gg: Decimal
    transport: TransportTotals | None
    mounting: MountingTotals | None
    additionals: Decimal
    total: Decimal
    warnings: tuple[str, ...] = ()
