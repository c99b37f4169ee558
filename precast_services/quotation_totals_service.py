"""
precast_services.quotation_totals_service -- Quotation budget orchestrator.

Responsibility:
    Resolve the published price and transport attributes of every quoted
    piece in a zone, find the freight band for the distance, and hand the
    priced lines to the pure compute_quotation_totals engine.

Architecture position:
    Services -- orchestration over engines + kernel.  Read-only.

Failure modes:
    - ZoneNotFoundError for an unknown or inactive zone.
    - PieceNotFoundError when a line names an unknown or inactive piece.
    - IncompletePricingError listing every piece without a published
      price in force on as_of.
    - ValueError for a non-positive quantity.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from precast_config.schema import PrecastSettings
from precast_engines.quotation_totals import compute_quotation_totals
from precast_kernel.domain.clock import Clock, SystemClock
from precast_kernel.domain.money import ZERO, to_decimal
from precast_kernel.domain.quotation import (
    QuotationItem,
    QuotationLineRequest,
    QuotationTariffs,
    QuotationTotals,
)
from precast_kernel.exceptions import IncompletePricingError, PieceNotFoundError
from precast_kernel.logging_config import get_logger
from precast_kernel.selectors.freight_rate_selector import FreightRateSelector
from precast_kernel.selectors.piece_price_selector import PiecePriceSelector
from precast_kernel.selectors.reference_selector import PieceSelector, ZoneSelector

logger = get_logger("services.quotation_totals")


class QuotationTotalsService:
    """
    Computes quotation budgets from published piece prices.

    Contract:
        Unit prices are the final prices (base + adjustment) of the
        published versions in force on as_of; nothing is recalculated.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        tariffs: QuotationTariffs | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._tariffs = tariffs or QuotationTariffs()

    @classmethod
    def from_settings(
        cls,
        session: Session,
        settings: PrecastSettings,
        clock: Clock | None = None,
    ) -> QuotationTotalsService:
        """Build a service charging the configured quotation tariffs."""
        return cls(session, clock, tariffs=settings.quotation)

    def calculate(
        self,
        zone_id: UUID,
        lines: Sequence[QuotationLineRequest],
        distance_km: Decimal = ZERO,
        as_of: date | None = None,
        apply_transport: bool = True,
        apply_mounting: bool = True,
        additionals: Decimal = ZERO,
    ) -> QuotationTotals:
        """
        Budget a quotation delivered from zone_id.

        Args:
            zone_id: Producing zone (plant).
            lines: Pieces and quantities to quote.
            distance_km: Plant-to-site distance.
            as_of: Price date; defaults to the clock's today.
            apply_transport: Charge transport.
            apply_mounting: Charge mounting.
            additionals: Extra charges added as-is.
        """
        as_of = as_of or self._clock.today()
        distance_km = to_decimal(distance_km)
        ZoneSelector(self._session).get_zone(zone_id)

        for line in lines:
            if to_decimal(line.quantity) <= ZERO:
                raise ValueError(f"quantity must be > 0 for piece {line.piece_id}")

        piece_ids = list(dict.fromkeys(line.piece_id for line in lines))
        pieces = PieceSelector(self._session).get_pieces(piece_ids)
        unknown = [pid for pid in piece_ids if pid not in pieces]
        if unknown:
            raise PieceNotFoundError(str(unknown[0]))

        prices = PiecePriceSelector(self._session).current_prices(piece_ids, zone_id, as_of)
        missing = [pid for pid in piece_ids if pid not in prices]
        if missing:
            raise IncompletePricingError(
                piece_id=None,
                zone_id=str(zone_id),
                reason="missing_published_prices",
                missing_piece_ids=[str(pid) for pid in missing],
            )

        items = [
            QuotationItem(
                piece_id=line.piece_id,
                quantity=to_decimal(line.quantity),
                unit_price=prices[line.piece_id].final_price,
                weight_kg=pieces[line.piece_id].weight_kg,
                length_m=pieces[line.piece_id].length_m,
                piece_code=pieces[line.piece_id].code,
            )
            for line in lines
        ]

        freight_rate = None
        if apply_transport and items:
            freight_rate = FreightRateSelector(self._session).find_band(distance_km, as_of)

        totals = compute_quotation_totals(
            items=items,
            distance_km=distance_km,
            freight_rate=freight_rate,
            tariffs=self._tariffs,
            apply_transport=apply_transport,
            apply_mounting=apply_mounting,
            additionals=additionals,
        )
        logger.info(
            "quotation_totals_calculated",
            extra={
                "zone_id": str(zone_id),
                "as_of": as_of.isoformat(),
                "line_count": len(items),
                "distance_km": str(distance_km),
                "total": str(totals.total),
                "warnings": list(totals.warnings),
            },
        )
        return totals
