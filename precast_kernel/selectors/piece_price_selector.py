"""
Module: precast_kernel.selectors.piece_price_selector
Responsibility: Read access to published piece prices: the price in force
    on a date, the previous price used by the Historical Comparator, and the
    full version history.
Architecture position: Kernel > Selectors.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import or_, select

from precast_kernel.domain.dtos import PublishedPriceInfo
from precast_kernel.models.piece_price import PiecePrice
from precast_kernel.selectors.base import BaseSelector


class PiecePriceSelector(BaseSelector[PiecePrice]):
    """Read access to published piece prices."""

    def current_price(
        self,
        piece_id: UUID,
        zone_id: UUID,
        as_of: date,
    ) -> PublishedPriceInfo | None:
        """The published price in force on as_of (effective and not expired)."""
        stmt = (
            select(PiecePrice)
            .where(
                PiecePrice.piece_id == piece_id,
                PiecePrice.zone_id == zone_id,
                PiecePrice.effective_date <= as_of,
                or_(PiecePrice.expiry_date.is_(None), PiecePrice.expiry_date >= as_of),
            )
            .order_by(PiecePrice.effective_date.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return PublishedPriceInfo.from_model(row) if row is not None else None

    def current_prices(
        self,
        piece_ids: list[UUID],
        zone_id: UUID,
        as_of: date,
    ) -> dict[UUID, PublishedPriceInfo]:
        """Batch variant of current_price.  Pieces without a price are absent."""
        if not piece_ids:
            return {}
        stmt = (
            select(PiecePrice)
            .where(
                PiecePrice.piece_id.in_(piece_ids),
                PiecePrice.zone_id == zone_id,
                PiecePrice.effective_date <= as_of,
                or_(PiecePrice.expiry_date.is_(None), PiecePrice.expiry_date >= as_of),
            )
            .order_by(PiecePrice.piece_id, PiecePrice.effective_date.desc())
        )
        prices: dict[UUID, PublishedPriceInfo] = {}
        for row in self.session.execute(stmt).scalars():
            if row.piece_id not in prices:
                prices[row.piece_id] = PublishedPriceInfo.from_model(row)
        return prices

    def latest_on_or_before(
        self,
        piece_id: UUID,
        zone_id: UUID,
        day: date,
    ) -> PublishedPriceInfo | None:
        """Most recent published price with effective_date <= day."""
        stmt = (
            select(PiecePrice)
            .where(
                PiecePrice.piece_id == piece_id,
                PiecePrice.zone_id == zone_id,
                PiecePrice.effective_date <= day,
            )
            .order_by(PiecePrice.effective_date.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return PublishedPriceInfo.from_model(row) if row is not None else None

    def history(self, piece_id: UUID, zone_id: UUID) -> list[PublishedPriceInfo]:
        """Every published version for (piece, zone), newest first."""
        stmt = (
            select(PiecePrice)
            .where(PiecePrice.piece_id == piece_id, PiecePrice.zone_id == zone_id)
            .order_by(PiecePrice.effective_date.desc())
        )
        return [PublishedPriceInfo.from_model(r) for r in self.session.execute(stmt).scalars()]
