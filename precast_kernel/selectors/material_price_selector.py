"""
Module: precast_kernel.selectors.material_price_selector
Responsibility: Zone Price Lookup.  Answers "what does this material cost in
    this zone on this date" from the append-only price history.
Architecture position: Kernel > Selectors.

Lookup window:
    valid_from <= as_of
    AND (valid_until IS NULL OR valid_until >= as_of)
    AND is_active

Tie-break when several rows match (only possible with hand-edited history):
    latest valid_from, then latest created_at, then highest id string.

Invariants enforced:
    - A missing price is None, never zero.
    - Repeating a lookup with the same arguments in the same transaction
      returns the same row.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, sessionmaker

from precast_kernel.db.engine import DEFERRED_BEGIN
from precast_kernel.domain.dtos import MaterialPriceInfo
from precast_kernel.models.material import MaterialPlantPrice
from precast_kernel.selectors.base import BaseSelector

PRICE_TIE_BREAK = (
    MaterialPlantPrice.valid_from.desc(),
    MaterialPlantPrice.created_at.desc(),
    MaterialPlantPrice.id.desc(),
)


def _valid_on(as_of: date):
    return (
        MaterialPlantPrice.is_active.is_(True),
        MaterialPlantPrice.valid_from <= as_of,
        or_(
            MaterialPlantPrice.valid_until.is_(None),
            MaterialPlantPrice.valid_until >= as_of,
        ),
    )


class MaterialPriceSelector(BaseSelector[MaterialPlantPrice]):
    """Read access to per-zone material prices."""

    def get_current_price(
        self,
        material_id: UUID,
        zone_id: UUID,
        as_of: date,
    ) -> MaterialPriceInfo | None:
        """
        Price of a material in a zone valid on as_of.

        Returns:
            MaterialPriceInfo, or None when no active row covers as_of.
        """
        stmt = (
            select(MaterialPlantPrice)
            .where(
                MaterialPlantPrice.material_id == material_id,
                MaterialPlantPrice.zone_id == zone_id,
                *_valid_on(as_of),
            )
            .order_by(*PRICE_TIE_BREAK)
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return MaterialPriceInfo.from_model(row) if row is not None else None

    def get_current_prices(
        self,
        material_ids: list[UUID],
        zone_id: UUID,
        as_of: date,
    ) -> dict[UUID, MaterialPriceInfo]:
        """Batch variant of get_current_price.  Materials without a price are absent."""
        if not material_ids:
            return {}
        stmt = (
            select(MaterialPlantPrice)
            .where(
                MaterialPlantPrice.material_id.in_(material_ids),
                MaterialPlantPrice.zone_id == zone_id,
                *_valid_on(as_of),
            )
            .order_by(MaterialPlantPrice.material_id, *PRICE_TIE_BREAK)
        )
        prices: dict[UUID, MaterialPriceInfo] = {}
        for row in self.session.execute(stmt).scalars():
            # First row per material wins under the tie-break ordering
            if row.material_id not in prices:
                prices[row.material_id] = MaterialPriceInfo.from_model(row)
        return prices

    def get_open_price(self, material_id: UUID, zone_id: UUID) -> MaterialPriceInfo | None:
        """The row with valid_until IS NULL, active or withdrawn."""
        stmt = select(MaterialPlantPrice).where(
            MaterialPlantPrice.material_id == material_id,
            MaterialPlantPrice.zone_id == zone_id,
            MaterialPlantPrice.valid_until.is_(None),
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return MaterialPriceInfo.from_model(row) if row is not None else None

    def price_history(self, material_id: UUID, zone_id: UUID) -> list[MaterialPriceInfo]:
        """Every price row for (material, zone), newest first."""
        stmt = (
            select(MaterialPlantPrice)
            .where(
                MaterialPlantPrice.material_id == material_id,
                MaterialPlantPrice.zone_id == zone_id,
            )
            .order_by(*PRICE_TIE_BREAK)
        )
        return [MaterialPriceInfo.from_model(r) for r in self.session.execute(stmt).scalars()]


class IsolatedPriceLookup:
    """
    Thread-safe Zone Price Lookup.

    Contract:
        Each call opens a short-lived session from the factory, so the
        lookup can run on executor worker threads while SQLAlchemy
        sessions stay confined to one thread.

    Non-goals:
        Calls do not share a snapshot; each sees the committed state at
        the moment it runs.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_current_price(
        self,
        material_id: UUID,
        zone_id: UUID,
        as_of: date,
    ) -> MaterialPriceInfo | None:
        with self._session_factory() as session:
            session.connection(execution_options=DEFERRED_BEGIN)
            return MaterialPriceSelector(session).get_current_price(
                material_id, zone_id, as_of
            )
