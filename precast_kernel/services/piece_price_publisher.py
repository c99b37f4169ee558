"""
Module: precast_kernel.services.piece_price_publisher
Responsibility: Price Publisher.  Persists an accepted breakdown as a new
    versioned PiecePrice row and closes the previous one, atomically within
    the caller's transaction.
Architecture position: Kernel > Services.

Invariants enforced:
    - No partial publish: a breakdown with missing material prices, or one
      computed for a piece without a formula, is rejected.
    - One row per (piece, zone, effective_date); an earlier date than the
      latest published one is a stale publish and is rejected.
    - Exactly one open row per (piece, zone) after a publish: the previous
      open row gets expiry_date = effective_date - 1 day.

Failure modes:
    - PricingValidationError: breakdown belongs to another piece or zone.
    - IncompletePricingError: missing prices, or no formula without override.
    - PriceConflictError: duplicate or stale effective date, including the
      loser of a concurrent publish (IntegrityError on flush).
    - PieceNotFoundError / ZoneNotFoundError.

Concurrency:
    On PostgreSQL the open row is locked with SELECT ... FOR UPDATE.  On any
    backend the unique constraint uq_piece_price_effective is the final
    arbiter; the application pre-checks only produce a friendlier error.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from precast_kernel.db.engine import supports_row_locks
from precast_kernel.domain.clock import Clock
from precast_kernel.domain.dtos import PriceBreakdown
from precast_kernel.domain.money import (
    MONEY_DECIMAL_PLACES,
    ZERO,
    day_before,
    round_money,
    to_decimal,
)
from precast_kernel.exceptions import (
    IncompletePricingError,
    PieceNotFoundError,
    PriceConflictError,
    PricingValidationError,
    ZoneNotFoundError,
)
from precast_kernel.logging_config import get_logger
from precast_kernel.models.piece import Piece
from precast_kernel.models.piece_price import PiecePrice
from precast_kernel.models.zone import Zone
from precast_kernel.services.base import BaseService

logger = get_logger("services.piece_price_publisher")

ENTITY_TYPE = "PiecePrice"


class PiecePricePublisher(BaseService[PiecePrice]):
    """
    Publishes piece prices as append-only versions.

    Contract:
        publish() flushes but never commits.  On conflict the savepoint is
        rolled back and the caller's session stays usable.

    Non-goals:
        Does not recalculate; it trusts the breakdown it is handed, after
        checking it belongs to the requested piece and zone.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        money_decimal_places: int = MONEY_DECIMAL_PLACES,
    ):
        super().__init__(session, clock)
        self._money_places = money_decimal_places

    def _select(self, piece_id: UUID, zone_id: UUID):
        stmt = select(PiecePrice).where(
            PiecePrice.piece_id == piece_id,
            PiecePrice.zone_id == zone_id,
        )
        if supports_row_locks(self.session):
            stmt = stmt.with_for_update()
        return stmt

    def _validate(
        self,
        piece_id: UUID,
        zone_id: UUID,
        breakdown: PriceBreakdown,
        allow_without_formula: bool,
    ) -> None:
        if breakdown.piece_id != piece_id or breakdown.zone_id != zone_id:
            raise PricingValidationError(
                f"Breakdown was calculated for piece {breakdown.piece_id} in zone "
                f"{breakdown.zone_id}, not piece {piece_id} in zone {zone_id}"
            )

        piece = self.session.get(Piece, piece_id)
        if piece is None or not piece.is_active:
            raise PieceNotFoundError(str(piece_id))
        zone = self.session.get(Zone, zone_id)
        if zone is None or not zone.is_active:
            raise ZoneNotFoundError(str(zone_id))

        if breakdown.missing_prices:
            raise IncompletePricingError(
                piece_id=str(piece_id),
                zone_id=str(zone_id),
                missing_material_ids=[str(m) for m in breakdown.missing_prices],
            )
        if not breakdown.has_formula and not allow_without_formula:
            raise IncompletePricingError(
                piece_id=str(piece_id),
                zone_id=str(zone_id),
                reason="no formula defined",
            )

    def publish(
        self,
        piece_id: UUID,
        zone_id: UUID,
        effective_date: date,
        breakdown: PriceBreakdown,
        actor_id: UUID,
        adjustment: Decimal = ZERO,
        allow_without_formula: bool = False,
    ) -> UUID:
        """
        Publish a breakdown as the piece's price in the zone from effective_date.

        Args:
            piece_id: Piece being priced.
            zone_id: Zone being priced.
            effective_date: First day the new price applies.
            breakdown: Calculated breakdown for (piece_id, zone_id).
            actor_id: Who publishes.
            adjustment: Manual adjustment added on top of base_price.
            allow_without_formula: Publish a breakdown flagged "no formula
                defined" anyway (process and labor only).

        Returns:
            The id of the new PiecePrice row.

        Raises:
            PricingValidationError, IncompletePricingError, PriceConflictError,
            PieceNotFoundError, ZoneNotFoundError.
        """
        self._validate(piece_id, zone_id, breakdown, allow_without_formula)
        adjustment = to_decimal(adjustment)
        base_price = round_money(breakdown.total, self._money_places)
        key = f"{piece_id}@{zone_id}"

        try:
            with self.session.begin_nested():
                rows = self.session.execute(
                    self._select(piece_id, zone_id).order_by(PiecePrice.effective_date.desc())
                ).scalars().all()

                for row in rows:
                    if row.effective_date == effective_date:
                        raise PriceConflictError(
                            ENTITY_TYPE,
                            key,
                            effective_date,
                            existing_effective_date=row.effective_date,
                            existing_price=row.final_price,
                            reason="duplicate_effective_date",
                        )

                latest = rows[0] if rows else None
                if latest is not None and effective_date < latest.effective_date:
                    raise PriceConflictError(
                        ENTITY_TYPE,
                        key,
                        effective_date,
                        existing_effective_date=latest.effective_date,
                        existing_price=latest.final_price,
                        reason="stale_effective_date",
                    )

                previous_open = next((r for r in rows if r.expiry_date is None), None)
                if previous_open is not None:
                    previous_open.expiry_date = day_before(effective_date)
                    previous_open.updated_by_id = actor_id
                    self.session.flush()

                new_price = PiecePrice(
                    piece_id=piece_id,
                    zone_id=zone_id,
                    base_price=base_price,
                    adjustment=adjustment,
                    effective_date=effective_date,
                    expiry_date=None,
                    created_by_id=actor_id,
                    materials_cost=breakdown.materials_cost,
                    process_cost=breakdown.process_cost,
                    labor_cost_concrete=breakdown.labor_cost_concrete,
                    labor_cost_steel=breakdown.labor_cost_steel,
                    parameters_month=breakdown.parameters_month,
                )
                self.session.add(new_price)
                self.session.flush()
        except IntegrityError as exc:
            logger.warning(
                "price_publish_conflict",
                extra={
                    "piece_id": str(piece_id),
                    "zone_id": str(zone_id),
                    "effective_date": effective_date.isoformat(),
                    "reason": "unique_constraint",
                },
            )
            raise PriceConflictError(
                ENTITY_TYPE,
                key,
                effective_date,
                reason="concurrent_publish",
            ) from exc
        except PriceConflictError as exc:
            logger.warning(
                "price_publish_conflict",
                extra={
                    "piece_id": str(piece_id),
                    "zone_id": str(zone_id),
                    "effective_date": effective_date.isoformat(),
                    "reason": exc.reason,
                },
            )
            raise

        logger.info(
            "price_published",
            extra={
                "piece_price_id": str(new_price.id),
                "piece_id": str(piece_id),
                "zone_id": str(zone_id),
                "effective_date": effective_date.isoformat(),
                "base_price": str(base_price),
                "adjustment": str(adjustment),
                "closed_previous": previous_open is not None,
                "actor_id": str(actor_id),
            },
        )
        return new_price.id
