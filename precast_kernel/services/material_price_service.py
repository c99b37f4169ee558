"""
Module: precast_kernel.services.material_price_service
Responsibility: The single write path for material prices.  Manual edits
    and CSV import jobs both call set_price(); import_prices() applies it
    row by row.
Architecture position: Kernel > Services.

Invariants enforced:
    - At most one open row per (material, zone): the open row is closed
      (valid_until = valid_from - 1 day) before the new row is inserted.
    - Prices are strictly positive.
    - valid_from must be later than every existing valid_from for the
      (material, zone); equal is a duplicate, earlier is stale.

Failure modes:
    - MaterialNotFoundError / ZoneNotFoundError for unknown or inactive refs.
    - InvalidPriceError for price <= 0.
    - PriceConflictError for duplicate or stale valid_from, or the loser of
      a concurrent write (IntegrityError on flush).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from precast_kernel.db.engine import supports_row_locks
from precast_kernel.domain.catalog import PriceImportResult, PriceImportRow
from precast_kernel.domain.dtos import MaterialPriceInfo
from precast_kernel.domain.money import ZERO, day_before, to_decimal
from precast_kernel.exceptions import (
    InvalidPriceError,
    MaterialNotFoundError,
    MaterialPriceNotFoundError,
    PriceConflictError,
    PricingKernelError,
    ZoneNotFoundError,
)
from precast_kernel.logging_config import get_logger
from precast_kernel.models.material import Material, MaterialPlantPrice
from precast_kernel.models.zone import Zone
from precast_kernel.services.base import BaseService

logger = get_logger("services.material_price")

ENTITY_TYPE = "MaterialPlantPrice"


class MaterialPriceService(BaseService[MaterialPlantPrice]):
    """
    Writes per-zone material prices.

    Contract:
        Flush-only.  Each set_price() runs in a savepoint so a rejected
        price leaves the caller's session usable.
    """

    def _require_material(self, material_id: UUID) -> Material:
        material = self.session.get(Material, material_id)
        if material is None or not material.is_active:
            raise MaterialNotFoundError(str(material_id))
        return material

    def _require_zone(self, zone_id: UUID) -> Zone:
        zone = self.session.get(Zone, zone_id)
        if zone is None or not zone.is_active:
            raise ZoneNotFoundError(str(zone_id))
        return zone

    def set_price(
        self,
        material_id: UUID,
        zone_id: UUID,
        price: Decimal,
        valid_from: date,
        actor_id: UUID,
        source: str = "manual",
    ) -> MaterialPriceInfo:
        """
        Set a new price for a material in a zone from valid_from on.

        Returns:
            The inserted price row.

        Raises:
            MaterialNotFoundError, ZoneNotFoundError, InvalidPriceError,
            PriceConflictError.
        """
        try:
            price = to_decimal(price)
        except (TypeError, ArithmeticError) as exc:
            raise InvalidPriceError(str(price), "not a decimal value") from exc
        if not price.is_finite() or price <= ZERO:
            raise InvalidPriceError(str(price), "price must be greater than zero")
        self._require_material(material_id)
        self._require_zone(zone_id)
        key = f"{material_id}@{zone_id}"

        try:
            with self.session.begin_nested():
                stmt = (
                    select(MaterialPlantPrice)
                    .where(
                        MaterialPlantPrice.material_id == material_id,
                        MaterialPlantPrice.zone_id == zone_id,
                    )
                    .order_by(MaterialPlantPrice.valid_from.desc())
                )
                if supports_row_locks(self.session):
                    stmt = stmt.with_for_update()
                rows = self.session.execute(stmt).scalars().all()

                latest = rows[0] if rows else None
                if latest is not None and valid_from <= latest.valid_from:
                    raise PriceConflictError(
                        ENTITY_TYPE,
                        key,
                        valid_from,
                        existing_effective_date=latest.valid_from,
                        existing_price=latest.price,
                        reason=(
                            "duplicate_valid_from"
                            if valid_from == latest.valid_from
                            else "stale_valid_from"
                        ),
                    )

                open_row = next((r for r in rows if r.valid_until is None), None)
                if open_row is not None:
                    open_row.valid_until = day_before(valid_from)
                    open_row.updated_by_id = actor_id
                    self.session.flush()

                new_row = MaterialPlantPrice(
                    material_id=material_id,
                    zone_id=zone_id,
                    price=price,
                    valid_from=valid_from,
                    valid_until=None,
                    is_active=True,
                    source=source,
                    created_by_id=actor_id,
                )
                self.session.add(new_row)
                self.session.flush()
        except IntegrityError as exc:
            raise PriceConflictError(
                ENTITY_TYPE,
                key,
                valid_from,
                reason="concurrent_write",
            ) from exc

        logger.info(
            "material_price_set",
            extra={
                "material_price_id": str(new_row.id),
                "material_id": str(material_id),
                "zone_id": str(zone_id),
                "price": str(price),
                "valid_from": valid_from.isoformat(),
                "source": source,
                "closed_previous": open_row is not None,
                "actor_id": str(actor_id),
            },
        )
        return MaterialPriceInfo.from_model(new_row)

    def withdraw_price(self, price_id: UUID, actor_id: UUID) -> MaterialPriceInfo:
        """
        Withdraw a price row from lookup (is_active = False).

        The row stays in history.  Withdrawing an already withdrawn row is
        a no-op.

        Raises:
            MaterialPriceNotFoundError: If the row does not exist.
        """
        row = self.session.get(MaterialPlantPrice, price_id)
        if row is None:
            raise MaterialPriceNotFoundError(str(price_id))
        if row.is_active:
            row.is_active = False
            row.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "material_price_withdrawn",
                extra={
                    "material_price_id": str(price_id),
                    "material_id": str(row.material_id),
                    "zone_id": str(row.zone_id),
                    "actor_id": str(actor_id),
                },
            )
        return MaterialPriceInfo.from_model(row)

    def import_prices(
        self,
        rows: list[PriceImportRow],
        actor_id: UUID,
        source: str = "import",
    ) -> list[PriceImportResult]:
        """
        Apply set_price() to every row, each in its own savepoint.

        One bad row does not abort the others.  Row numbers are 1-based.
        """
        results: list[PriceImportResult] = []
        for row_number, row in enumerate(rows, start=1):
            try:
                with self.session.begin_nested():
                    material = self.session.execute(
                        select(Material).where(
                            Material.code == row.material_code,
                            Material.deleted_at.is_(None),
                        )
                    ).scalar_one_or_none()
                    if material is None:
                        raise MaterialNotFoundError(row.material_code)
                    zone = self.session.execute(
                        select(Zone).where(Zone.code == row.zone_code, Zone.deleted_at.is_(None))
                    ).scalar_one_or_none()
                    if zone is None:
                        raise ZoneNotFoundError(row.zone_code)

                    info = self.set_price(
                        material.id,
                        zone.id,
                        row.price,
                        row.valid_from,
                        actor_id,
                        source=source,
                    )
                results.append(
                    PriceImportResult(
                        row_number=row_number,
                        material_code=row.material_code,
                        zone_code=row.zone_code,
                        accepted=True,
                        price_id=info.id,
                    )
                )
            except PricingKernelError as exc:
                results.append(
                    PriceImportResult(
                        row_number=row_number,
                        material_code=row.material_code,
                        zone_code=row.zone_code,
                        accepted=False,
                        error_code=exc.code,
                        error_message=str(exc),
                    )
                )

        accepted = sum(1 for r in results if r.accepted)
        logger.info(
            "material_price_import_completed",
            extra={
                "rows": len(results),
                "accepted": accepted,
                "rejected": len(results) - accepted,
                "actor_id": str(actor_id),
            },
        )
        return results
