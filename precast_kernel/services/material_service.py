"""
Service layer for the material catalog.

Materials are created here and deactivated by soft delete; they are never
removed because price history and formulas reference them.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from precast_kernel.domain.catalog import MaterialDraft, MaterialInfo
from precast_kernel.domain.money import ZERO, to_decimal
from precast_kernel.exceptions import (
    DuplicateCodeError,
    MaterialNotFoundError,
    PricingValidationError,
    ZoneNotFoundError,
)
from precast_kernel.logging_config import get_logger
from precast_kernel.models.material import Material, MaterialPlantStock
from precast_kernel.models.zone import Zone
from precast_kernel.services.base import BaseService

logger = get_logger("services.material")


class MaterialService(BaseService[Material]):
    """Creates and deactivates catalog materials and records zone stock."""

    def create_material(self, draft: MaterialDraft, actor_id: UUID) -> MaterialInfo:
        """
        Raises:
            DuplicateCodeError: A material with the same code exists
                (active or not).
            PricingValidationError: Blank code or name, or negative stock
                thresholds.
        """
        code = draft.code.strip()
        if not code or not draft.name.strip():
            raise PricingValidationError("Material code and name are required")
        if draft.minimum_stock < ZERO or draft.maximum_stock < ZERO:
            raise PricingValidationError("Stock thresholds must be >= 0")

        existing = self.session.execute(
            select(Material.id).where(Material.code == code)
        ).first()
        if existing is not None:
            raise DuplicateCodeError("Material", code)

        material = Material(
            code=code,
            name=draft.name.strip(),
            category=draft.category,
            unit=draft.unit,
            minimum_stock=draft.minimum_stock,
            maximum_stock=draft.maximum_stock,
            created_by_id=actor_id,
        )
        try:
            with self.session.begin_nested():
                self.session.add(material)
                self.session.flush()
        except IntegrityError as exc:
            raise DuplicateCodeError("Material", code) from exc

        logger.info(
            "material_created",
            extra={"material_id": str(material.id), "code": code, "actor_id": str(actor_id)},
        )
        return MaterialInfo.from_model(material)

    def deactivate_material(self, material_id: UUID, actor_id: UUID) -> MaterialInfo:
        """
        Soft-delete a material.

        Raises:
            MaterialNotFoundError: Unknown or already inactive.
        """
        material = self.session.get(Material, material_id)
        if material is None or not material.is_active:
            raise MaterialNotFoundError(str(material_id))
        material.deleted_at = self._clock.now()
        material.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "material_deactivated",
            extra={"material_id": str(material_id), "actor_id": str(actor_id)},
        )
        return MaterialInfo.from_model(material)

    def set_stock(
        self,
        material_id: UUID,
        zone_id: UUID,
        current_stock: Decimal,
        actor_id: UUID,
        reserved_stock: Decimal = ZERO,
    ) -> None:
        """Record the stock of a material in a zone (upsert)."""
        if self.session.get(Material, material_id) is None:
            raise MaterialNotFoundError(str(material_id))
        if self.session.get(Zone, zone_id) is None:
            raise ZoneNotFoundError(str(zone_id))
        current_stock = to_decimal(current_stock)
        reserved_stock = to_decimal(reserved_stock)
        if current_stock < ZERO or reserved_stock < ZERO:
            raise PricingValidationError("Stock levels must be >= 0")

        row = self.session.execute(
            select(MaterialPlantStock).where(
                MaterialPlantStock.material_id == material_id,
                MaterialPlantStock.zone_id == zone_id,
            )
        ).scalar_one_or_none()
        if row is None:
            row = MaterialPlantStock(
                material_id=material_id,
                zone_id=zone_id,
                created_by_id=actor_id,
            )
            self.session.add(row)
        else:
            row.updated_by_id = actor_id
        row.current_stock = current_stock
        row.reserved_stock = reserved_stock
        self.session.flush()
