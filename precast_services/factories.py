"""
precast_services.factories -- Settings-driven construction of kernel services.

The kernel never reads configuration, so the configured limits of the
catalog and formula maintenance paths are applied here: the waste factor
bound for FormulaService and the price staleness window for the material
catalog listing.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from precast_config.schema import PrecastSettings
from precast_kernel.domain.catalog import CatalogPage, MaterialCatalogFilter
from precast_kernel.domain.clock import Clock
from precast_kernel.selectors.material_selector import MaterialSelector
from precast_kernel.services.formula_service import FormulaService

__all__ = ["formula_service_from_settings", "list_materials_from_settings"]


def formula_service_from_settings(
    session: Session,
    settings: PrecastSettings,
    clock: Clock | None = None,
) -> FormulaService:
    """FormulaService bounded by pricing.max_waste_factor."""
    return FormulaService(
        session, clock, max_waste_factor=settings.pricing.max_waste_factor
    )


def list_materials_from_settings(
    session: Session,
    settings: PrecastSettings,
    catalog_filter: MaterialCatalogFilter,
    today: date,
) -> CatalogPage:
    """List the catalog using pricing.price_stale_after_days."""
    return MaterialSelector(session).list_materials(
        catalog_filter,
        today,
        price_stale_after_days=settings.pricing.price_stale_after_days,
    )
