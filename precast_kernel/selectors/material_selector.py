"""
Module: precast_kernel.selectors.material_selector
Responsibility: Material catalog listing with typed filters.
Architecture position: Kernel > Selectors.

Each populated MaterialCatalogFilter field contributes one SQLAlchemy
predicate; predicates are composed with AND.  Stock and last-price
aggregates are computed in subqueries and restricted to filter.zone_id
when one is given.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import and_, func, or_, select

from precast_kernel.domain.catalog import (
    CatalogPage,
    MaterialCatalogEntry,
    MaterialCatalogFilter,
    PriceStatus,
    StockStatus,
    classify_stock,
)
from precast_kernel.models.material import Material, MaterialPlantPrice, MaterialPlantStock
from precast_kernel.selectors.base import BaseSelector

DEFAULT_PRICE_STALE_AFTER_DAYS = 30


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class MaterialSelector(BaseSelector[Material]):
    """Read access to the material catalog."""

    def _stock_subquery(self, catalog_filter: MaterialCatalogFilter):
        stmt = select(
            MaterialPlantStock.material_id.label("material_id"),
            func.sum(MaterialPlantStock.current_stock).label("total_stock"),
        ).group_by(MaterialPlantStock.material_id)
        if catalog_filter.zone_id is not None:
            stmt = stmt.where(MaterialPlantStock.zone_id == catalog_filter.zone_id)
        return stmt.subquery("stock_totals")

    def _last_price_subquery(self, catalog_filter: MaterialCatalogFilter):
        stmt = (
            select(
                MaterialPlantPrice.material_id.label("material_id"),
                func.max(MaterialPlantPrice.valid_from).label("last_price_date"),
            )
            .where(MaterialPlantPrice.is_active.is_(True))
            .group_by(MaterialPlantPrice.material_id)
        )
        if catalog_filter.zone_id is not None:
            stmt = stmt.where(MaterialPlantPrice.zone_id == catalog_filter.zone_id)
        return stmt.subquery("last_prices")

    def list_materials(
        self,
        catalog_filter: MaterialCatalogFilter,
        today: date,
        price_stale_after_days: int = DEFAULT_PRICE_STALE_AFTER_DAYS,
    ) -> CatalogPage:
        """
        List materials matching the filter, ordered by category then code.

        A material's price is "updated" when its most recent active price
        row starts within price_stale_after_days of today.
        """
        stock = self._stock_subquery(catalog_filter)
        last_price = self._last_price_subquery(catalog_filter)
        total_stock = func.coalesce(stock.c.total_stock, 0)
        stale_cutoff = today - timedelta(days=price_stale_after_days)

        predicates = []
        if not catalog_filter.include_inactive:
            predicates.append(Material.deleted_at.is_(None))
        if catalog_filter.search:
            pattern = f"%{catalog_filter.search.strip()}%"
            predicates.append(or_(Material.code.ilike(pattern), Material.name.ilike(pattern)))
        if catalog_filter.category:
            predicates.append(Material.category == catalog_filter.category)
        if catalog_filter.stock_status == StockStatus.OUT:
            predicates.append(total_stock <= 0)
        elif catalog_filter.stock_status == StockStatus.LOW:
            predicates.append(and_(total_stock > 0, total_stock <= Material.minimum_stock))
        elif catalog_filter.stock_status == StockStatus.AVAILABLE:
            predicates.append(total_stock > Material.minimum_stock)
        if catalog_filter.price_status == PriceStatus.UPDATED:
            predicates.append(last_price.c.last_price_date >= stale_cutoff)
        elif catalog_filter.price_status == PriceStatus.OUTDATED:
            predicates.append(
                or_(
                    last_price.c.last_price_date.is_(None),
                    last_price.c.last_price_date < stale_cutoff,
                )
            )

        base = (
            select(
                Material,
                stock.c.total_stock,
                last_price.c.last_price_date,
            )
            .outerjoin(stock, stock.c.material_id == Material.id)
            .outerjoin(last_price, last_price.c.material_id == Material.id)
            .where(*predicates)
        )

        total = self.session.execute(
            select(func.count()).select_from(base.subquery())
        ).scalar_one()

        page_stmt = (
            base.order_by(Material.category, Material.code)
            .offset(catalog_filter.offset)
            .limit(catalog_filter.page_size)
        )

        items: list[MaterialCatalogEntry] = []
        for material, stock_total, last_price_date in self.session.execute(page_stmt).all():
            total_value = _as_decimal(stock_total)
            price_status = (
                PriceStatus.UPDATED
                if last_price_date is not None and last_price_date >= stale_cutoff
                else PriceStatus.OUTDATED
            )
            items.append(
                MaterialCatalogEntry(
                    id=material.id,
                    code=material.code,
                    name=material.name,
                    category=material.category,
                    unit=material.unit,
                    is_active=material.is_active,
                    total_stock=total_value,
                    minimum_stock=material.minimum_stock,
                    stock_status=classify_stock(total_value, material.minimum_stock),
                    last_price_date=last_price_date,
                    price_status=price_status,
                )
            )

        return CatalogPage(
            items=tuple(items),
            total=total,
            page=catalog_filter.page,
            page_size=catalog_filter.page_size,
        )
