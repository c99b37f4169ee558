"""Freight tariff band lookup for quotation transport."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import select

from precast_kernel.domain.quotation import FreightRateInfo
from precast_kernel.models.freight_rate import FreightRate
from precast_kernel.selectors.base import BaseSelector


class FreightRateSelector(BaseSelector[FreightRate]):
    """Read access to the freight tariff table."""

    def find_band(self, distance_km: Decimal, as_of: date) -> FreightRateInfo | None:
        """
        The band covering distance_km, taking the latest tariff in force on
        as_of.  None when no band covers the distance.
        """
        stmt = (
            select(FreightRate)
            .where(
                FreightRate.km_from <= distance_km,
                FreightRate.km_to >= distance_km,
                FreightRate.effective_date <= as_of,
            )
            .order_by(FreightRate.effective_date.desc(), FreightRate.km_from.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return FreightRateInfo.from_model(row) if row is not None else None
