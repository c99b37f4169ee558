"""
Module: precast_kernel.models.freight_rate
Responsibility: ORM persistence for the freight tariff table used by
    quotation transport: a per-ton rate for each distance band, with a
    separate rate for loads carrying long pieces.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index
from sqlalchemy.orm import Mapped, mapped_column

from precast_kernel.db.base import TrackedBase


class FreightRate(TrackedBase):
    """Freight tariff for distances in [km_from, km_to]."""

    __tablename__ = "freight_rates"

    __table_args__ = (
        Index("idx_freight_band", "km_from", "km_to"),
        CheckConstraint("km_to >= km_from", name="ck_freight_band_order"),
    )

    km_from: Mapped[Decimal] = mapped_column(nullable=False)

    km_to: Mapped[Decimal] = mapped_column(nullable=False)

    rate_under_long: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    rate_over_long: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<FreightRate {self.km_from}-{self.km_to} km>"
