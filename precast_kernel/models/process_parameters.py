"""
Module: precast_kernel.models.process_parameters
Responsibility: ORM persistence for monthly process parameters per zone:
    per-ton process costs, the hourly labor rate and labor hours per unit
    of steel and concrete.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per (zone, month): uq_process_parameters_zone_month.
    - month_date is the first day of the month (normalized by the service).
    - Every value is >= 0 (check constraints).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from precast_kernel.db.base import TrackedBase, UUIDString

_NON_NEGATIVE = (
    "energy_curing_per_tn",
    "factory_overhead_per_tn",
    "company_overhead_per_tn",
    "profit_per_tn",
    "engineering_per_tn",
    "hourly_labor_rate",
    "labor_hours_per_tn_steel",
    "labor_hours_per_m3_concrete",
)


class ProcessParameters(TrackedBase):
    """Process costs of a zone for one month."""

    __tablename__ = "process_parameters"

    __table_args__ = (
        UniqueConstraint("zone_id", "month_date", name="uq_process_parameters_zone_month"),
        *(
            CheckConstraint(f"{column} >= 0", name=f"ck_process_{column}_non_negative")
            for column in _NON_NEGATIVE
        ),
    )

    zone_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("zones.id"), nullable=False, index=True
    )

    month_date: Mapped[date] = mapped_column(Date, nullable=False)

    energy_curing_per_tn: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    factory_overhead_per_tn: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    company_overhead_per_tn: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    profit_per_tn: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    engineering_per_tn: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    hourly_labor_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    labor_hours_per_tn_steel: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    labor_hours_per_m3_concrete: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    def __repr__(self) -> str:
        return f"<ProcessParameters {self.zone_id} {self.month_date}>"
