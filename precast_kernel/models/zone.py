"""
Module: precast_kernel.models.zone
Responsibility: ORM persistence for zones (production plants).  Material
    prices, stock and process parameters are all kept per zone.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from precast_kernel.db.base import SoftDeleteMixin, TrackedBase


class Zone(SoftDeleteMixin, TrackedBase):
    """
    A production plant.

    Contract:
        code is unique and stable; zones are deactivated via deleted_at,
        never deleted, so historical prices stay resolvable.
    """

    __tablename__ = "zones"

    __table_args__ = (
        UniqueConstraint("code", name="uq_zone_code"),
    )

    code: Mapped[str] = mapped_column(String(30), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    def __repr__(self) -> str:
        return f"<Zone {self.code}>"
