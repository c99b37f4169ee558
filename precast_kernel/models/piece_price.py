"""
Module: precast_kernel.models.piece_price
Responsibility: ORM persistence for published piece prices, with the
    calculation provenance that produced them.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per (piece, zone, effective_date): uq_piece_price_effective.
      This constraint is the final arbiter of concurrent publishes.
    - At most one open row (expiry_date IS NULL) per (piece, zone).
    - Append-only: only expiry_date may be set, once.  ORM listener in
      db/immutability.py.

Audit relevance:
    Quotations reference the published price in force on their date.
    Keeping every version, with the cost components and the parameters
    month used, lets anyone reproduce why a piece cost what it did.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from precast_kernel.db.base import TrackedBase, UUIDString


class PiecePrice(TrackedBase):
    """
    A published price of a piece in a zone from effective_date on.

    Contract:
        final_price = base_price + adjustment, derived and never stored.
        base_price is the breakdown total rounded to 2 places.
    """

    __tablename__ = "piece_prices"

    __table_args__ = (
        UniqueConstraint(
            "piece_id", "zone_id", "effective_date", name="uq_piece_price_effective"
        ),
        Index(
            "uq_piece_price_open",
            "piece_id",
            "zone_id",
            unique=True,
            postgresql_where=text("expiry_date IS NULL"),
            sqlite_where=text("expiry_date IS NULL"),
        ),
        Index("idx_piece_price_lookup", "piece_id", "zone_id", "effective_date"),
    )

    piece_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("pieces.id"), nullable=False
    )

    zone_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("zones.id"), nullable=False
    )

    base_price: Mapped[Decimal] = mapped_column(nullable=False)

    adjustment: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Calculation provenance
    materials_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    process_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    labor_cost_concrete: Mapped[Decimal | None] = mapped_column(nullable=True)
    labor_cost_steel: Mapped[Decimal | None] = mapped_column(nullable=True)
    parameters_month: Mapped[date | None] = mapped_column(Date, nullable=True)

    @property
    def final_price(self) -> Decimal:
        return self.base_price + self.adjustment

    def __repr__(self) -> str:
        return (
            f"<PiecePrice {self.piece_id}@{self.zone_id} "
            f"{self.base_price}+{self.adjustment} from {self.effective_date}>"
        )
