"""
Module: precast_kernel.models.material
Responsibility: ORM persistence for the material catalog, per-zone stock and
    the per-zone material price history.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one open MaterialPlantPrice (valid_until IS NULL) per
      (material, zone): partial unique index uq_material_price_open.
    - One price row per (material, zone, valid_from): uq_material_price_from.
    - Price rows are append-only; only valid_until (once) and is_active
      (withdrawal) may change.  ORM listener in db/immutability.py.

Failure modes:
    - IntegrityError on a second open row or duplicate valid_from;
      MaterialPriceService translates it to PriceConflictError.
    - ImmutabilityViolationError on in-place price edits or deletes.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from precast_kernel.db.base import SoftDeleteMixin, TrackedBase, UUIDString


class Material(SoftDeleteMixin, TrackedBase):
    """
    A purchasable input (cement, steel, aggregates, inserts...).

    Contract:
        code is unique.  Deactivation stamps deleted_at; inactive materials
        drop out of BOM resolution but keep their price history.
    """

    __tablename__ = "materials"

    __table_args__ = (
        UniqueConstraint("code", name="uq_material_code"),
        Index("idx_material_category", "category"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # e.g., "steel", "concrete", "inserts"
    category: Mapped[str] = mapped_column(String(50), nullable=False)

    # e.g., "kg", "m3", "und"
    unit: Mapped[str] = mapped_column(String(20), nullable=False)

    minimum_stock: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    maximum_stock: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    stock: Mapped[list["MaterialPlantStock"]] = relationship(
        back_populates="material",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Material {self.code}>"


class MaterialPlantStock(TrackedBase):
    """Current and reserved stock of a material in a zone."""

    __tablename__ = "material_plant_stock"

    __table_args__ = (
        UniqueConstraint("material_id", "zone_id", name="uq_material_stock_zone"),
    )

    material_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("materials.id"), nullable=False
    )

    zone_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("zones.id"), nullable=False
    )

    current_stock: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    reserved_stock: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    material: Mapped[Material] = relationship(back_populates="stock")


class MaterialPlantPrice(TrackedBase):
    """
    Unit price of a material in a zone over [valid_from, valid_until].

    Contract:
        A price change closes the open row (valid_until = new valid_from - 1)
        and inserts a new row.  is_active=False withdraws a row from lookup
        without deleting it.

    Guarantees:
        - price > 0 (ck_material_price_positive).
        - valid_until, when set, is >= valid_from.
    """

    __tablename__ = "material_plant_prices"

    __table_args__ = (
        UniqueConstraint(
            "material_id", "zone_id", "valid_from", name="uq_material_price_from"
        ),
        Index(
            "uq_material_price_open",
            "material_id",
            "zone_id",
            unique=True,
            postgresql_where=text("valid_until IS NULL"),
            sqlite_where=text("valid_until IS NULL"),
        ),
        Index("idx_material_price_lookup", "material_id", "zone_id", "valid_from"),
        CheckConstraint("price > 0", name="ck_material_price_positive"),
        CheckConstraint(
            "valid_until IS NULL OR valid_until >= valid_from",
            name="ck_material_price_window",
        ),
    )

    material_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("materials.id"), nullable=False
    )

    zone_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("zones.id"), nullable=False
    )

    price: Mapped[Decimal] = mapped_column(nullable=False)

    valid_from: Mapped[date] = mapped_column(Date, nullable=False)

    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # "manual", "import", ...
    source: Mapped[str] = mapped_column(String(30), default="manual", nullable=False)

    def __repr__(self) -> str:
        return (
            f"<MaterialPlantPrice {self.material_id}@{self.zone_id} "
            f"{self.price} from {self.valid_from}>"
        )
