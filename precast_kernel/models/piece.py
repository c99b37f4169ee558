"""
Module: precast_kernel.models.piece
Responsibility: ORM persistence for precast pieces and their bill of
    materials (PieceMaterialFormula lines).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One BOM line per (piece, material): uq_formula_piece_material.
    - quantity_per_unit > 0 and waste_factor >= 0 (check constraints).  The
      configurable upper bound on waste_factor is enforced by FormulaService.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from precast_kernel.db.base import SoftDeleteMixin, TrackedBase, UUIDString
from precast_kernel.models.material import Material


class Piece(SoftDeleteMixin, TrackedBase):
    """
    A precast concrete product (beam, column, slab...).

    Contract:
        Technical attributes are per unit of measure (UND, ML, M2...).
        weight_kg and length_m describe one physical piece and are used
        for quotation transport.
    """

    __tablename__ = "pieces"

    __table_args__ = (
        UniqueConstraint("code", name="uq_piece_code"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    unit_of_measure: Mapped[str] = mapped_column(String(10), default="UND", nullable=False)

    weight_tn_per_um: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    concrete_m3_per_um: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    steel_kg_per_um: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    weight_kg: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    length_m: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    def __repr__(self) -> str:
        return f"<Piece {self.code}>"


class PieceMaterialFormula(TrackedBase):
    """
    One BOM line: quantity of a material per unit of measure of a piece.

    waste_factor is a fraction; effective consumption is
    quantity_per_unit * (1 + waste_factor).
    """

    __tablename__ = "piece_material_formulas"

    __table_args__ = (
        UniqueConstraint("piece_id", "material_id", name="uq_formula_piece_material"),
        CheckConstraint("quantity_per_unit > 0", name="ck_formula_quantity_positive"),
        CheckConstraint("waste_factor >= 0", name="ck_formula_waste_non_negative"),
    )

    piece_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("pieces.id"), nullable=False, index=True
    )

    material_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("materials.id"), nullable=False, index=True
    )

    quantity_per_unit: Mapped[Decimal] = mapped_column(nullable=False)

    waste_factor: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    is_optional: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    material: Mapped[Material] = relationship()

    def __repr__(self) -> str:
        return f"<PieceMaterialFormula {self.piece_id} <- {self.material_id}>"
