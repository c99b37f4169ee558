"""
Module: precast_kernel.selectors.formula_selector
Responsibility: BOM Resolver.  Turns a piece id into its ordered list of
    BOM lines, each joined with the material it consumes.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - ACTIVE_MATERIALS_ONLY is the pricing policy: lines whose material is
      soft-deleted are excluded from resolution.  Maintenance views may ask
      for ALL_MATERIALS.
    - Deterministic order: material category, then material code.

Failure modes:
    - PieceNotFoundError if the piece does not exist or is soft-deleted.
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from sqlalchemy import select

from precast_kernel.domain.dtos import BOMLine, PieceInfo
from precast_kernel.exceptions import PieceNotFoundError
from precast_kernel.models.material import Material
from precast_kernel.models.piece import Piece, PieceMaterialFormula
from precast_kernel.selectors.base import BaseSelector


class BOMPolicy(str, Enum):
    """Which BOM lines resolve_bom() returns."""

    ACTIVE_MATERIALS_ONLY = "active_materials_only"
    ALL_MATERIALS = "all_materials"


ACTIVE_MATERIALS_ONLY = BOMPolicy.ACTIVE_MATERIALS_ONLY


class FormulaSelector(BaseSelector[PieceMaterialFormula]):
    """
    Read access to piece formulas.

    Contract:
        resolve_bom() has no side effects and returns the same list for the
        same committed state.
    """

    def _require_piece(self, piece_id: UUID) -> Piece:
        piece = self.session.get(Piece, piece_id)
        if piece is None or not piece.is_active:
            raise PieceNotFoundError(str(piece_id))
        return piece

    def resolve_bom(
        self,
        piece_id: UUID,
        policy: BOMPolicy = ACTIVE_MATERIALS_ONLY,
    ) -> list[BOMLine]:
        """
        Resolve the BOM of a piece.

        Args:
            piece_id: Piece to resolve.
            policy: ACTIVE_MATERIALS_ONLY (pricing) or ALL_MATERIALS.

        Returns:
            BOM lines ordered by material category, then material code.
            Empty when the piece has no formula.

        Raises:
            PieceNotFoundError: If the piece is unknown or inactive.
        """
        self._require_piece(piece_id)

        stmt = (
            select(PieceMaterialFormula, Material)
            .join(Material, Material.id == PieceMaterialFormula.material_id)
            .where(PieceMaterialFormula.piece_id == piece_id)
            .order_by(Material.category, Material.code)
        )
        if policy == BOMPolicy.ACTIVE_MATERIALS_ONLY:
            stmt = stmt.where(Material.deleted_at.is_(None))

        return [
            BOMLine(
                material_id=material.id,
                material_code=material.code,
                material_name=material.name,
                category=material.category,
                unit=material.unit,
                quantity_per_unit=line.quantity_per_unit,
                waste_factor=line.waste_factor,
                is_optional=line.is_optional,
            )
            for line, material in self.session.execute(stmt).all()
        ]

    def has_formula(self, piece_id: UUID) -> bool:
        stmt = (
            select(PieceMaterialFormula.id)
            .where(PieceMaterialFormula.piece_id == piece_id)
            .limit(1)
        )
        return self.session.execute(stmt).first() is not None

    def pieces_using_material(self, material_id: UUID) -> list[PieceInfo]:
        """Active pieces whose formula references the material, by piece code."""
        stmt = (
            select(Piece)
            .join(PieceMaterialFormula, PieceMaterialFormula.piece_id == Piece.id)
            .where(
                PieceMaterialFormula.material_id == material_id,
                Piece.deleted_at.is_(None),
            )
            .order_by(Piece.code)
        )
        return [PieceInfo.from_model(p) for p in self.session.execute(stmt).scalars()]
