"""
Module: precast_kernel.services.formula_service
Responsibility: Bill-of-materials maintenance: validate, replace, add and
    remove lines, copy a formula between pieces.
Architecture position: Kernel > Services.

Invariants enforced:
    - A replacement is all-or-nothing: the submission is validated before
      anything is touched, and the delete-then-insert runs in a savepoint,
      so a failure leaves the previous formula intact.
    - One line per (piece, material); quantity_per_unit > 0;
      0 <= waste_factor <= max_waste_factor.

Failure modes:
    - PieceNotFoundError for unknown or inactive pieces.
    - InvalidFormulaError carrying every validation error.
    - FormulaLineNotFoundError when removing a material not in the BOM.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from precast_kernel.domain.clock import Clock
from precast_kernel.domain.formula_rules import (
    DEFAULT_MAX_WASTE_FACTOR,
    FormulaLineInput,
    FormulaValidationResult,
    validate_formula_lines,
    waste_factor_from_multiplier,
)
from precast_kernel.domain.money import ZERO
from precast_kernel.exceptions import (
    FormulaLineNotFoundError,
    InvalidFormulaError,
    PieceNotFoundError,
)
from precast_kernel.logging_config import get_logger
from precast_kernel.models.material import Material
from precast_kernel.models.piece import Piece, PieceMaterialFormula
from precast_kernel.services.base import BaseService

logger = get_logger("services.formula")

__all__ = ["FormulaService", "waste_factor_from_multiplier"]


class FormulaService(BaseService[PieceMaterialFormula]):
    """Maintains piece formulas (BOM lines)."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        max_waste_factor: Decimal = DEFAULT_MAX_WASTE_FACTOR,
    ):
        super().__init__(session, clock)
        self._max_waste_factor = max_waste_factor

    def _require_piece(self, piece_id: UUID) -> Piece:
        piece = self.session.get(Piece, piece_id)
        if piece is None or not piece.is_active:
            raise PieceNotFoundError(str(piece_id))
        return piece

    def _material_status(self, material_ids: list[UUID]) -> dict[UUID, bool]:
        if not material_ids:
            return {}
        rows = self.session.execute(
            select(Material.id, Material.deleted_at).where(Material.id.in_(material_ids))
        ).all()
        return {material_id: deleted_at is None for material_id, deleted_at in rows}

    def _current_lines(self, piece_id: UUID) -> list[PieceMaterialFormula]:
        return list(
            self.session.execute(
                select(PieceMaterialFormula).where(PieceMaterialFormula.piece_id == piece_id)
            ).scalars()
        )

    def validate_formula(self, lines: list[FormulaLineInput]) -> FormulaValidationResult:
        """
        Validate a BOM submission without writing anything.

        Duplicates, non-positive quantities, out-of-range waste factors and
        unknown materials are errors; inactive materials are warnings.
        """
        status = self._material_status(list({line.material_id for line in lines}))
        return validate_formula_lines(lines, status, self._max_waste_factor)

    def replace_formula(
        self,
        piece_id: UUID,
        lines: list[FormulaLineInput],
        actor_id: UUID,
    ) -> FormulaValidationResult:
        """
        Replace the whole formula of a piece.

        Returns:
            The validation result (its warnings are worth showing).

        Raises:
            PieceNotFoundError: Unknown or inactive piece.
            InvalidFormulaError: The submission has errors; nothing changed.
        """
        self._require_piece(piece_id)
        result = self.validate_formula(lines)
        if not result.is_valid:
            logger.warning(
                "formula_rejected",
                extra={"piece_id": str(piece_id), "errors": list(result.errors)},
            )
            raise InvalidFormulaError(str(piece_id), list(result.errors))

        try:
            with self.session.begin_nested():
                self.session.execute(
                    delete(PieceMaterialFormula).where(PieceMaterialFormula.piece_id == piece_id)
                )
                for line in lines:
                    self.session.add(
                        PieceMaterialFormula(
                            piece_id=piece_id,
                            material_id=line.material_id,
                            quantity_per_unit=line.quantity_per_unit,
                            waste_factor=line.waste_factor if line.waste_factor is not None else ZERO,
                            is_optional=line.is_optional,
                            notes=line.notes,
                            created_by_id=actor_id,
                        )
                    )
                self.session.flush()
        except IntegrityError as exc:
            raise InvalidFormulaError(str(piece_id), [str(exc.orig)]) from exc

        logger.info(
            "formula_replaced",
            extra={
                "piece_id": str(piece_id),
                "line_count": len(lines),
                "warnings": list(result.warnings),
                "actor_id": str(actor_id),
            },
        )
        return result

    def add_line(
        self,
        piece_id: UUID,
        line: FormulaLineInput,
        actor_id: UUID,
    ) -> FormulaValidationResult:
        """
        Add one line to a piece's formula.

        Raises:
            InvalidFormulaError: The line is invalid or the material is
                already in the formula.
        """
        self._require_piece(piece_id)
        result = self.validate_formula([line])
        errors = list(result.errors)
        existing = {row.material_id for row in self._current_lines(piece_id)}
        if line.material_id in existing:
            errors.append(f"material {line.material_id} is already in the formula")
        if errors:
            raise InvalidFormulaError(str(piece_id), errors)

        self.session.add(
            PieceMaterialFormula(
                piece_id=piece_id,
                material_id=line.material_id,
                quantity_per_unit=line.quantity_per_unit,
                waste_factor=line.waste_factor if line.waste_factor is not None else ZERO,
                is_optional=line.is_optional,
                notes=line.notes,
                created_by_id=actor_id,
            )
        )
        self.session.flush()
        logger.info(
            "formula_line_added",
            extra={
                "piece_id": str(piece_id),
                "material_id": str(line.material_id),
                "actor_id": str(actor_id),
            },
        )
        return result

    def remove_line(self, piece_id: UUID, material_id: UUID, actor_id: UUID) -> None:
        """
        Raises:
            FormulaLineNotFoundError: The material is not in the formula.
        """
        self._require_piece(piece_id)
        row = self.session.execute(
            select(PieceMaterialFormula).where(
                PieceMaterialFormula.piece_id == piece_id,
                PieceMaterialFormula.material_id == material_id,
            )
        ).scalar_one_or_none()
        if row is None:
            raise FormulaLineNotFoundError(str(piece_id), str(material_id))
        self.session.delete(row)
        self.session.flush()
        logger.info(
            "formula_line_removed",
            extra={
                "piece_id": str(piece_id),
                "material_id": str(material_id),
                "actor_id": str(actor_id),
            },
        )

    def copy_formula(
        self,
        source_piece_id: UUID,
        target_piece_id: UUID,
        actor_id: UUID,
    ) -> FormulaValidationResult:
        """
        Replace the target's formula with a copy of the source's.

        Raises:
            PieceNotFoundError: Either piece is unknown or inactive.
            InvalidFormulaError: The source has no formula.
        """
        self._require_piece(source_piece_id)
        self._require_piece(target_piece_id)
        source_lines = self._current_lines(source_piece_id)
        if not source_lines:
            raise InvalidFormulaError(str(source_piece_id), ["source piece has no formula"])

        lines = [
            FormulaLineInput(
                material_id=row.material_id,
                quantity_per_unit=row.quantity_per_unit,
                waste_factor=row.waste_factor,
                is_optional=row.is_optional,
                notes=row.notes,
            )
            for row in source_lines
        ]
        result = self.replace_formula(target_piece_id, lines, actor_id)
        logger.info(
            "formula_copied",
            extra={
                "source_piece_id": str(source_piece_id),
                "target_piece_id": str(target_piece_id),
                "line_count": len(lines),
            },
        )
        return result
