"""
Formula rules -- pure validation of bill-of-materials submissions.

Responsibility:
    Validates a proposed set of BOM lines before it replaces a piece's
    formula, and converts legacy waste multipliers to the fraction
    convention used everywhere else.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The caller supplies
    what it knows about the referenced materials.

Waste factor convention:
    waste_factor is a fraction of extra consumption.  Effective consumption
    is quantity_per_unit * (1 + waste_factor).  Older data stored a
    multiplier (1.05 for five percent); waste_factor_from_multiplier()
    converts it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from precast_kernel.domain.money import ZERO

DEFAULT_MAX_WASTE_FACTOR = Decimal("1")


@dataclass(frozen=True)
class FormulaLineInput:
    """One submitted BOM line."""

    material_id: UUID
    quantity_per_unit: Decimal
    waste_factor: Decimal = ZERO
    is_optional: bool = False
    notes: str | None = None


@dataclass(frozen=True)
class FormulaValidationResult:
    """Errors block the submission; warnings are informational."""

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _is_finite(value: Decimal | int | float | None) -> bool:
    return isinstance(value, (Decimal, int, float)) and Decimal(value).is_finite()


def waste_factor_from_multiplier(multiplier: Decimal) -> Decimal:
    """
    Convert a legacy waste multiplier (>= 1) to a waste fraction.

    Raises:
        ValueError: If the multiplier is below 1 or not finite.
    """
    multiplier = Decimal(multiplier)
    if not multiplier.is_finite() or multiplier < Decimal("1"):
        raise ValueError(f"Waste multiplier must be >= 1, got {multiplier}")
    return multiplier - Decimal("1")


def validate_formula_lines(
    lines: list[FormulaLineInput],
    material_status: dict[UUID, bool],
    max_waste_factor: Decimal = DEFAULT_MAX_WASTE_FACTOR,
) -> FormulaValidationResult:
    """
    Validate a BOM submission.

    Args:
        lines: The submitted lines.
        material_status: material_id -> is_active for every material known
            to the catalog.  Materials absent from the mapping are unknown.
        max_waste_factor: Upper bound for waste_factor (inclusive).

    Returns:
        FormulaValidationResult.  Duplicate materials, non-positive or
        non-finite quantities, out-of-range or non-finite waste factors and
        unknown materials are errors; inactive materials are warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []
    seen: set[UUID] = set()

    for index, line in enumerate(lines, start=1):
        if line.material_id in seen:
            errors.append(f"line {index}: duplicate material {line.material_id}")
        seen.add(line.material_id)

        quantity = line.quantity_per_unit
        if not _is_finite(quantity):
            errors.append(f"line {index}: quantity_per_unit {quantity} is not a finite number")
        elif quantity <= ZERO:
            errors.append(
                f"line {index}: quantity_per_unit must be greater than 0"
            )

        waste = line.waste_factor if line.waste_factor is not None else ZERO
        if not _is_finite(waste):
            errors.append(f"line {index}: waste_factor {waste} is not a finite number")
        elif waste < ZERO or waste > max_waste_factor:
            errors.append(
                f"line {index}: waste_factor {waste} outside [0, {max_waste_factor}]"
            )

        active = material_status.get(line.material_id)
        if active is None:
            errors.append(f"line {index}: unknown material {line.material_id}")
        elif not active:
            warnings.append(f"line {index}: material {line.material_id} is inactive")

    return FormulaValidationResult(errors=tuple(errors), warnings=tuple(warnings))
