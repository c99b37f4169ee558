"""
Typed Exception Hierarchy for the Pricing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the pricing engine (HTTP handlers, import jobs, the quotation
wizard) must react differently to "this piece does not exist", "nobody has
configured process parameters for this plant" and "two people published the
same price at once".  Parsing message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        publisher.publish(piece_id, zone_id, effective_date, breakdown, actor_id)
    except PriceConflictError as e:
        show_existing_price(e.existing_price, e.existing_effective_date)
    except IncompletePricingError as e:
        highlight_materials(e.missing_material_ids)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from PricingKernelError:

    PricingKernelError (base)
    |
    +-- NotFoundError
    |   +-- PieceNotFoundError
    |   +-- MaterialNotFoundError
    |   +-- ZoneNotFoundError
    |   +-- MaterialPriceNotFoundError
    |   +-- FormulaLineNotFoundError
    |
    +-- MissingConfigurationError
    |   +-- ProcessParametersNotConfiguredError
    |
    +-- IncompletePricingError
    |
    +-- ConflictError
    |   +-- PriceConflictError
    |   +-- ParametersAlreadyExistError
    |   +-- DuplicateCodeError
    |
    +-- PricingValidationError
    |   +-- InvalidFormulaError
    |   +-- InvalidPriceError
    |   +-- InvalidParameterError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                              | When Raised
----------------|-----------------------------------|-------------------------------------
Not found       | PIECE_NOT_FOUND                   | Piece ID unknown or soft-deleted
                | MATERIAL_NOT_FOUND                | Material ID unknown or inactive
                | ZONE_NOT_FOUND                    | Zone (plant) ID unknown
                | MATERIAL_PRICE_NOT_FOUND          | Price row ID unknown (withdrawal)
                | FORMULA_LINE_NOT_FOUND            | Material is not in the piece's BOM
                | PUBLISHED_PRICE_NOT_FOUND         | No published price for piece/zone
----------------|-----------------------------------|-------------------------------------
Configuration   | PROCESS_PARAMETERS_NOT_CONFIGURED | No parameters for zone, even prior
----------------|-----------------------------------|-------------------------------------
Pricing         | INCOMPLETE_PRICING                | Publish with missing material prices
----------------|-----------------------------------|-------------------------------------
Conflict        | PRICE_CONFLICT                    | Same (key, date) exists / stale date
                | PARAMETERS_ALREADY_EXIST          | Copy target month already configured
                | DUPLICATE_CODE                    | Catalog code already taken
----------------|-----------------------------------|-------------------------------------
Validation      | INVALID_FORMULA                   | Negative qty, bad waste, duplicates
                | INVALID_PRICE                     | Zero/negative price
                | INVALID_PARAMETER                 | Negative process parameter
----------------|-----------------------------------|-------------------------------------
Immutability    | IMMUTABILITY_VIOLATION            | Mutating a superseded price row

===============================================================================
PROPAGATION
===============================================================================

Missing prices for individual BOM materials are NOT raised during
calculation; they are collected on the breakdown.  Missing piece, zone or
process parameters make any answer meaningless and are raised.  Publishing
is strict: no partial publish.
"""

from datetime import date
from decimal import Decimal


class PricingKernelError(Exception):
    """
    Base exception for all pricing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PRICING_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(PricingKernelError):
    """Base exception for references that do not resolve."""

    code: str = "NOT_FOUND"


class PieceNotFoundError(NotFoundError):
    """Piece with given ID was not found (or is soft-deleted)."""

    code: str = "PIECE_NOT_FOUND"

    def __init__(self, piece_id: str):
        self.piece_id = piece_id
        super().__init__(f"Piece not found: {piece_id}")


class MaterialNotFoundError(NotFoundError):
    """Material with given ID was not found (or is inactive)."""

    code: str = "MATERIAL_NOT_FOUND"

    def __init__(self, material_id: str):
        self.material_id = material_id
        super().__init__(f"Material not found: {material_id}")


class ZoneNotFoundError(NotFoundError):
    """Zone (production plant) with given ID was not found."""

    code: str = "ZONE_NOT_FOUND"

    def __init__(self, zone_id: str):
        self.zone_id = zone_id
        super().__init__(f"Zone not found: {zone_id}")


class MaterialPriceNotFoundError(NotFoundError):
    """Material price row with given ID was not found."""

    code: str = "MATERIAL_PRICE_NOT_FOUND"

    def __init__(self, price_id: str):
        self.price_id = price_id
        super().__init__(f"Material price not found: {price_id}")


class FormulaLineNotFoundError(NotFoundError):
    """The material is not part of the piece's formula."""

    code: str = "FORMULA_LINE_NOT_FOUND"

    def __init__(self, piece_id: str, material_id: str):
        self.piece_id = piece_id
        self.material_id = material_id
        super().__init__(
            f"Material {material_id} is not in the formula of piece {piece_id}"
        )


# Configuration exceptions


class MissingConfigurationError(PricingKernelError):
    """Base exception for configuration that must exist before pricing."""

    code: str = "MISSING_CONFIGURATION"


class ProcessParametersNotConfiguredError(MissingConfigurationError):
    """No process parameters exist for the zone, not even for a prior month."""

    code: str = "PROCESS_PARAMETERS_NOT_CONFIGURED"

    def __init__(self, zone_id: str, month: date):
        self.zone_id = zone_id
        self.month = month
        super().__init__(
            f"No process parameters configured for zone {zone_id} "
            f"on or before {month.isoformat()}"
        )


# Pricing exceptions


class IncompletePricingError(PricingKernelError):
    """Publishing was attempted with unresolved material prices.

    Also raised when a breakdown without a formula is published without an
    explicit override, and when a quotation references pieces that have no
    published price.
    """

    code: str = "INCOMPLETE_PRICING"

    def __init__(
        self,
        piece_id: str | None,
        zone_id: str,
        missing_material_ids: list[str] | None = None,
        reason: str | None = None,
        missing_piece_ids: list[str] | None = None,
    ):
        self.piece_id = piece_id
        self.zone_id = zone_id
        self.missing_material_ids = list(missing_material_ids or [])
        self.missing_piece_ids = list(missing_piece_ids or [])
        self.reason = reason or "missing_prices"
        if self.missing_piece_ids:
            detail = f"pieces without published price: {', '.join(self.missing_piece_ids)}"
        elif self.missing_material_ids:
            detail = f"materials without price: {', '.join(self.missing_material_ids)}"
        else:
            detail = self.reason
        super().__init__(f"Incomplete pricing in zone {zone_id}: {detail}")


# Conflict exceptions


class ConflictError(PricingKernelError):
    """Base exception for writes that collide with existing records."""

    code: str = "CONFLICT"


class PriceConflictError(ConflictError):
    """A price record already exists for the key and date, or the date is stale.

    Carries the conflicting existing record so the operator can see it.
    """

    code: str = "PRICE_CONFLICT"

    def __init__(
        self,
        entity_type: str,
        key: str,
        effective_date: date,
        existing_effective_date: date | None = None,
        existing_price: Decimal | None = None,
        reason: str = "duplicate_effective_date",
    ):
        self.entity_type = entity_type
        self.key = key
        self.effective_date = effective_date
        self.existing_effective_date = existing_effective_date
        self.existing_price = existing_price
        self.reason = reason
        super().__init__(
            f"{entity_type} conflict for {key} at {effective_date.isoformat()}: "
            f"{reason} (existing {existing_price} effective "
            f"{existing_effective_date.isoformat() if existing_effective_date else 'n/a'})"
        )


class ParametersAlreadyExistError(ConflictError):
    """Process parameters already exist for the target zone and month."""

    code: str = "PARAMETERS_ALREADY_EXIST"

    def __init__(self, zone_id: str, month: date):
        self.zone_id = zone_id
        self.month = month
        super().__init__(
            f"Process parameters already exist for zone {zone_id} "
            f"month {month.isoformat()}"
        )


class DuplicateCodeError(ConflictError):
    """A catalog entity with the same code already exists."""

    code: str = "DUPLICATE_CODE"

    def __init__(self, entity_type: str, entity_code: str):
        self.entity_type = entity_type
        self.entity_code = entity_code
        super().__init__(f"{entity_type} with code {entity_code} already exists")


# Validation exceptions


class PricingValidationError(PricingKernelError):
    """Base exception for malformed input."""

    code: str = "VALIDATION_ERROR"


class InvalidFormulaError(PricingValidationError):
    """BOM submission failed validation."""

    code: str = "INVALID_FORMULA"

    def __init__(self, piece_id: str, errors: list[str]):
        self.piece_id = piece_id
        self.errors = list(errors)
        super().__init__(
            f"Invalid formula for piece {piece_id}: {'; '.join(self.errors)}"
        )


class InvalidPriceError(PricingValidationError):
    """Price value is zero, negative or otherwise unusable."""

    code: str = "INVALID_PRICE"

    def __init__(self, value: str, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid price {value}: {reason}")


class InvalidParameterError(PricingValidationError):
    """Process parameter value is invalid."""

    code: str = "INVALID_PARAMETER"

    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid process parameter {field}={value}: {reason}")


# Immutability exceptions


class ImmutabilityViolationError(PricingKernelError):
    """Attempted in-place change of an append-only price record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
