"""
Pricing Kernel Invariants Contract.

These invariants are structural law.  They are hardcoded in the write
services, the ORM listeners and the schema constraints.  No setting in
precast_config may override them.

This module exists solely to declare them explicitly.  Enforcement is
distributed across PiecePricePublisher, MaterialPriceService,
FormulaService, db/immutability.py and the unique constraints in models/.
"""

from enum import Enum, unique


@unique
class PricingInvariant(str, Enum):
    """Non-configurable invariants enforced by the pricing kernel."""

    APPEND_ONLY_PRICES = "append_only_prices"
    """Material and piece price rows are never edited in place or deleted;
    only the closing date (once) and the withdrawal flag may change.
    Enforced by db/immutability.py."""

    SINGLE_OPEN_PRICE = "single_open_price"
    """At most one open price row per (material, zone) and per
    (piece, zone).  Enforced by MaterialPriceService, PiecePricePublisher
    and partial unique indexes."""

    UNIQUE_EFFECTIVE_DATE = "unique_effective_date"
    """One published piece price per (piece, zone, effective_date); the
    unique constraint is the final arbiter of concurrent publishes."""

    BREAKDOWN_CONSERVATION = "breakdown_conservation"
    """A breakdown total equals the sum of its four components exactly.
    Enforced by CostBreakdownCalculator."""

    NO_PARTIAL_PUBLISH = "no_partial_publish"
    """A breakdown with missing material prices or without a formula is
    never published.  Enforced by PiecePricePublisher."""

    FORMULA_ALL_OR_NOTHING = "formula_all_or_nothing"
    """A formula replacement either applies every line or leaves the old
    formula intact.  Enforced by FormulaService."""


ALL_PRICING_INVARIANTS: frozenset[PricingInvariant] = frozenset(PricingInvariant)

# The kernel package may not import from these packages.
# Enforced by tests/architecture/test_layer_boundaries.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "precast_services",
    "precast_config",
    "precast_engines",
)
