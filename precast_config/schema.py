"""
Pricing settings schema.

Frozen dataclasses describing the runtime configuration of the pricing
engine.  The loader parses YAML into these types; every constructor
validates its own values so an invalid file fails at load time, not on
the first request.

Key distinction:
  DatabaseSettings -- how to reach the database
  PricingSettings  -- precision and behaviour of the calculation
  QuotationTariffs -- surcharges applied by the quotation calculator
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from precast_kernel.domain.formula_rules import DEFAULT_MAX_WASTE_FACTOR
from precast_kernel.domain.money import INTERNAL_DECIMAL_PLACES, MONEY_DECIMAL_PLACES, ZERO
from precast_kernel.domain.quotation import QuotationTariffs

DEFAULT_DATABASE_URL = "sqlite:///precast_pricing.db"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings passed to precast_kernel.db.init_engine_from_url."""

    url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url must not be empty")
        for name in ("pool_size", "pool_timeout", "pool_recycle"):
            if getattr(self, name) <= 0:
                raise ValueError(f"database.{name} must be > 0, got {getattr(self, name)}")
        if self.max_overflow < 0:
            raise ValueError(f"database.max_overflow must be >= 0, got {self.max_overflow}")


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PricingSettings:
    """
    Precision and behaviour of piece pricing.

    money_decimal_places applies to published prices and comparisons;
    internal_decimal_places to breakdown components.  fan_out_workers of 0
    means price lookups run sequentially on the caller's session.
    """

    money_decimal_places: int = MONEY_DECIMAL_PLACES
    internal_decimal_places: int = INTERNAL_DECIMAL_PLACES
    max_waste_factor: Decimal = DEFAULT_MAX_WASTE_FACTOR
    price_stale_after_days: int = 30
    fan_out_workers: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.money_decimal_places <= self.internal_decimal_places:
            raise ValueError(
                "pricing.money_decimal_places must be between 0 and "
                f"internal_decimal_places ({self.internal_decimal_places}), "
                f"got {self.money_decimal_places}"
            )
        if self.internal_decimal_places > 9:
            raise ValueError(
                "pricing.internal_decimal_places cannot exceed the stored "
                f"scale of 9, got {self.internal_decimal_places}"
            )
        if self.max_waste_factor < ZERO:
            raise ValueError(
                f"pricing.max_waste_factor must be >= 0, got {self.max_waste_factor}"
            )
        if self.price_stale_after_days < 1:
            raise ValueError(
                "pricing.price_stale_after_days must be >= 1, "
                f"got {self.price_stale_after_days}"
            )
        if self.fan_out_workers < 0:
            raise ValueError(
                f"pricing.fan_out_workers must be >= 0, got {self.fan_out_workers}"
            )


def validate_tariffs(tariffs: QuotationTariffs) -> QuotationTariffs:
    """Reject negative tariffs; returns the tariffs unchanged."""
    for name in (
        "gg_rate",
        "long_piece_threshold_m",
        "mounting_standard_per_tn",
        "crane_cost_per_km",
    ):
        value = getattr(tariffs, name)
        if value < ZERO:
            raise ValueError(f"quotation.{name} must be >= 0, got {value}")
    return tariffs


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PrecastSettings:
    """The complete runtime configuration returned by get_active_settings()."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    pricing: PricingSettings = field(default_factory=PricingSettings)
    quotation: QuotationTariffs = field(default_factory=QuotationTariffs)
    source_files: tuple[str, ...] = ()
