"""
Money -- Decimal rounding and calendar helpers for pricing.

Responsibility:
    The one place that decides how pricing amounts are rounded and how
    dates snap to months.  Cost components are carried at 9 decimal places
    internally and rounded to 2 places for presentation and storage of
    published prices.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - TypeError from to_decimal() when given a float; binary floats are
      never accepted as pricing input.
    - decimal.InvalidOperation from to_decimal() on unparseable strings.
"""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

# Rounding constants
MONEY_DECIMAL_PLACES = 2
INTERNAL_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")
THOUSAND = Decimal("1000")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a pricing value to the given decimal places.

    This is the only sanctioned rounding function for prices, deltas and
    percentages.  Everything else delegates here.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)


def quantize_internal(value: Decimal, decimal_places: int = INTERNAL_DECIMAL_PLACES) -> Decimal:
    """Quantize a cost component to the internal calculation precision."""
    return round_money(value, decimal_places)


def to_decimal(value) -> Decimal:
    """
    Coerce int, str or Decimal input to Decimal.

    Raises:
        TypeError: If value is a float (or any other unsupported type).
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not pricing values")
    if isinstance(value, (int, str)):
        return Decimal(value)
    raise TypeError(f"Unsupported pricing value type: {type(value).__name__}")


def month_start(day: date) -> date:
    """Normalize a date to the first day of its month."""
    return day.replace(day=1)


def previous_month(day: date) -> date:
    """First day of the month before the one containing ``day``."""
    return month_start(month_start(day) - timedelta(days=1))


def day_before(day: date) -> date:
    """The expiry date of a record superseded by one effective on ``day``."""
    return day - timedelta(days=1)


def percent_change(current: Decimal, previous: Decimal) -> Decimal | None:
    """Percent change from previous to current, rounded; None when previous is zero."""
    if previous == ZERO:
        return None
    return round_money((current - previous) / previous * HUNDRED)
