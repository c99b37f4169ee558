"""Tests for pricing rounding and month helpers (precast_kernel.domain.money)."""

from datetime import date
from decimal import Decimal, InvalidOperation

import pytest

from precast_kernel.domain.money import (
    day_before,
    month_start,
    percent_change,
    previous_month,
    quantize_internal,
    round_money,
    to_decimal,
)


class TestRoundMoney:
    def test_half_up_at_two_places(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")

    def test_negative_half_rounds_away_from_zero(self):
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")

    def test_custom_places(self):
        assert round_money(Decimal("1.23456"), 3) == Decimal("1.235")

    def test_internal_precision_is_nine_places(self):
        value = quantize_internal(Decimal("1") / Decimal("3"))
        assert value == Decimal("0.333333333")
        assert value.as_tuple().exponent == -9


class TestToDecimal:
    def test_accepts_int_str_decimal(self):
        assert to_decimal(3) == Decimal("3")
        assert to_decimal("2.50") == Decimal("2.50")
        assert to_decimal(Decimal("1.1")) == Decimal("1.1")

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            to_decimal(0.1)

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            to_decimal(True)

    def test_rejects_garbage_string(self):
        with pytest.raises(InvalidOperation):
            to_decimal("not-a-number")


class TestCalendarHelpers:
    def test_month_start(self):
        assert month_start(date(2024, 2, 15)) == date(2024, 2, 1)

    def test_previous_month_crosses_year(self):
        assert previous_month(date(2024, 1, 20)) == date(2023, 12, 1)

    def test_day_before_leap_year(self):
        assert day_before(date(2024, 3, 1)) == date(2024, 2, 29)


class TestPercentChange:
    def test_increase(self):
        assert percent_change(Decimal("110"), Decimal("100")) == Decimal("10.00")

    def test_zero_previous_is_none(self):
        assert percent_change(Decimal("5"), Decimal("0")) is None
