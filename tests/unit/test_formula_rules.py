"""Tests for BOM submission validation and the waste-factor convention."""

from decimal import Decimal
from uuid import uuid4

import pytest

from precast_kernel.domain.formula_rules import (
    FormulaLineInput,
    validate_formula_lines,
    waste_factor_from_multiplier,
)


class TestWasteFactorConversion:
    def test_multiplier_becomes_fraction(self):
        assert waste_factor_from_multiplier(Decimal("1.05")) == Decimal("0.05")

    def test_multiplier_of_one_is_no_waste(self):
        assert waste_factor_from_multiplier(Decimal("1")) == Decimal("0")

    def test_multiplier_below_one_rejected(self):
        with pytest.raises(ValueError):
            waste_factor_from_multiplier(Decimal("0.95"))

    @pytest.mark.parametrize("multiplier", ["NaN", "Infinity"])
    def test_non_finite_multiplier_rejected(self, multiplier):
        with pytest.raises(ValueError):
            waste_factor_from_multiplier(Decimal(multiplier))


class TestValidateFormulaLines:
    def test_valid_submission(self):
        steel, cement = uuid4(), uuid4()
        result = validate_formula_lines(
            [
                FormulaLineInput(steel, Decimal("10"), Decimal("0.05")),
                FormulaLineInput(cement, Decimal("350")),
            ],
            {steel: True, cement: True},
        )
        assert result.is_valid
        assert result.warnings == ()

    def test_duplicate_material_is_error(self):
        steel = uuid4()
        result = validate_formula_lines(
            [FormulaLineInput(steel, Decimal("1")), FormulaLineInput(steel, Decimal("2"))],
            {steel: True},
        )
        assert not result.is_valid
        assert any("duplicate" in e for e in result.errors)

    def test_non_positive_quantity_is_error(self):
        steel = uuid4()
        result = validate_formula_lines(
            [FormulaLineInput(steel, Decimal("0"))],
            {steel: True},
        )
        assert any("quantity_per_unit" in e for e in result.errors)

    def test_waste_factor_out_of_range_is_error(self):
        steel, mesh = uuid4(), uuid4()
        result = validate_formula_lines(
            [
                FormulaLineInput(steel, Decimal("1"), Decimal("-0.01")),
                FormulaLineInput(mesh, Decimal("1"), Decimal("1.5")),
            ],
            {steel: True, mesh: True},
        )
        assert len(result.errors) == 2

    def test_waste_factor_bound_is_configurable(self):
        steel = uuid4()
        result = validate_formula_lines(
            [FormulaLineInput(steel, Decimal("1"), Decimal("0.3"))],
            {steel: True},
            max_waste_factor=Decimal("0.25"),
        )
        assert not result.is_valid

    def test_unknown_material_is_error(self):
        result = validate_formula_lines([FormulaLineInput(uuid4(), Decimal("1"))], {})
        assert any("unknown material" in e for e in result.errors)

    def test_inactive_material_is_warning_only(self):
        steel = uuid4()
        result = validate_formula_lines(
            [FormulaLineInput(steel, Decimal("1"))],
            {steel: False},
        )
        assert result.is_valid
        assert len(result.warnings) == 1

    @pytest.mark.parametrize("quantity", ["NaN", "sNaN", "Infinity", "-Infinity"])
    def test_non_finite_quantity_is_error(self, quantity):
        steel = uuid4()
        result = validate_formula_lines(
            [FormulaLineInput(steel, Decimal(quantity))],
            {steel: True},
        )
        assert not result.is_valid
        assert result.errors == (f"line 1: quantity_per_unit {Decimal(quantity)} is not a finite number",)

    def test_non_finite_waste_factor_is_error(self):
        steel = uuid4()
        result = validate_formula_lines(
            [FormulaLineInput(steel, Decimal("1"), Decimal("NaN"))],
            {steel: True},
        )
        assert result.errors == ("line 1: waste_factor NaN is not a finite number",)

    def test_integer_quantity_accepted(self):
        steel = uuid4()
        assert validate_formula_lines([FormulaLineInput(steel, 3)], {steel: True}).is_valid
