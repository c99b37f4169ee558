"""Tests for ProcessParameterService and MaterialService."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from precast_kernel.domain.catalog import MaterialDraft
from precast_kernel.domain.clock import DeterministicClock
from precast_kernel.exceptions import (
    DuplicateCodeError,
    InvalidParameterError,
    MaterialNotFoundError,
    ParametersAlreadyExistError,
    PricingValidationError,
    ProcessParametersNotConfiguredError,
    ZoneNotFoundError,
)
from precast_kernel.models import MaterialPlantStock
from precast_kernel.selectors.formula_selector import FormulaSelector
from precast_kernel.selectors.process_parameter_selector import ProcessParameterSelector
from precast_kernel.services.material_service import MaterialService
from precast_kernel.services.process_parameter_service import ProcessParameterService


@pytest.fixture
def parameters(session):
    return ProcessParameterService(session)


class TestUpsertParameters:
    def test_create_normalizes_month(self, parameters, zone, test_actor_id):
        info = parameters.upsert_parameters(
            zone.id, date(2024, 2, 17), {"hourly_labor_rate": Decimal("40")}, test_actor_id
        )
        assert info.month_date == date(2024, 2, 1)
        assert info.hourly_labor_rate == Decimal("40")
        assert info.profit_per_tn == Decimal("0")

    def test_update_keeps_untouched_fields(self, parameters, zone, test_actor_id):
        parameters.upsert_parameters(
            zone.id,
            date(2024, 2, 1),
            {"hourly_labor_rate": Decimal("40"), "profit_per_tn": Decimal("10")},
            test_actor_id,
        )
        info = parameters.upsert_parameters(
            zone.id, date(2024, 2, 1), {"profit_per_tn": Decimal("12")}, test_actor_id
        )
        assert info.hourly_labor_rate == Decimal("40")
        assert info.profit_per_tn == Decimal("12")

    def test_upsert_logged(self, parameters, zone, test_actor_id, captured_logs):
        parameters.upsert_parameters(
            zone.id, date(2024, 3, 1), {"hourly_labor_rate": Decimal("40")}, test_actor_id
        )
        parameters.upsert_parameters(
            zone.id, date(2024, 3, 1), {"profit_per_tn": Decimal("5")}, test_actor_id
        )
        records = [r for r in captured_logs() if r["message"] == "process_parameters_upserted"]
        assert [r["row_created"] for r in records] == [True, False]
        assert records[0]["fields"] == ["hourly_labor_rate"]

    def test_unknown_field(self, parameters, zone, test_actor_id):
        with pytest.raises(InvalidParameterError) as exc_info:
            parameters.upsert_parameters(
                zone.id, date(2024, 2, 1), {"coffee_per_tn": Decimal("1")}, test_actor_id
            )
        assert exc_info.value.field == "coffee_per_tn"

    def test_negative_value(self, parameters, zone, test_actor_id):
        with pytest.raises(InvalidParameterError):
            parameters.upsert_parameters(
                zone.id, date(2024, 2, 1), {"profit_per_tn": Decimal("-1")}, test_actor_id
            )

    def test_unknown_zone(self, parameters, test_actor_id):
        with pytest.raises(ZoneNotFoundError):
            parameters.upsert_parameters(uuid4(), date(2024, 2, 1), {}, test_actor_id)


class TestCopyFromPreviousMonth:
    def test_copies_all_values(self, session, parameters, factory, zone, test_actor_id):
        factory.parameters(
            zone,
            date(2024, 1, 1),
            hourly_labor_rate=Decimal("40"),
            labor_hours_per_m3_concrete=Decimal("1.5"),
        )
        copied = parameters.copy_from_previous_month(zone.id, date(2024, 2, 20), test_actor_id)
        assert copied.month_date == date(2024, 2, 1)
        assert copied.labor_hours_per_m3_concrete == Decimal("1.5")

        lookup = ProcessParameterSelector(session).get_parameters(zone.id, date(2024, 2, 1))
        assert not lookup.is_fallback

    def test_target_already_configured(self, parameters, factory, zone, test_actor_id):
        factory.parameters(zone, date(2024, 1, 1))
        factory.parameters(zone, date(2024, 2, 1))
        with pytest.raises(ParametersAlreadyExistError):
            parameters.copy_from_previous_month(zone.id, date(2024, 2, 1), test_actor_id)

    def test_previous_month_missing(self, parameters, factory, zone, test_actor_id):
        factory.parameters(zone, date(2023, 12, 1))
        with pytest.raises(ProcessParametersNotConfiguredError) as exc_info:
            parameters.copy_from_previous_month(zone.id, date(2024, 2, 1), test_actor_id)
        assert exc_info.value.month == date(2024, 1, 1)


@pytest.fixture
def materials(session):
    return MaterialService(session, DeterministicClock())


class TestMaterialService:
    def test_create_material(self, materials, test_actor_id):
        code = f"STEEL-{uuid4().hex[:6]}"
        info = materials.create_material(
            MaterialDraft(code=f"  {code} ", name="Rebar", category="steel", unit="kg"),
            test_actor_id,
        )
        assert info.code == code
        assert info.is_active

    def test_duplicate_code(self, materials, factory, test_actor_id):
        existing = factory.material()
        with pytest.raises(DuplicateCodeError):
            materials.create_material(
                MaterialDraft(code=existing.code, name="Copy", category="steel", unit="kg"),
                test_actor_id,
            )

    def test_blank_name(self, materials, test_actor_id):
        with pytest.raises(PricingValidationError):
            materials.create_material(
                MaterialDraft(code="X", name=" ", category="steel", unit="kg"), test_actor_id
            )

    def test_deactivate_hides_from_bom(self, session, materials, factory, test_actor_id):
        piece = factory.piece()
        steel = factory.material()
        factory.formula_line(piece, steel, Decimal("1"))

        info = materials.deactivate_material(steel.id, test_actor_id)
        assert not info.is_active
        assert FormulaSelector(session).resolve_bom(piece.id) == []

        with pytest.raises(MaterialNotFoundError):
            materials.deactivate_material(steel.id, test_actor_id)

    def test_set_stock_upserts(self, session, materials, factory, zone, test_actor_id):
        steel = factory.material()
        materials.set_stock(steel.id, zone.id, Decimal("10"), test_actor_id)
        materials.set_stock(steel.id, zone.id, Decimal("4"), test_actor_id)
        rows = session.execute(
            select(MaterialPlantStock).where(MaterialPlantStock.material_id == steel.id)
        ).scalars().all()
        assert [r.current_stock for r in rows] == [Decimal("4")]

    def test_negative_stock(self, materials, factory, zone, test_actor_id):
        with pytest.raises(PricingValidationError):
            materials.set_stock(factory.material().id, zone.id, Decimal("-1"), test_actor_id)
