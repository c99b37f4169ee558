"""Tests for the BOM Resolver."""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from precast_kernel.exceptions import PieceNotFoundError
from precast_kernel.selectors.formula_selector import BOMPolicy, FormulaSelector


@pytest.fixture
def selector(session):
    return FormulaSelector(session)


class TestResolveBom:
    def test_ordered_by_category_then_code(self, selector, factory):
        piece = factory.piece()
        wire = factory.material(code=f"W-{uuid4().hex[:6]}", category="steel")
        bar = factory.material(code=f"B-{uuid4().hex[:6]}", category="steel")
        cement = factory.material(code=f"C-{uuid4().hex[:6]}", category="cement")
        for material in (wire, bar, cement):
            factory.formula_line(piece, material, Decimal("1"))

        lines = selector.resolve_bom(piece.id)
        assert [line.material_id for line in lines] == [cement.id, bar.id, wire.id]

    def test_line_values_carried(self, selector, factory):
        piece = factory.piece()
        steel = factory.material(unit="kg")
        factory.formula_line(piece, steel, Decimal("10"), Decimal("0.05"), is_optional=True)

        (line,) = selector.resolve_bom(piece.id)
        assert line.quantity_per_unit == Decimal("10")
        assert line.waste_factor == Decimal("0.05")
        assert line.is_optional
        assert line.effective_quantity == Decimal("10.5")
        assert line.unit == "kg"

    def test_inactive_materials_excluded_by_default(self, selector, factory):
        piece = factory.piece()
        active = factory.material()
        retired = factory.material(active=False)
        factory.formula_line(piece, active, Decimal("1"))
        factory.formula_line(piece, retired, Decimal("1"))

        assert [line.material_id for line in selector.resolve_bom(piece.id)] == [active.id]
        everything = selector.resolve_bom(piece.id, policy=BOMPolicy.ALL_MATERIALS)
        assert {line.material_id for line in everything} == {active.id, retired.id}

    def test_empty_formula(self, selector, factory):
        piece = factory.piece()
        assert selector.resolve_bom(piece.id) == []
        assert not selector.has_formula(piece.id)

    def test_unknown_piece(self, selector):
        with pytest.raises(PieceNotFoundError):
            selector.resolve_bom(uuid4())

    def test_soft_deleted_piece(self, session, selector, factory):
        piece = factory.piece()
        piece.deleted_at = datetime(2024, 1, 1, tzinfo=UTC)
        session.flush()
        with pytest.raises(PieceNotFoundError):
            selector.resolve_bom(piece.id)


class TestPiecesUsingMaterial:
    def test_lists_active_pieces(self, session, selector, factory):
        steel = factory.material()
        used = factory.piece()
        retired = factory.piece()
        factory.piece()
        factory.formula_line(used, steel, Decimal("1"))
        factory.formula_line(retired, steel, Decimal("1"))
        retired.deleted_at = datetime(2024, 1, 1, tzinfo=UTC)
        session.flush()

        assert [p.id for p in selector.pieces_using_material(steel.id)] == [used.id]
