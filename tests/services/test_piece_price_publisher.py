"""
Tests for the Price Publisher.

Publishing never writes a partial price: a breakdown with missing material
prices or without a formula is rejected, and a duplicate or stale
effective date is a conflict that leaves the history untouched.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from precast_kernel.domain.dtos import NO_FORMULA_WARNING, PriceBreakdown
from precast_kernel.exceptions import (
    IncompletePricingError,
    PieceNotFoundError,
    PriceConflictError,
    PricingValidationError,
)
from precast_kernel.selectors.piece_price_selector import PiecePriceSelector
from precast_kernel.services.piece_price_publisher import PiecePricePublisher


def make_breakdown(piece, zone, total="100.004", missing=(), warnings=(), as_of=date(2024, 1, 1)):
    total = Decimal(total)
    return PriceBreakdown(
        piece_id=piece.id,
        zone_id=zone.id,
        as_of=as_of,
        lines=(),
        materials_cost=total,
        process_cost=Decimal("0"),
        labor_cost_concrete=Decimal("0"),
        labor_cost_steel=Decimal("0"),
        total=total,
        missing_prices=tuple(missing),
        warnings=tuple(warnings),
        parameters_month=date(2024, 1, 1),
    )


@pytest.fixture
def publisher(session):
    return PiecePricePublisher(session)


@pytest.fixture
def published(session):
    return PiecePriceSelector(session)


class TestPublish:
    def test_first_publish(self, publisher, published, factory, zone, test_actor_id):
        piece = factory.piece()
        price_id = publisher.publish(
            piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone), test_actor_id
        )
        current = published.current_price(piece.id, zone.id, date(2024, 1, 1))
        assert current.id == price_id
        assert current.base_price == Decimal("100.00")
        assert current.expiry_date is None
        assert current.parameters_month == date(2024, 1, 1)
        assert current.created_by_id == test_actor_id

    def test_adjustment_added_to_final_price(self, publisher, published, factory, zone, test_actor_id):
        piece = factory.piece()
        publisher.publish(
            piece.id,
            zone.id,
            date(2024, 1, 1),
            make_breakdown(piece, zone),
            test_actor_id,
            adjustment=Decimal("5"),
        )
        assert published.current_price(piece.id, zone.id, date(2024, 1, 1)).final_price == Decimal("105.00")

    def test_closes_previous_row(self, publisher, published, factory, zone, test_actor_id):
        piece = factory.piece()
        publisher.publish(
            piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone), test_actor_id
        )
        publisher.publish(
            piece.id, zone.id, date(2024, 3, 1), make_breakdown(piece, zone, "120"), test_actor_id
        )
        newest, previous = published.history(piece.id, zone.id)
        assert previous.expiry_date == date(2024, 2, 29)
        assert newest.expiry_date is None
        assert newest.base_price == Decimal("120")

    def test_logs_publish(self, publisher, factory, zone, test_actor_id, captured_logs):
        piece = factory.piece()
        publisher.publish(
            piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone), test_actor_id
        )
        (record,) = [r for r in captured_logs() if r["message"] == "price_published"]
        assert record["base_price"] == "100.00"
        assert record["closed_previous"] is False


class TestRejections:
    def test_missing_prices_block_publish(self, publisher, published, factory, zone, test_actor_id):
        piece = factory.piece()
        missing = uuid4()
        with pytest.raises(IncompletePricingError) as exc_info:
            publisher.publish(
                piece.id,
                zone.id,
                date(2024, 1, 1),
                make_breakdown(piece, zone, missing=[missing]),
                test_actor_id,
            )
        assert exc_info.value.missing_material_ids == [str(missing)]
        assert published.history(piece.id, zone.id) == []

    def test_no_formula_requires_override(self, publisher, published, factory, zone, test_actor_id):
        piece = factory.piece()
        breakdown = make_breakdown(piece, zone, warnings=[NO_FORMULA_WARNING])
        with pytest.raises(IncompletePricingError) as exc_info:
            publisher.publish(piece.id, zone.id, date(2024, 1, 1), breakdown, test_actor_id)
        assert exc_info.value.reason == NO_FORMULA_WARNING

        publisher.publish(
            piece.id,
            zone.id,
            date(2024, 1, 1),
            breakdown,
            test_actor_id,
            allow_without_formula=True,
        )
        assert len(published.history(piece.id, zone.id)) == 1

    def test_breakdown_for_other_piece(self, publisher, factory, zone, test_actor_id):
        piece, other = factory.piece(), factory.piece()
        with pytest.raises(PricingValidationError):
            publisher.publish(
                piece.id, zone.id, date(2024, 1, 1), make_breakdown(other, zone), test_actor_id
            )

    def test_unknown_piece(self, publisher, factory, zone, test_actor_id):
        ghost_id = uuid4()
        breakdown = replace(make_breakdown(factory.piece(), zone), piece_id=ghost_id)
        with pytest.raises(PieceNotFoundError):
            publisher.publish(ghost_id, zone.id, date(2024, 1, 1), breakdown, test_actor_id)

    def test_duplicate_effective_date(self, publisher, published, factory, zone, test_actor_id, captured_logs):
        piece = factory.piece()
        publisher.publish(
            piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone), test_actor_id
        )
        with pytest.raises(PriceConflictError) as exc_info:
            publisher.publish(
                piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone, "90"), test_actor_id
            )
        assert exc_info.value.reason == "duplicate_effective_date"
        assert exc_info.value.existing_price == Decimal("100.00")

        (only,) = published.history(piece.id, zone.id)
        assert only.expiry_date is None
        assert any(
            r["message"] == "price_publish_conflict" and r["reason"] == "duplicate_effective_date"
            for r in captured_logs()
        )

    def test_stale_effective_date(self, publisher, published, factory, zone, test_actor_id):
        piece = factory.piece()
        publisher.publish(
            piece.id, zone.id, date(2024, 3, 1), make_breakdown(piece, zone), test_actor_id
        )
        with pytest.raises(PriceConflictError) as exc_info:
            publisher.publish(
                piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone), test_actor_id
            )
        assert exc_info.value.reason == "stale_effective_date"
        assert published.current_price(piece.id, zone.id, date(2024, 3, 1)).expiry_date is None

    def test_session_usable_after_conflict(self, publisher, published, factory, zone, test_actor_id):
        piece = factory.piece()
        publisher.publish(
            piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone), test_actor_id
        )
        with pytest.raises(PriceConflictError):
            publisher.publish(
                piece.id, zone.id, date(2024, 1, 1), make_breakdown(piece, zone), test_actor_id
            )
        publisher.publish(
            piece.id, zone.id, date(2024, 2, 1), make_breakdown(piece, zone), test_actor_id
        )
        assert len(published.history(piece.id, zone.id)) == 2
