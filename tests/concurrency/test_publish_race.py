"""
Concurrency tests on real commits.

Two publishers racing for the same (piece, zone, effective_date) must end
with exactly one published row and one PriceConflictError.  Fan-out price
lookups on worker threads must agree with the sequential path.

These tests use committed_session_factory; every thread opens its own
session and the fixture deletes all rows afterwards.
"""

import threading
from datetime import date
from decimal import Decimal

import pytest

from precast_kernel.db.engine import get_session_factory
from precast_kernel.exceptions import PriceConflictError
from precast_kernel.selectors.formula_selector import FormulaSelector
from precast_kernel.selectors.material_price_selector import IsolatedPriceLookup
from precast_kernel.selectors.piece_price_selector import PiecePriceSelector
from precast_services import PiecePricingService

pytestmark = pytest.mark.slow_locks

EFFECTIVE = date(2024, 2, 1)


@pytest.fixture
def committed_piece(committed_session_factory, make_factory):
    """A fully priced piece committed to the database."""
    session = committed_session_factory()
    factory = make_factory(session)
    zone = factory.zone()
    piece = factory.piece(weight_tn_per_um=Decimal("1"))
    for index in range(4):
        material = factory.material()
        factory.formula_line(piece, material, Decimal(index + 1))
        factory.price(material, zone, Decimal("2.5"), date(2024, 1, 1))
    factory.parameters(zone, date(2024, 1, 1), profit_per_tn=Decimal("10"))
    session.commit()
    return piece.id, zone.id


class TestPublishRace:
    def test_one_winner(self, committed_session_factory, committed_piece, test_actor_id):
        piece_id, zone_id = committed_piece
        barrier = threading.Barrier(2)
        outcomes: list[str] = []
        errors: list[BaseException] = []
        lock = threading.Lock()

        def publish():
            session = committed_session_factory()
            try:
                barrier.wait(timeout=5)
                PiecePricingService(session).publish(piece_id, zone_id, EFFECTIVE, test_actor_id)
                session.commit()
                result = "published"
            except PriceConflictError:
                session.rollback()
                result = "conflict"
            except Exception as exc:  # surfaced below
                session.rollback()
                with lock:
                    errors.append(exc)
                return
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=publish) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert not errors, errors
        assert sorted(outcomes) == ["conflict", "published"]

        check = committed_session_factory()
        (row,) = PiecePriceSelector(check).history(piece_id, zone_id)
        assert row.expiry_date is None
        assert row.base_price == Decimal("35.00")


class TestFanOutOnCommittedData:
    def test_isolated_lookup_matches_sequential(self, committed_session_factory, committed_piece):
        piece_id, zone_id = committed_piece
        session = committed_session_factory()

        sequential = PiecePricingService(session).calculate(piece_id, zone_id, EFFECTIVE)
        with PiecePricingService.with_fan_out(
            session, get_session_factory(), max_workers=3
        ) as service:
            concurrent = service.calculate(piece_id, zone_id, EFFECTIVE)

        assert concurrent == sequential
        assert concurrent.materials_cost == Decimal("25")
        assert concurrent.is_fallback

    def test_isolated_lookup_reads_committed_price(self, committed_session_factory, committed_piece):
        piece_id, zone_id = committed_piece
        session = committed_session_factory()
        bom = FormulaSelector(session).resolve_bom(piece_id)

        lookup = IsolatedPriceLookup(get_session_factory())
        prices = [lookup.get_current_price(line.material_id, zone_id, EFFECTIVE) for line in bom]
        assert [p.price for p in prices] == [Decimal("2.5")] * 4

    def test_zero_workers_stays_sequential(self, committed_session_factory, committed_piece, captured_logs):
        piece_id, zone_id = committed_piece
        session = committed_session_factory()
        with PiecePricingService.with_fan_out(
            session, get_session_factory(), max_workers=0
        ) as service:
            assert service.calculate(piece_id, zone_id, EFFECTIVE).is_complete
        assert not any(r["message"] == "price_lookup_fan_out" for r in captured_logs())
