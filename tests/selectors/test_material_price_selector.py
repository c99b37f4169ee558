"""
Tests for the Zone Price Lookup.

Window: valid_from <= as_of <= valid_until (open rows have no end) and
the row is active.  When several rows match, the latest valid_from wins,
then the latest created_at, then the highest id.
"""

from datetime import date
from decimal import Decimal

import pytest

from precast_kernel.selectors.material_price_selector import MaterialPriceSelector


@pytest.fixture
def selector(session):
    return MaterialPriceSelector(session)


class TestValidityWindow:
    def test_returns_price_covering_as_of(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1), valid_until=date(2024, 2, 29))
        factory.price(steel, zone, Decimal("3"), date(2024, 3, 1))

        assert selector.get_current_price(steel.id, zone.id, date(2024, 2, 29)).price == Decimal("2")
        assert selector.get_current_price(steel.id, zone.id, date(2024, 3, 1)).price == Decimal("3")

    def test_none_before_first_price(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1))
        assert selector.get_current_price(steel.id, zone.id, date(2023, 12, 31)) is None

    def test_none_when_never_priced(self, selector, factory, zone):
        assert selector.get_current_price(factory.material().id, zone.id, date(2024, 1, 1)) is None

    def test_other_zone_not_visible(self, selector, factory, zone):
        steel = factory.material()
        other = factory.zone()
        factory.price(steel, other, Decimal("2"), date(2024, 1, 1))
        assert selector.get_current_price(steel.id, zone.id, date(2024, 6, 1)) is None

    def test_withdrawn_price_ignored(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1), is_active=False)
        assert selector.get_current_price(steel.id, zone.id, date(2024, 6, 1)) is None


class TestTieBreak:
    """Overlapping windows only appear in hand-edited history."""

    def test_latest_valid_from_wins(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1), valid_until=date(2024, 12, 31))
        factory.price(steel, zone, Decimal("5"), date(2024, 3, 1), valid_until=date(2024, 12, 31))
        assert selector.get_current_price(steel.id, zone.id, date(2024, 6, 1)).price == Decimal("5")
        assert selector.get_current_price(steel.id, zone.id, date(2024, 2, 1)).price == Decimal("2")

    def test_batch_applies_same_tie_break(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1), valid_until=date(2024, 12, 31))
        factory.price(steel, zone, Decimal("5"), date(2024, 3, 1), valid_until=date(2024, 12, 31))
        prices = selector.get_current_prices([steel.id], zone.id, date(2024, 6, 1))
        assert prices[steel.id].price == Decimal("5")

    def test_closed_row_not_visible_after_its_end(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1), valid_until=date(2024, 1, 31))
        assert selector.get_current_price(steel.id, zone.id, date(2024, 2, 1)) is None


class TestIdempotentRead:
    def test_repeated_lookup_is_identical(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2.75"), date(2024, 1, 1))
        first = selector.get_current_price(steel.id, zone.id, date(2024, 5, 5))
        second = selector.get_current_price(steel.id, zone.id, date(2024, 5, 5))
        assert first == second


class TestBatchAndHistory:
    def test_batch_matches_single_lookups(self, selector, factory, zone):
        steel, cement, sand = factory.material(), factory.material(), factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1))
        factory.price(cement, zone, Decimal("0.3"), date(2024, 1, 1))

        prices = selector.get_current_prices([steel.id, cement.id, sand.id], zone.id, date(2024, 2, 1))
        assert set(prices) == {steel.id, cement.id}
        assert prices[steel.id] == selector.get_current_price(steel.id, zone.id, date(2024, 2, 1))

    def test_empty_batch(self, selector, zone):
        assert selector.get_current_prices([], zone.id, date(2024, 1, 1)) == {}

    def test_history_newest_first(self, selector, factory, zone):
        steel = factory.material()
        factory.price(steel, zone, Decimal("2"), date(2024, 1, 1), valid_until=date(2024, 2, 29))
        factory.price(steel, zone, Decimal("3"), date(2024, 3, 1))
        history = selector.price_history(steel.id, zone.id)
        assert [h.valid_from for h in history] == [date(2024, 3, 1), date(2024, 1, 1)]
        assert selector.get_open_price(steel.id, zone.id).price == Decimal("3")
