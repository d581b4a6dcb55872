"""Tests for price recalculation."""

import pytest
from unittest.mock import MagicMock

from economy.errors import InvalidCostBasis, PersistenceFailure
from economy.metrics import EngineMetrics
from economy.models import CostType, GlobalRateConfig, ShopItem
from economy.recalculator import PriceRecalculator, is_rate_dependent, recalculate_fixed_prices
from economy.storage import InMemoryStorage


def _items():
    return [
        ShopItem(id="sticker", usd_cost=10, base_price=5),
        ShopItem(id="hoodie", usd_cost=25, base_price=40),
        ShopItem(
            id="progress",
            cost_type=CostType.CONFIG,
            config={"hours_equal_to_one_percent_progress": 2},
            base_price=32,
        ),
        ShopItem(
            id="grant",
            usd_cost=10,
            cost_type=CostType.CONFIG,
            config={"dollars_per_hour": 5},
            base_price=0,
        ),
        ShopItem(id="mystery", cost_type=CostType.CONFIG, config={"kind": "raffle"}, base_price=99),
    ]


class TestSelection:
    """Test which items are repriced."""

    def test_rate_dependent_items(self):
        """Fixed items and rate-linked config items are repriced."""
        dependent = [item.id for item in _items() if is_rate_dependent(item)]
        assert dependent == ["sticker", "hoodie", "grant"]

    def test_skipped_items_reported(self):
        """Other config items are skipped and left alone."""
        result = recalculate_fixed_prices(_items(), 10)
        assert result.skipped == ["progress", "mystery"]
        assert "progress" not in result.prices


class TestRecalculation:
    """Test repricing results."""

    def test_prices_at_new_rate(self):
        """Fixed prices follow the new global rate."""
        result = recalculate_fixed_prices(_items(), 10)

        assert result.prices == {"sticker": 16, "hoodie": 40, "grant": 32}
        assert result.errors == {}
        assert sorted(result.changed) == ["grant", "sticker"]

    def test_rate_config_accepted(self):
        """The new rate may be given as a config object."""
        result = recalculate_fixed_prices(_items(), GlobalRateConfig(dollars_per_hour=20))
        assert result.prices["sticker"] == 8

    def test_item_rate_unaffected(self):
        """Rate-linked config items keep their own rate."""
        low = recalculate_fixed_prices(_items(), 1)
        high = recalculate_fixed_prices(_items(), 100)
        assert low.prices["grant"] == high.prices["grant"] == 32

    def test_idempotent(self):
        """Running twice with the same rate gives the same stored prices."""
        storage = InMemoryStorage()
        for item in _items():
            storage.save_item(item)

        first = recalculate_fixed_prices(storage.list_items(), 12.5, persist=storage.update_base_price)
        stored_first = {item.id: item.base_price for item in storage.list_items()}
        second = recalculate_fixed_prices(storage.list_items(), 12.5, persist=storage.update_base_price)
        stored_second = {item.id: item.base_price for item in storage.list_items()}

        assert first.prices == second.prices
        assert stored_first == stored_second
        assert second.changed == []

    def test_invalid_rate_rejected(self):
        """A non-positive rate is rejected before anything is touched."""
        persist = MagicMock()
        with pytest.raises(InvalidCostBasis):
            recalculate_fixed_prices(_items(), 0, persist=persist)
        persist.assert_not_called()


class TestPartialFailure:
    """Test per-item failure handling."""

    def test_persistence_failure_skips_item(self):
        """A failed write is reported and the rest continue."""
        storage = InMemoryStorage()
        for item in _items():
            storage.save_item(item)

        def flaky_persist(item_id, price):
            if item_id == "sticker":
                raise IOError("disk full")
            storage.update_base_price(item_id, price)

        result = recalculate_fixed_prices(storage.list_items(), 10, persist=flaky_persist)

        assert isinstance(result.errors["sticker"], PersistenceFailure)
        assert result.errors["sticker"].item_id == "sticker"
        assert storage.get_item("sticker").base_price == 5
        assert storage.get_item("hoodie").base_price == 40
        assert storage.get_item("grant").base_price == 32
        assert result.results["sticker"] is result.errors["sticker"]
        assert result.results["hoodie"] == 40

    def test_invalid_item_skipped(self):
        """An item with a bad cost fails alone."""
        items = _items() + [ShopItem(id="broken", usd_cost=-4)]

        result = recalculate_fixed_prices(items, 10)

        assert isinstance(result.errors["broken"], InvalidCostBasis)
        assert result.prices["sticker"] == 16

    def test_metrics(self):
        """Outcomes are counted per item."""
        metrics = EngineMetrics(enable_logging=False)
        persist = MagicMock(side_effect=[None, RuntimeError("locked"), None])

        result = PriceRecalculator(persist=persist, metrics=metrics).recalculate(_items(), 10)

        counters = metrics.get_stats()["counters"]
        assert counters["recalculations_total"] == 3
        assert counters["recalculation_failures_total"] == 1
        assert result.summary() == {
            "dollars_per_hour": 10.0,
            "updated": 2,
            "changed": 2,
            "failed": 1,
            "skipped": 2,
        }
