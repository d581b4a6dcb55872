"""Tests for storage backends."""

import pytest
import tempfile

from economy.models import CostType, GlobalRateConfig, ShopItem
from economy.recalculator import recalculate_fixed_prices
from economy.storage import InMemoryStorage, SQLiteStorage


def test_sqlite_storage_persists_items():
    """SQLite storage should persist items across instances."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = f"{tmpdir}/economy.db"

        storage = SQLiteStorage(db_path=db_path)
        storage.save_item(ShopItem(
            id="progress",
            name="Island progress",
            cost_type=CostType.CONFIG,
            config={"hours_equal_to_one_percent_progress": 2},
            use_randomized_pricing=False,
            base_price=32,
        ))
        storage.close()

        storage2 = SQLiteStorage(db_path=db_path)
        item = storage2.get_item("progress")
        assert item.cost_type == CostType.CONFIG
        assert item.config == {"hours_equal_to_one_percent_progress": 2}
        assert item.use_randomized_pricing is False
        assert item.base_price == 32
        assert len(storage2.export_items()) == 1
        storage2.close()


def test_sqlite_storage_update_base_price():
    """Base price updates should be written and unknown ids rejected."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = SQLiteStorage(db_path=f"{tmpdir}/economy.db")
        storage.save_item(ShopItem(id="sticker", usd_cost=10))

        storage.update_base_price("sticker", 16)
        assert storage.get_item("sticker").base_price == 16

        with pytest.raises(KeyError):
            storage.update_base_price("ghost", 1)
        storage.close()


def test_sqlite_storage_config_roundtrip():
    """Global config values should round-trip as a rate config."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = SQLiteStorage(db_path=f"{tmpdir}/economy.db")

        assert storage.get_rate_config() == GlobalRateConfig()

        storage.set_config_value("dollars_per_hour", "12.5")
        storage.set_config_value("price_random_max_percent", "120")
        rates = storage.get_rate_config()
        assert rates.dollars_per_hour == 12.5
        assert rates.price_random_min_percent == 90
        assert rates.price_random_max_percent == 120
        storage.close()


def test_sqlite_storage_recalculation():
    """Recalculated prices should land in the database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = SQLiteStorage(db_path=f"{tmpdir}/economy.db")
        storage.save_item(ShopItem(id="sticker", usd_cost=10))
        storage.save_item(ShopItem(id="hoodie", usd_cost=25))

        recalculate_fixed_prices(storage.list_items(), 10, persist=storage.update_base_price)

        assert {i.id: i.base_price for i in storage.list_items()} == {"hoodie": 40, "sticker": 16}
        assert storage.remove_item("sticker") is True
        assert storage.remove_item("sticker") is False
        storage.close()


def test_in_memory_storage():
    """In-memory storage should replace items on price updates."""
    storage = InMemoryStorage()
    original = storage.save_item(ShopItem(id="sticker", usd_cost=10))

    storage.update_base_price("sticker", 16)

    assert storage.get_item("sticker").base_price == 16
    assert original.base_price == 0
    with pytest.raises(KeyError):
        storage.update_base_price("ghost", 1)

    storage.set_config_value("dollars_per_hour", "20")
    assert storage.get_rate_config().dollars_per_hour == 20
