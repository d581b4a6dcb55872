"""Tests for item sales statistics."""

import pytest
from datetime import datetime, timedelta, timezone

from economy.analytics import compute_item_stats, stats_for_window
from economy.models import Order, ShopItem

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _items():
    return [ShopItem(id="sticker"), ShopItem(id="hoodie")]


def _orders():
    return [
        Order(item_id="sticker", quantity=2, price=33, created_at=NOW - timedelta(hours=1)),
        Order(item_id="sticker", quantity=1, price=16, created_at=NOW - timedelta(days=3)),
        Order(item_id="hoodie", quantity=1, price=40, created_at=NOW - timedelta(days=40)),
        Order(item_id="retired", quantity=5, price=100, created_at=NOW),
    ]


class TestItemStats:
    """Test sales aggregation."""

    def test_all_time(self):
        """All orders count when no window is set."""
        stats = compute_item_stats(_items(), _orders(), now=NOW)

        assert stats["sticker"].units_sold == 3
        assert stats["sticker"].total_revenue == 49
        assert stats["sticker"].avg_price == 16
        assert stats["hoodie"].avg_price == 40

    def test_window(self):
        """Orders older than the window are ignored."""
        stats = stats_for_window(_items(), _orders(), "24h", now=NOW)

        assert stats["sticker"].units_sold == 2
        assert stats["sticker"].avg_price == 17
        assert stats["hoodie"].units_sold == 0
        assert stats["hoodie"].avg_price == 0

    def test_unknown_items_ignored(self):
        """Orders for items not listed are skipped."""
        stats = compute_item_stats(_items(), _orders(), now=NOW)
        assert "retired" not in stats

    def test_unknown_window(self):
        """Unknown window names are rejected."""
        with pytest.raises(ValueError):
            stats_for_window(_items(), _orders(), "fortnight", now=NOW)
