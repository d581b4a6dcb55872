"""Sales statistics for shop items."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional

from economy.models import Order, ShopItem
from economy.pricing import round_half_up

TIME_WINDOWS: Dict[str, Optional[timedelta]] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "all": None,
}


@dataclass
class ItemStats:
    """Sales totals for one item."""
    units_sold: int = 0
    total_revenue: int = 0
    avg_price: int = 0


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def compute_item_stats(
    items: Iterable[ShopItem],
    orders: Iterable[Order],
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> Dict[str, ItemStats]:
    """
    Units sold, revenue and average unit price per item.

    Args:
        items: Items to report on
        orders: Fulfilled orders
        now: Reference time, defaults to the current time
        window: Only count orders newer than ``now - window``; None counts all

    Returns:
        item id -> ItemStats
    """
    now = _aware(now or datetime.now(timezone.utc))
    stats = {item.id: ItemStats() for item in items}

    for order in orders:
        if order.item_id not in stats:
            continue
        if window is not None and now - _aware(order.created_at) > window:
            continue
        entry = stats[order.item_id]
        entry.units_sold += order.quantity
        entry.total_revenue += order.price

    for entry in stats.values():
        if entry.units_sold > 0:
            entry.avg_price = round_half_up(entry.total_revenue / entry.units_sold)

    return stats


def stats_for_window(
    items: Iterable[ShopItem],
    orders: Iterable[Order],
    window_name: str,
    now: Optional[datetime] = None,
) -> Dict[str, ItemStats]:
    """``compute_item_stats`` for one of the named windows in TIME_WINDOWS."""
    if window_name not in TIME_WINDOWS:
        raise ValueError(f"Unknown window '{window_name}', expected one of {sorted(TIME_WINDOWS)}")
    return compute_item_stats(items, orders, now=now, window=TIME_WINDOWS[window_name])
