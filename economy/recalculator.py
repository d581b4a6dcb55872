"""
Price recalculation after a global rate change.

Rewrites the base price of every rate-dependent item: fixed-cost items,
plus config items that carry their own ``dollars_per_hour`` (those come
out the same as before, since their rate is their own). Progress-linked
and other config items are skipped.

The batch is not atomic. An item that fails to price or persist keeps its
previous price and is reported; rerunning with the same rate converges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Union
import logging

from economy.errors import EconomyError, InvalidCostBasis, PersistenceFailure
from economy.metrics import EngineMetrics
from economy.models import CostType, ShopItem
from economy.pricing import RATE_KEY, PriceFormula, RateInput, positive_rate, rate_value

logger = logging.getLogger("economy.recalculator")

PersistPrice = Callable[[str, int], None]


@dataclass
class RecalculationResult:
    """Outcome of one recalculation run."""
    dollars_per_hour: float
    prices: Dict[str, int] = field(default_factory=dict)
    previous: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, EconomyError] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    @property
    def results(self) -> Dict[str, Union[int, EconomyError]]:
        """item id -> new base price or the error that stopped it."""
        combined: Dict[str, Union[int, EconomyError]] = dict(self.prices)
        combined.update(self.errors)
        return combined

    @property
    def changed(self) -> List[str]:
        return [
            item_id for item_id, price in self.prices.items()
            if self.previous.get(item_id) != price
        ]

    def summary(self) -> dict:
        return {
            "dollars_per_hour": self.dollars_per_hour,
            "updated": len(self.prices),
            "changed": len(self.changed),
            "failed": len(self.errors),
            "skipped": len(self.skipped),
        }


def is_rate_dependent(item: ShopItem) -> bool:
    """Whether an item's price is recomputed on a rate change."""
    if item.cost_type == CostType.FIXED:
        return True
    return isinstance(item.config, dict) and item.config.get(RATE_KEY) not in (None, "")


class PriceRecalculator:
    """
    Recomputes and persists base prices for a new rate.

    Example:
        recalculator = PriceRecalculator(persist=storage.update_base_price)
        result = recalculator.recalculate(storage.list_items(), 12.5)
    """

    def __init__(
        self,
        persist: Optional[PersistPrice] = None,
        metrics: Optional[EngineMetrics] = None,
    ):
        """
        Args:
            persist: Called with (item_id, new_price) for each priced item
            metrics: Optional collector for per-item outcomes
        """
        self.persist = persist
        self.metrics = metrics
        self.formula = PriceFormula()

    def recalculate(self, items: Iterable[ShopItem], new_rate: RateInput) -> RecalculationResult:
        """
        Reprice all rate-dependent items.

        Raises:
            InvalidCostBasis: If the new rate itself is not positive and finite
        """
        rate = positive_rate("dollars_per_hour", rate_value(new_rate))
        result = RecalculationResult(dollars_per_hour=rate)

        for item in items:
            if not is_rate_dependent(item):
                result.skipped.append(item.id)
                continue

            try:
                price = self.formula.quote(item, rate).price
            except InvalidCostBasis as exc:
                self._fail(result, item.id, exc)
                continue

            if self.persist is not None:
                try:
                    self.persist(item.id, price)
                except Exception as exc:
                    failure = PersistenceFailure(item.id, str(exc))
                    failure.__cause__ = exc
                    self._fail(result, item.id, failure)
                    continue

            result.prices[item.id] = price
            result.previous[item.id] = item.base_price
            if self.metrics:
                self.metrics.record_recalculation(item.id, item.base_price, price)

        logger.info(f"Recalculated prices at ${rate}/h: {result.summary()}")
        return result

    def _fail(self, result: RecalculationResult, item_id: str, error: EconomyError) -> None:
        logger.error(f"Price recalculation failed for item {item_id}: {error}")
        result.errors[item_id] = error
        if self.metrics:
            self.metrics.record_recalculation_failure(item_id, error)


def recalculate_fixed_prices(
    items: Iterable[ShopItem],
    new_rate: RateInput,
    persist: Optional[PersistPrice] = None,
    metrics: Optional[EngineMetrics] = None,
) -> RecalculationResult:
    """Reprice rate-dependent items at ``new_rate``; see ``PriceRecalculator``."""
    return PriceRecalculator(persist=persist, metrics=metrics).recalculate(items, new_rate)
