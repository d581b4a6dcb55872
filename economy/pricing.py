"""
Shell pricing.

Base prices convert a cost basis to shells through hours:

    shells = round(hours * PHI * 10)

where hours is either ``usd_cost / dollars_per_hour`` or, for progress
items, the configured hours per percent of progress.

Items with randomized pricing show each user a price scaled by a
multiplier drawn from the configured percent band. The draw is seeded by
(user, item, hour bucket), so a user sees a stable price within one clock
hour and nothing needs to be stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional, Union
import logging
import math
import random

from economy.errors import InvalidCostBasis, UnrecognizedConfigShape
from economy.models import CostType, GlobalRateConfig, ShopItem

logger = logging.getLogger("economy.pricing")

PHI = (1 + math.sqrt(5)) / 2
SHELLS_PER_HOUR = 10
BUCKET_SECONDS = 3600

RATE_KEY = "dollars_per_hour"
PROGRESS_KEY = "hours_equal_to_one_percent_progress"

RateInput = Union[GlobalRateConfig, float, int]


class PricingMode(str, Enum):
    """Which formula produced a base price."""
    FIXED = "fixed"
    RATE_LINKED = "rate_linked"
    PROGRESS_LINKED = "progress_linked"
    UNCHANGED = "unchanged"


@dataclass
class PriceQuote:
    """A computed base price and how it was derived."""
    item_id: str
    price: int
    mode: PricingMode
    hours: Optional[float] = None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _finite_non_negative(field: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCostBasis(field, value)
    if not math.isfinite(value) or value < 0:
        raise InvalidCostBasis(field, value)
    return float(value)


def positive_rate(field: str, value: Any) -> float:
    rate = _finite_non_negative(field, value)
    if rate == 0:
        raise InvalidCostBasis(field, value)
    return rate


def rate_value(global_rate: RateInput) -> Any:
    if isinstance(global_rate, GlobalRateConfig):
        return global_rate.dollars_per_hour
    return global_rate


def _config_number(config: dict, key: str) -> Optional[float]:
    """Numeric value of a config key; numeric strings are accepted."""
    value = config.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise InvalidCostBasis(key, value) from None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCostBasis(key, value)
    return float(value)


class PriceFormula:
    """Maps an item's cost basis and the current rate to a base price."""

    @staticmethod
    def shells_for_hours(hours: float) -> int:
        hours = _finite_non_negative("hours", hours)
        shells = hours * PHI * SHELLS_PER_HOUR
        if not math.isfinite(shells):
            raise InvalidCostBasis("hours", hours)
        return round_half_up(shells)

    @staticmethod
    def hours_for_usd(usd_cost: float, dollars_per_hour: float, rate_field: str = RATE_KEY) -> float:
        usd = _finite_non_negative("usd_cost", usd_cost)
        rate = positive_rate(rate_field, dollars_per_hour)
        return usd / rate

    def quote(self, item: ShopItem, global_rate: RateInput) -> PriceQuote:
        """
        Compute an item's base price.

        Raises:
            InvalidCostBasis: Negative or non-finite cost, rate or hours
            UnrecognizedConfigShape: Config item without a known pricing key
        """
        config = item.config if isinstance(item.config, dict) else None

        if item.cost_type == CostType.CONFIG:
            if config is None:
                raise UnrecognizedConfigShape(item.config)

            item_rate = _config_number(config, RATE_KEY)
            if item_rate is not None:
                hours = self.hours_for_usd(item.usd_cost, item_rate)
                return PriceQuote(item.id, self.shells_for_hours(hours), PricingMode.RATE_LINKED, hours)

            progress_hours = _config_number(config, PROGRESS_KEY)
            if progress_hours is not None:
                return PriceQuote(
                    item.id,
                    self.shells_for_hours(progress_hours),
                    PricingMode.PROGRESS_LINKED,
                    progress_hours,
                )

            raise UnrecognizedConfigShape(item.config)

        # Fixed items may still carry their own rate
        item_rate = _config_number(config, RATE_KEY) if config else None
        if item_rate is not None:
            hours = self.hours_for_usd(item.usd_cost, item_rate)
        else:
            hours = self.hours_for_usd(item.usd_cost, rate_value(global_rate), rate_field="global_dollars_per_hour")
        return PriceQuote(item.id, self.shells_for_hours(hours), PricingMode.FIXED, hours)


def quote_base_price(item: ShopItem, global_rate: RateInput) -> PriceQuote:
    """Like ``compute_base_price`` but reports which formula applied."""
    try:
        return PriceFormula().quote(item, global_rate)
    except UnrecognizedConfigShape:
        logger.debug(f"Item {item.id}: config not recognized, keeping base price {item.base_price}")
        return PriceQuote(item.id, item.base_price, PricingMode.UNCHANGED)


def compute_base_price(item: ShopItem, global_rate: RateInput) -> int:
    """
    Base shell price of an item at the given rate.

    Config items whose config has no recognized key keep their current
    base price.

    Raises:
        InvalidCostBasis: Negative or non-finite cost, rate or hours
    """
    return quote_base_price(item, global_rate).price


def time_bucket(now: datetime) -> int:
    """Index of the clock hour containing ``now``; naive datetimes are UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.floor(now.timestamp() / BUCKET_SECONDS)


def price_multiplier(user_id: str, item_id: str, bucket: int, rates: GlobalRateConfig) -> float:
    """Deterministic multiplier in [min%, max%] for one user, item and hour."""
    rates.validate()
    rng = random.Random(f"{user_id}:{item_id}:{bucket}")
    return rng.uniform(
        rates.price_random_min_percent / 100,
        rates.price_random_max_percent / 100,
    )


class RandomizedPriceSampler:
    """
    Per-user displayed prices for randomized items.

    Example:
        sampler = RandomizedPriceSampler(get_rate_config())
        price = sampler.sample(item, "user_123", datetime.now(UTC))
    """

    def __init__(self, rates: GlobalRateConfig):
        self.rates = rates

    def bounds(self, base_price: int) -> tuple[int, int]:
        """Integer price range the band allows for a base price."""
        low = base_price * self.rates.price_random_min_percent / 100
        high = base_price * self.rates.price_random_max_percent / 100
        return math.ceil(low - 1e-9), math.floor(high + 1e-9)

    def sample(self, item: ShopItem, user_id: str, now: datetime) -> int:
        base = item.base_price
        if isinstance(base, bool) or not isinstance(base, int) or base < 0:
            raise InvalidCostBasis("base_price", base)

        if not item.use_randomized_pricing:
            return base

        multiplier = price_multiplier(user_id, item.id, time_bucket(now), self.rates)
        price = round_half_up(base * multiplier)

        low, high = self.bounds(base)
        if low <= high:
            price = min(max(price, low), high)
        return price


def sample_price(item: ShopItem, user_id: str, now: datetime, rates: GlobalRateConfig) -> int:
    """Price shown to ``user_id`` for ``item`` at instant ``now``."""
    return RandomizedPriceSampler(rates).sample(item, user_id, now)
