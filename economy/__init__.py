"""
Economy Engine - approved hours and shell pricing for the program.

Approved hours:
    from economy import aggregate_approved_hours

    hours = aggregate_approved_hours(user_projects)  # 0 .. 60

Pricing:
    from economy import compute_base_price, sample_price, get_rate_config

    rates = get_rate_config()
    item.base_price = compute_base_price(item, rates)
    shown = sample_price(item, "user_123", datetime.now(UTC), rates)

Rate changes:
    from economy import recalculate_fixed_prices

    result = recalculate_fixed_prices(storage.list_items(), 12.5,
                                      persist=storage.update_base_price)
    print(result.summary())
"""

from economy.models import CostType, GlobalRateConfig, Order, Project, ShopItem, TimeLink
from economy.errors import (
    ApprovedHoursLookupFailure,
    EconomyError,
    InvalidCostBasis,
    InvalidRateConfig,
    PersistenceFailure,
    UnrecognizedConfigShape,
)
from economy.config import get_rate_config, set_rate_config
from economy.hours import apply_link_overrides, resolve_effective_hours, resolve_project_hours
from economy.approval import (
    AggregationBatch,
    ApprovedHoursAggregator,
    aggregate_approved_hours,
    aggregate_for_users,
)
from economy.pricing import (
    PriceFormula,
    PriceQuote,
    RandomizedPriceSampler,
    compute_base_price,
    quote_base_price,
    sample_price,
)
from economy.recalculator import PriceRecalculator, RecalculationResult, recalculate_fixed_prices
from economy.storage import InMemoryStorage, SQLiteStorage
from economy.metrics import EngineMetrics


__version__ = "1.0.0"
__all__ = [
    # Models
    "CostType",
    "GlobalRateConfig",
    "Order",
    "Project",
    "ShopItem",
    "TimeLink",
    # Errors
    "ApprovedHoursLookupFailure",
    "EconomyError",
    "InvalidCostBasis",
    "InvalidRateConfig",
    "PersistenceFailure",
    "UnrecognizedConfigShape",
    # Config
    "get_rate_config",
    "set_rate_config",
    # Hours
    "apply_link_overrides",
    "resolve_effective_hours",
    "resolve_project_hours",
    "AggregationBatch",
    "ApprovedHoursAggregator",
    "aggregate_approved_hours",
    "aggregate_for_users",
    # Pricing
    "PriceFormula",
    "PriceQuote",
    "RandomizedPriceSampler",
    "compute_base_price",
    "quote_base_price",
    "sample_price",
    "PriceRecalculator",
    "RecalculationResult",
    "recalculate_fixed_prices",
    # Storage and metrics
    "InMemoryStorage",
    "SQLiteStorage",
    "EngineMetrics",
]
