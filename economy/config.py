"""Global rate configuration for the economy engine."""

from __future__ import annotations

import copy
import json
import os
from typing import Any, Dict

from economy.models import GlobalRateConfig

RATE_CONFIG_ENV = "ECONOMY_RATE_CONFIG_JSON"

DEFAULT_RATE_CONFIG = GlobalRateConfig(
    dollars_per_hour=10.0,
    price_random_min_percent=90.0,
    price_random_max_percent=110.0,
)

_rate_config: GlobalRateConfig = copy.deepcopy(DEFAULT_RATE_CONFIG)


def _parse_json_env(var_name: str) -> Dict[str, Any] | None:
    value = os.getenv(var_name)
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def get_rate_config() -> GlobalRateConfig:
    """Return a fresh copy of the current rate config, with optional env override."""
    parsed = _parse_json_env(RATE_CONFIG_ENV)
    if parsed:
        return GlobalRateConfig.from_mapping(parsed)
    return copy.deepcopy(_rate_config)


def set_rate_config(
    *,
    dollars_per_hour: float | None = None,
    price_random_min_percent: float | None = None,
    price_random_max_percent: float | None = None,
) -> GlobalRateConfig:
    """Update rate config at runtime; the whole config is validated first."""
    global _rate_config
    updated = copy.deepcopy(_rate_config)
    if dollars_per_hour is not None:
        updated.dollars_per_hour = dollars_per_hour
    if price_random_min_percent is not None:
        updated.price_random_min_percent = price_random_min_percent
    if price_random_max_percent is not None:
        updated.price_random_max_percent = price_random_max_percent
    updated.validate()
    _rate_config = updated
    return copy.deepcopy(updated)


def reset_rate_config() -> None:
    """Restore the defaults."""
    global _rate_config
    _rate_config = copy.deepcopy(DEFAULT_RATE_CONFIG)
