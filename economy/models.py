"""Shared data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
import math

from economy.errors import InvalidRateConfig


class CostType(str, Enum):
    """How a shop item's base price is derived."""
    FIXED = "fixed"    # USD cost converted at the global (or item) rate
    CONFIG = "config"  # Driven by the item's config map


@dataclass
class TimeLink:
    """One tracked-time link attached to a project."""
    id: str
    project_id: str
    raw_hours: Any = 0.0
    hours_override: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], project_id: str = "") -> "TimeLink":
        return cls(
            id=str(data["id"]),
            project_id=str(data.get("project_id") or project_id),
            raw_hours=data.get("raw_hours", 0.0),
            hours_override=data.get("hours_override"),
        )


@dataclass
class Project:
    """A user's project with its tracked-time links."""
    id: str
    user_id: str
    shipped: bool = False
    viral: bool = False
    links: List[TimeLink] = field(default_factory=list)
    approved_hours: Optional[float] = None  # Supplied by the review subsystem

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], user_id: str = "") -> "Project":
        project_id = str(data["id"])
        return cls(
            id=project_id,
            user_id=str(data.get("user_id") or user_id),
            shipped=_flag(data, "shipped", False),
            viral=_flag(data, "viral", False),
            links=[TimeLink.from_dict(link, project_id) for link in data.get("links", [])],
            approved_hours=data.get("approved_hours"),
        )


@dataclass
class ShopItem:
    """An item sold for shells."""
    id: str
    usd_cost: float = 0.0
    cost_type: CostType = CostType.FIXED
    config: Optional[Dict[str, Any]] = None
    use_randomized_pricing: bool = True
    base_price: int = 0
    name: Optional[str] = None
    active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ShopItem":
        return cls(
            id=str(data["id"]),
            usd_cost=data.get("usd_cost", 0.0),
            cost_type=CostType(data.get("cost_type", CostType.FIXED.value)),
            config=data.get("config"),
            use_randomized_pricing=_flag(data, "use_randomized_pricing", True),
            base_price=data.get("base_price", 0),
            name=data.get("name"),
            active=_flag(data, "active", True),
        )


@dataclass
class GlobalRateConfig:
    """Process-wide pricing configuration."""
    dollars_per_hour: float = 10.0
    price_random_min_percent: float = 90.0
    price_random_max_percent: float = 110.0

    def validate(self) -> "GlobalRateConfig":
        if not _is_finite_number(self.dollars_per_hour) or self.dollars_per_hour <= 0:
            raise InvalidRateConfig(
                f"dollars_per_hour must be a positive number, got {self.dollars_per_hour!r}"
            )
        low = self.price_random_min_percent
        high = self.price_random_max_percent
        if not _is_finite_number(low) or not _is_finite_number(high):
            raise InvalidRateConfig(
                f"random price band must be numeric, got [{low!r}, {high!r}]"
            )
        if low < 0 or low > high:
            raise InvalidRateConfig(
                f"random price band must satisfy 0 <= min <= max, got [{low}, {high}]"
            )
        return self

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "GlobalRateConfig":
        """Build from the string-valued key/value form the admin store keeps."""
        defaults = cls()
        try:
            config = cls(
                dollars_per_hour=_setting(values, "dollars_per_hour", defaults.dollars_per_hour),
                price_random_min_percent=_setting(
                    values, "price_random_min_percent", defaults.price_random_min_percent
                ),
                price_random_max_percent=_setting(
                    values, "price_random_max_percent", defaults.price_random_max_percent
                ),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidRateConfig(f"unparseable rate config: {exc}") from exc
        return config.validate()

    def to_mapping(self) -> Dict[str, str]:
        return {
            "dollars_per_hour": str(self.dollars_per_hour),
            "price_random_min_percent": str(self.price_random_min_percent),
            "price_random_max_percent": str(self.price_random_max_percent),
        }


@dataclass
class Order:
    """A fulfilled shop order."""
    item_id: str
    quantity: int
    price: int  # Total shells paid for the order
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no", ""}


def _flag(data: Mapping[str, Any], key: str, default: bool) -> bool:
    """Read a boolean flag, accepting the string forms JSON exports use."""
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"{key} must be a boolean, got {value!r}")


def _setting(values: Mapping[str, Any], key: str, default: float) -> float:
    """Numeric config value; missing or empty keys take the default, 0 is kept."""
    value = values.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a number, got {value!r}")
    return float(value)
