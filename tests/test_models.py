"""Tests for model parsing."""

import pytest

from economy.errors import InvalidRateConfig
from economy.models import GlobalRateConfig, Project, ShopItem


class TestRateConfigParsing:
    """Test numeric zero handling in stored config."""

    def test_zero_min_percent_kept(self):
        """A numeric 0 min percent is a valid band edge, not a missing value."""
        rates = GlobalRateConfig.from_mapping({"price_random_min_percent": 0, "price_random_max_percent": 50})
        assert rates.price_random_min_percent == 0
        assert rates.price_random_max_percent == 50

    def test_zero_rate_rejected(self):
        """A numeric 0 rate is rejected rather than replaced by the default."""
        with pytest.raises(InvalidRateConfig):
            GlobalRateConfig.from_mapping({"dollars_per_hour": 0})
        with pytest.raises(InvalidRateConfig):
            GlobalRateConfig.from_mapping({"dollars_per_hour": "0"})

    def test_missing_and_empty_use_defaults(self):
        """Missing keys and empty strings take the defaults."""
        rates = GlobalRateConfig.from_mapping({"dollars_per_hour": "", "price_random_max_percent": None})
        assert rates == GlobalRateConfig()


class TestFlagParsing:
    """Test boolean flags read from JSON."""

    def test_string_flags(self):
        """String flags are parsed, not truth-tested."""
        project = Project.from_dict({"id": "p1", "shipped": "false", "viral": "True"})
        assert project.shipped is False
        assert project.viral is True

        item = ShopItem.from_dict({"id": "i1", "use_randomized_pricing": "false", "active": "0"})
        assert item.use_randomized_pricing is False
        assert item.active is False

    def test_defaults(self):
        """Missing flags take their defaults."""
        item = ShopItem.from_dict({"id": "i1"})
        assert item.use_randomized_pricing is True
        assert item.active is True
        assert Project.from_dict({"id": "p1"}).shipped is False

    def test_garbage_rejected(self):
        """Unrecognized flag values are rejected."""
        with pytest.raises(ValueError):
            Project.from_dict({"id": "p1", "shipped": "maybe"})
