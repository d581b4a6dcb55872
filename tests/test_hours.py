"""Tests for effective hour resolution."""

import math

from economy.hours import (
    apply_link_overrides,
    raw_project_hours,
    resolve_effective_hours,
    resolve_project_hours,
)
from economy.models import Project, TimeLink


def _link(link_id="l1", raw=0.0, override=None):
    return TimeLink(id=link_id, project_id="p1", raw_hours=raw, hours_override=override)


class TestLinkResolution:
    """Test single-link effective hours."""

    def test_raw_hours_without_override(self):
        """Raw hours are used when no override is set."""
        assert resolve_effective_hours(_link(raw=12.5)) == 12.5

    def test_override_wins(self):
        """A set override replaces raw hours."""
        assert resolve_effective_hours(_link(raw=12.5, override=3.0)) == 3.0

    def test_zero_override_is_respected(self):
        """An override of zero is still an override."""
        assert resolve_effective_hours(_link(raw=40.0, override=0)) == 0.0

    def test_missing_raw_hours(self):
        """Missing or non-numeric raw hours degrade to 0."""
        assert resolve_effective_hours(_link(raw=None)) == 0.0
        assert resolve_effective_hours(_link(raw="7")) == 0.0
        assert resolve_effective_hours(_link(raw=True)) == 0.0

    def test_malformed_values_never_negative(self):
        """Negative and non-finite values degrade to 0."""
        assert resolve_effective_hours(_link(raw=-5.0)) == 0.0
        assert resolve_effective_hours(_link(raw=math.nan)) == 0.0
        assert resolve_effective_hours(_link(raw=10.0, override=math.inf)) == 0.0
        assert resolve_effective_hours(_link(raw=10.0, override=-1)) == 0.0


class TestProjectResolution:
    """Test project totals."""

    def test_sum_of_links(self):
        """Project hours are the sum of effective link hours."""
        project = Project(
            id="p1",
            user_id="u1",
            links=[_link("a", raw=10.0), _link("b", raw=5.0, override=2.0), _link("c", raw=None)],
        )
        assert resolve_project_hours(project) == 12.0

    def test_no_links(self):
        """A project without links has zero hours."""
        assert resolve_project_hours(Project(id="p1", user_id="u1")) == 0.0

    def test_raw_hours_ignore_overrides(self):
        """Raw project hours only count synced hours."""
        project = Project(
            id="p1",
            user_id="u1",
            links=[_link("a", raw=10.0, override=1.0), _link("b", raw=5.0)],
        )
        assert raw_project_hours(project) == 15.0


class TestLinkOverrides:
    """Test applying override updates."""

    def test_set_and_clear(self):
        """Numbers set an override, None and empty string clear it."""
        links = [_link("a", raw=10.0), _link("b", raw=5.0, override=1.0), _link("c", raw=3.0, override=2.0)]

        updated = apply_link_overrides(links, {"a": 4, "b": None, "c": ""})

        assert [l.hours_override for l in updated] == [4.0, None, None]

    def test_inputs_not_mutated(self):
        """Original links keep their values."""
        links = [_link("a", raw=10.0)]
        apply_link_overrides(links, {"a": 4})
        assert links[0].hours_override is None

    def test_invalid_and_unknown_ignored(self):
        """Non-numeric values and unknown ids leave links unchanged."""
        links = [_link("a", raw=10.0, override=2.0)]

        updated = apply_link_overrides(links, {"a": "lots", "zzz": 3})

        assert updated[0].hours_override == 2.0
        assert len(updated) == 1

    def test_out_of_range_ignored(self):
        """Negative and infinite overrides leave links unchanged."""
        links = [_link("a", raw=10.0, override=2.0), _link("b", raw=5.0)]

        updated = apply_link_overrides(links, {"a": -3, "b": math.inf})

        assert updated[0].hours_override == 2.0
        assert updated[1].hours_override is None
        assert resolve_effective_hours(updated[1]) == 5.0
