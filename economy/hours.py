"""
Effective hour resolution for tracked-time links and projects.

A link's effective hours are its override when one is set (zero included),
otherwise its raw synced hours. Malformed values degrade to 0 so project
sums always stay comparable.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, List, Mapping
import logging
import math

from economy.models import Project, TimeLink

logger = logging.getLogger("economy.hours")


def _hours_value(value: Any) -> float:
    """Coerce an hour figure to a non-negative finite float, else 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


def resolve_effective_hours(link: TimeLink) -> float:
    """Return the override when present, otherwise the raw hours."""
    override = getattr(link, "hours_override", None)
    if override is not None:
        return _hours_value(override)
    return _hours_value(getattr(link, "raw_hours", None))


def resolve_project_hours(project: Project) -> float:
    """Sum of effective hours across all of a project's links."""
    return sum((resolve_effective_hours(link) for link in project.links), 0.0)


def raw_project_hours(project: Project) -> float:
    """Sum of synced raw hours, ignoring any overrides."""
    return sum((_hours_value(link.raw_hours) for link in project.links), 0.0)


def apply_link_overrides(
    links: Iterable[TimeLink],
    overrides: Mapping[str, Any],
) -> List[TimeLink]:
    """
    Apply per-link hour overrides.

    Args:
        links: Links of one project
        overrides: link id -> hours (set), or None / "" (clear)

    Returns:
        New list of links; the inputs are left untouched. Non-numeric, negative
        and non-finite override values are skipped and unknown link ids are ignored.
    """
    updated = []
    for link in links:
        if link.id not in overrides:
            updated.append(link)
            continue

        value = overrides[link.id]
        if value is None or value == "":
            updated.append(replace(link, hours_override=None))
        elif (
            isinstance(value, (int, float))
            and not isinstance(value, bool)
            and math.isfinite(value)
            and value >= 0
        ):
            updated.append(replace(link, hours_override=float(value)))
        else:
            logger.warning(f"Ignoring invalid hours override for link {link.id}: {value!r}")
            updated.append(link)
    return updated
