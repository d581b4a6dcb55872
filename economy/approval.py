"""
Approved hours aggregation.

Turns a user's projects into one capped "approved hours" figure:

1. Rank projects by effective tracked hours, keep the top 4.
2. Each kept project contributes its approved hours, capped at 15.
3. The sum is capped at 60.

Approved hours per project come from the review subsystem, either as the
``approved_hours`` annotation on each project or through a lookup callable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import math

from economy.errors import ApprovedHoursLookupFailure, EconomyError
from economy.hours import resolve_project_hours
from economy.metrics import EngineMetrics
from economy.models import Project

logger = logging.getLogger("economy.approval")

TOP_PROJECT_COUNT = 4
PROJECT_HOURS_CAP = 15.0
TOTAL_HOURS_CAP = 60.0

ApprovedHoursSource = Callable[[Project], float]


@dataclass
class AggregationBatch:
    """Per-user outcome of a batch aggregation."""
    hours: Dict[str, float] = field(default_factory=dict)
    errors: Dict[str, Exception] = field(default_factory=dict)

    def get(self, user_id: str) -> float:
        """Approved hours for a user; failed or unknown users read as 0."""
        return self.hours.get(user_id, 0.0)

    @property
    def failed_users(self) -> List[str]:
        return list(self.errors)


class ApprovedHoursAggregator:
    """
    Computes capped approved hours for one user's projects.

    Example:
        aggregator = ApprovedHoursAggregator()
        hours = aggregator.aggregate(projects)  # 0.0 .. 60.0
    """

    def __init__(
        self,
        approved_hours: Optional[ApprovedHoursSource] = None,
        top_n: int = TOP_PROJECT_COUNT,
        project_cap: float = PROJECT_HOURS_CAP,
        total_cap: float = TOTAL_HOURS_CAP,
    ):
        """
        Args:
            approved_hours: Lookup for a project's approved hours. When not
                given, each project's ``approved_hours`` annotation is used.
            top_n: Number of top projects (by effective hours) that count
            project_cap: Max contribution of a single project
            total_cap: Max total approved hours
        """
        self.approved_hours = approved_hours
        self.top_n = top_n
        self.project_cap = project_cap
        self.total_cap = total_cap

    def select_top_projects(self, projects: Iterable[Project]) -> List[Tuple[Project, float]]:
        """Top projects by effective hours, ties kept in input order."""
        ranked = [(project, resolve_project_hours(project)) for project in projects]
        # sorted() is stable, so equal hours keep their input order
        ranked = sorted(ranked, key=lambda pair: pair[1], reverse=True)
        return ranked[: self.top_n]

    def project_contribution(self, project: Project, approved: float) -> float:
        """Hours a single selected project adds to the user's total."""
        if project.viral is True and approved > 0:
            return min(approved, self.project_cap)
        elif project.shipped is True and approved > 0:
            return min(approved, self.project_cap)
        elif not project.shipped and not project.viral:
            if approved > 0:
                return min(approved, self.project_cap)
            return 0.0
        return 0.0

    def aggregate(self, projects: Iterable[Project], user_id: Optional[str] = None) -> float:
        """
        Capped approved hours for one user.

        Raises:
            ApprovedHoursLookupFailure: If approved hours for a selected
                project cannot be obtained
        """
        projects = list(projects)
        if user_id is None:
            user_id = projects[0].user_id if projects else ""

        total = 0.0
        for project, _ in self.select_top_projects(projects):
            approved = self._lookup(project, user_id)
            total += self.project_contribution(project, approved)

        return min(total, self.total_cap)

    def _lookup(self, project: Project, user_id: str) -> float:
        if self.approved_hours is not None:
            try:
                value = self.approved_hours(project)
            except Exception as exc:
                raise ApprovedHoursLookupFailure(user_id, project.id, str(exc)) from exc
        else:
            value = project.approved_hours

        if value is None:
            return 0.0
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ApprovedHoursLookupFailure(
                user_id, project.id, f"approved hours is not a finite number: {value!r}"
            )
        return float(value)


def aggregate_approved_hours(
    user_projects: Iterable[Project],
    approved_hours: Optional[ApprovedHoursSource] = None,
) -> float:
    """
    Capped approved hours for one user's projects.

    Any failure, such as a lookup error or malformed project data, yields 0
    instead of raising.
    """
    aggregator = ApprovedHoursAggregator(approved_hours=approved_hours)
    try:
        return aggregator.aggregate(list(user_projects))
    except Exception as exc:
        logger.warning(f"Defaulting approved hours to 0: {exc}")
        return 0.0


def aggregate_for_users(
    projects_by_user: Mapping[str, Iterable[Project]],
    approved_hours: Optional[ApprovedHoursSource] = None,
    metrics: Optional[EngineMetrics] = None,
) -> AggregationBatch:
    """
    Aggregate approved hours for many users.

    One user's failure is recorded against that user only and their total
    reads as 0; every other user is still computed.
    """
    aggregator = ApprovedHoursAggregator(approved_hours=approved_hours)
    batch = AggregationBatch()

    for user_id, projects in projects_by_user.items():
        try:
            hours = aggregator.aggregate(projects, user_id=user_id)
        except Exception as exc:
            if not isinstance(exc, EconomyError):
                failure = ApprovedHoursLookupFailure(user_id, reason=f"{type(exc).__name__}: {exc}")
                failure.__cause__ = exc
                exc = failure
            logger.error(f"Error calculating approved hours for user {user_id}: {exc}")
            batch.hours[user_id] = 0.0
            batch.errors[user_id] = exc
            if metrics:
                metrics.record_aggregation_failure(user_id, exc)
            continue

        batch.hours[user_id] = hours
        if metrics:
            metrics.record_aggregation(user_id, hours)

    return batch
