"""
Reviewer queue.

Lists projects awaiting review with their owner's approved hours, oldest
latest review first. Projects that have never been reviewed go last.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Mapping, Optional

from economy.approval import ApprovedHoursSource, aggregate_for_users
from economy.hours import raw_project_hours
from economy.metrics import EngineMetrics
from economy.models import Project


@dataclass
class ReviewEntry:
    """A project currently in review."""
    project: Project
    latest_review_at: Optional[datetime] = None


@dataclass
class ReviewQueueItem:
    """A queue row as shown to reviewers."""
    project: Project
    raw_hours: float
    owner_approved_hours: float
    latest_review_at: Optional[datetime] = None


def _sort_key(item: ReviewQueueItem) -> tuple:
    reviewed_at = item.latest_review_at
    if reviewed_at is None:
        return (1, 0.0)
    if reviewed_at.tzinfo is None:
        reviewed_at = reviewed_at.replace(tzinfo=timezone.utc)
    return (0, reviewed_at.timestamp())


def build_review_queue(
    entries: Iterable[ReviewEntry],
    projects_by_user: Mapping[str, Iterable[Project]],
    approved_hours: Optional[ApprovedHoursSource] = None,
    metrics: Optional[EngineMetrics] = None,
) -> List[ReviewQueueItem]:
    """
    Build the reviewer queue.

    Args:
        entries: Projects in review with their latest review time
        projects_by_user: All projects of each owner, used for approved hours
        approved_hours: Optional approved-hours lookup
        metrics: Optional collector for aggregation outcomes

    Returns:
        Queue items, oldest latest review first
    """
    entries = list(entries)
    if not entries:
        return []

    owners = list(dict.fromkeys(entry.project.user_id for entry in entries))
    batch = aggregate_for_users(
        {owner: list(projects_by_user.get(owner, [])) for owner in owners},
        approved_hours=approved_hours,
        metrics=metrics,
    )

    queue = [
        ReviewQueueItem(
            project=entry.project,
            raw_hours=raw_project_hours(entry.project),
            owner_approved_hours=batch.get(entry.project.user_id),
            latest_review_at=entry.latest_review_at,
        )
        for entry in entries
    ]
    queue.sort(key=_sort_key)
    return queue
