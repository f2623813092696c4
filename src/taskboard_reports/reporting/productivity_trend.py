"""Project completion rates and the productivity trend signal."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    Project,
    Task,
    align_to,
    percentage,
)
from taskboard_reports.reporting.status_classifier import is_completed

TREND_IMPROVING = "Improving"
TREND_STABLE = "Stable"
TREND_DECLINING = "Declining"

# Percentage points the current rate must move past the baseline before the
# trend leaves Stable.
TREND_BAND = 5


def trend(current_rate: float, baseline_rate: float) -> str:
    """Classify the change from ``baseline_rate`` to ``current_rate``."""
    if current_rate > baseline_rate + TREND_BAND:
        return TREND_IMPROVING
    if current_rate < baseline_rate - TREND_BAND:
        return TREND_DECLINING
    return TREND_STABLE


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def completion_rate(
    projects: Sequence[Project], tasks_by_project: dict[str, list[Task]]
) -> float:
    """Share of projects (as a percentage) whose tasks are all Done."""
    completed = sum(1 for p in projects if is_completed(tasks_by_project.get(p.id, [])))
    return percentage(completed, len(projects))


def _completed_before(tasks: Sequence[Task], boundary: datetime) -> bool:
    if not tasks:
        return False
    for task in tasks:
        if task.status != STATUS_DONE or task.completed_at is None:
            return False
        if align_to(task.completed_at, boundary) >= boundary:
            return False
    return True


def baseline_completion_rate(
    projects: Sequence[Project],
    tasks_by_project: dict[str, list[Task]],
    now: datetime,
) -> float:
    """Completion rate as it stood at the start of the current month.

    Only projects created before the month began are counted. A project was
    complete at that point when all of its tasks are Done with a known
    completion timestamp earlier than the boundary. Task creation after the
    boundary is not reconstructed.
    """
    boundary = month_start(now)
    earlier = [
        p for p in projects
        if p.created_at is not None and align_to(p.created_at, boundary) < boundary
    ]
    completed = sum(
        1 for p in earlier if _completed_before(tasks_by_project.get(p.id, []), boundary)
    )
    return percentage(completed, len(earlier))
