"""Average completion durations for tasks and projects.

Durations are whole days (truncated toward zero). Anything that cannot be
measured - missing or unparseable timestamps, empty sets, non-finite
arithmetic - resolves to 0 rather than NaN.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from datetime import datetime

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    Project,
    Task,
    align_to,
    group_tasks_by_project,
)
from taskboard_reports.reporting.status_classifier import is_completed

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, truncated toward zero."""
    seconds = (align_to(end, start) - start).total_seconds()
    return int(seconds / _SECONDS_PER_DAY)


def _finite_mean(values: Sequence[float]) -> float:
    if not values:
        return 0
    mean = sum(values) / len(values)
    if not math.isfinite(mean):
        return 0
    return mean


def avg_task_completion_days(tasks: Iterable[Task]) -> float:
    """Mean days from creation to completion over measurable Done tasks.

    Tasks missing either timestamp are left out of the average entirely.
    """
    durations = [
        days_between(t.created_at, t.completed_at)
        for t in tasks
        if t.status == STATUS_DONE and t.created_at is not None and t.completed_at is not None
    ]
    return _finite_mean(durations)


def avg_project_completion_days(
    projects: Iterable[Project], tasks: Iterable[Task], now: datetime
) -> float:
    """Mean days from project creation to its last task completion.

    Only projects whose tasks are all Done are measured. When none of a
    completed project's tasks carries a completion timestamp, ``now`` stands
    in for the end. A completed project with an unparseable creation date
    makes the whole average 0.
    """
    tasks_by_project = group_tasks_by_project(tasks)
    durations: list[int] = []
    for project in projects:
        project_tasks = tasks_by_project.get(project.id, [])
        if not is_completed(project_tasks):
            continue
        if project.created_at is None:
            logger.debug("Project %s has no usable createdAt; project average is 0", project.id)
            return 0
        finished = [t.completed_at for t in project_tasks if t.completed_at is not None]
        if not finished:
            durations.append(days_between(project.created_at, now))
            continue
        end = max(align_to(f, project.created_at) for f in finished)
        durations.append(max(days_between(project.created_at, end), 0))
    return _finite_mean(durations)
