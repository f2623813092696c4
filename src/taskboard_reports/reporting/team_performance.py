"""Per-person task statistics for a reporting scope."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_TODO,
    Task,
    User,
    percentage,
)
from taskboard_reports.reporting.overdue_analyzer import is_overdue


@dataclass
class PersonStats:
    """Task breakdown for one team member."""

    user_id: str
    name: str
    role: str | None
    tasks_involved: int  # todo + in_progress + completed
    todo_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    overdue_tasks: int
    overdue_rate: float


def _person_stats(user: User, tasks: Sequence[Task], now: datetime) -> PersonStats:
    mine = [t for t in tasks if any(m.id == user.id for m in t.assignees)]
    todo = sum(1 for t in mine if t.status == STATUS_TODO)
    in_progress = sum(1 for t in mine if t.status == STATUS_IN_PROGRESS)
    completed = sum(1 for t in mine if t.status == STATUS_DONE)
    involved = todo + in_progress + completed
    overdue = sum(1 for t in mine if is_overdue(t, now))
    return PersonStats(
        user_id=user.id,
        name=user.name,
        role=user.role,
        tasks_involved=involved,
        todo_tasks=todo,
        in_progress_tasks=in_progress,
        completed_tasks=completed,
        overdue_tasks=overdue,
        overdue_rate=percentage(overdue, involved),
    )


def aggregate(users: Iterable[User], tasks: Sequence[Task], now: datetime) -> list[PersonStats]:
    """Count each user's in-scope tasks by status and compute their overdue rate.

    Args:
        users: People in scope, reported in this order.
        tasks: In-scope tasks; a user is involved in a task when assigned to it.
        now: Reference instant for the overdue check.

    Returns:
        One PersonStats per user. Users with no tasks get an all-zero row.
    """
    return [_person_stats(user, tasks, now) for user in users]
