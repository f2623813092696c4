"""Effective status classification for projects and tasks.

A project's status is derived from its tasks and its own deadline; a task's
effective status is its stored status, unless it has slipped past its
deadline. Deadlines are compared at day granularity: something due earlier
today is not overdue until the calendar day has passed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from taskboard_reports.reporting.entities import (
    EFFECTIVE_STATUSES,
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_OVERDUE,
    STATUS_TODO,
    Task,
    align_to,
    percentage,
)


class ReportInvariantError(RuntimeError):
    """A status table failed to add up to its total."""


def is_past_day(now: datetime, deadline: datetime | None) -> bool:
    """True when the calendar day of ``now`` is strictly after the deadline's day."""
    if deadline is None:
        return False
    return now.date() > align_to(deadline, now).date()


def classify(tasks: Sequence[Task], deadline: datetime | None, now: datetime) -> str:
    """Derive a project status from its tasks and deadline.

    Precedence: no tasks → To Do; past deadline with unfinished work →
    Overdue; all done → Done; anything in progress → In Progress; all to do →
    To Do; a Done/To Do mix with nothing in progress → In Progress.
    """
    if not tasks:
        return STATUS_TODO

    all_done = all(t.status == STATUS_DONE for t in tasks)
    all_todo = all(t.status == STATUS_TODO for t in tasks)
    any_in_progress = any(t.status == STATUS_IN_PROGRESS for t in tasks)

    if is_past_day(now, deadline) and not all_done:
        return STATUS_OVERDUE
    if all_done:
        return STATUS_DONE
    if any_in_progress:
        return STATUS_IN_PROGRESS
    if all_todo:
        return STATUS_TODO
    return STATUS_IN_PROGRESS


def task_effective_status(task: Task, now: datetime) -> str:
    """The task's own status, or Overdue when it is unfinished past its deadline."""
    if task.status != STATUS_DONE and is_past_day(now, task.deadline):
        return STATUS_OVERDUE
    return task.status


def is_completed(tasks: Sequence[Task]) -> bool:
    """A project is complete when it has tasks and every one is Done."""
    return bool(tasks) and all(t.status == STATUS_DONE for t in tasks)


def empty_status_counts() -> dict[str, int]:
    return {status: 0 for status in EFFECTIVE_STATUSES}


def count_statuses(statuses: Iterable[str], total: int) -> dict[str, int]:
    """Tally statuses into a four-key table and check it sums to ``total``."""
    counts = empty_status_counts()
    for status in statuses:
        counts[status] += 1
    if sum(counts.values()) != total:
        raise ReportInvariantError(
            f"status counts {counts} do not sum to total {total}"
        )
    return counts


def status_percentages(counts: dict[str, int], total: int) -> dict[str, float]:
    return {status: percentage(counts[status], total) for status in EFFECTIVE_STATUSES}
