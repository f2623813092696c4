"""Overdue task detection and responsibility attribution.

Finds unfinished tasks past their deadline and attributes each one to the
department(s) of its assignees, including departments outside the scope the
report was requested for. Deduplication is per department only: a task with
two assignees in Design counts once for Design, but a task shared between
Design and QA shows up in both groups.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    MemberRef,
    Project,
    Task,
    align_to,
)
from taskboard_reports.reporting.status_classifier import is_past_day

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class OverdueRecord:
    """One overdue task."""

    task_id: str
    task_name: str
    deadline: datetime
    days_past_due: int  # always >= 1
    assigned_members: list[MemberRef] = field(default_factory=list)


@dataclass
class DepartmentOverdueGroup:
    """Overdue tasks attributable to members of a single department."""

    department_id: str
    department_name: str
    overdue_tasks: list[OverdueRecord] = field(default_factory=list)

    @property
    def overdue_task_count(self) -> int:
        return len(self.overdue_tasks)


@dataclass
class ProjectOverdue:
    project_id: str
    project_name: str
    overdue_tasks: list[OverdueRecord]

    @property
    def overdue_count(self) -> int:
        return len(self.overdue_tasks)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def is_overdue(task: Task, now: datetime) -> bool:
    """Unfinished, has a deadline, and that deadline's day has passed."""
    if task.deadline is None or task.status == STATUS_DONE:
        return False
    return is_past_day(now, task.deadline)


def days_past_due(deadline: datetime, now: datetime) -> int:
    """Whole elapsed days since the deadline, floored, and at least 1.

    A task due late yesterday is overdue by day granularity but less than 24h
    late; it still reports 1.
    """
    elapsed = now - align_to(deadline, now)
    return max(int(elapsed.total_seconds() // 86400), 1)


def _record(task: Task, now: datetime, member_ids: Collection[str] | None) -> OverdueRecord:
    members = list(task.assignees)
    if member_ids is not None:
        members = [m for m in members if m.id in member_ids]
    return OverdueRecord(
        task_id=task.id,
        task_name=task.title,
        deadline=task.deadline,
        days_past_due=days_past_due(task.deadline, now),
        assigned_members=members,
    )


def find_overdue(
    tasks: Iterable[Task],
    now: datetime,
    scope_member_ids: Collection[str] | None = None,
) -> list[OverdueRecord]:
    """Build an OverdueRecord for every overdue task, in input order.

    Args:
        tasks: Candidate tasks.
        now: Reference instant.
        scope_member_ids: When given, each record's assignees are restricted
            to these user ids (members of the reporting scope).

    Returns:
        List of OverdueRecord; empty when nothing is overdue.
    """
    return [_record(t, now, scope_member_ids) for t in tasks if is_overdue(t, now)]


# ---------------------------------------------------------------------------
# Attribution
# ---------------------------------------------------------------------------


def attribute_by_department(
    overdue_tasks: Iterable[Task], now: datetime
) -> list[DepartmentOverdueGroup]:
    """Group overdue tasks by the departments of their assignees.

    Assignees without a resolved department are skipped. Groups come back in
    first-encounter order.
    """
    groups: dict[str, DepartmentOverdueGroup] = {}
    seen: dict[str, set[str]] = {}
    for task in overdue_tasks:
        if not is_overdue(task, now):
            continue
        for member in task.assignees:
            if member.department is None:
                continue
            dept_id = member.department.id
            if dept_id not in groups:
                groups[dept_id] = DepartmentOverdueGroup(
                    department_id=dept_id,
                    department_name=member.department.name,
                )
                seen[dept_id] = set()
            if task.id in seen[dept_id]:
                continue
            seen[dept_id].add(task.id)
            groups[dept_id].overdue_tasks.append(_record(task, now, None))
    return list(groups.values())


def has_overdue_from_other_departments(
    groups: Sequence[DepartmentOverdueGroup], home_department_ids: Collection[str]
) -> bool:
    """True when any attributed department lies outside ``home_department_ids``."""
    return any(g.department_id not in home_department_ids for g in groups)


def group_overdue_by_project(
    projects: Iterable[Project],
    tasks_by_project: dict[str, list[Task]],
    now: datetime,
    scope_member_ids: Collection[str] | None = None,
) -> list[ProjectOverdue]:
    """Per-project overdue lists, keeping only projects with something overdue."""
    result: list[ProjectOverdue] = []
    for project in projects:
        records = find_overdue(tasks_by_project.get(project.id, []), now, scope_member_ids)
        if records:
            result.append(ProjectOverdue(
                project_id=project.id,
                project_name=project.name,
                overdue_tasks=records,
            ))
    if result:
        logger.debug(
            "%d overdue tasks across %d projects",
            sum(p.overdue_count for p in result), len(result),
        )
    return result
