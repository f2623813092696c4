"""Company-wide breakdowns: per-department metrics and per-project volume.

Used by organization-scope reports. A department's projects are those that
list it among their owning departments; its tasks are every task of those
projects, whoever they are assigned to.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    Department,
    Project,
    Task,
    User,
    percentage,
    resolve_department_name,
)
from taskboard_reports.reporting.overdue_analyzer import is_overdue
from taskboard_reports.reporting.status_classifier import (
    classify,
    count_statuses,
    status_percentages,
    task_effective_status,
)


@dataclass
class DepartmentMetrics:
    """Status tables for one department's projects and tasks."""

    department_id: str
    department_name: str
    team_size: int
    total_projects: int
    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    project_status_counts: dict[str, int]
    project_status_percentages: dict[str, float]
    task_status_counts: dict[str, int]
    task_status_percentages: dict[str, float]


@dataclass
class ProjectBreakdown:
    project_id: str
    project_name: str
    departments: list[str]
    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    completion_rate: float
    overdue_rate: float


def department_metrics(
    departments: Sequence[Department],
    projects: Sequence[Project],
    tasks_by_project: dict[str, list[Task]],
    users: Sequence[User],
    now: datetime,
) -> list[DepartmentMetrics]:
    """Project and task status tables for every department, in input order."""
    results: list[DepartmentMetrics] = []
    for dept in departments:
        dept_projects = [p for p in projects if any(d.id == dept.id for d in p.departments)]
        dept_tasks = [t for p in dept_projects for t in tasks_by_project.get(p.id, [])]
        team_size = sum(1 for u in users if u.department is not None and u.department.id == dept.id)

        project_counts = count_statuses(
            (classify(tasks_by_project.get(p.id, []), p.deadline, now) for p in dept_projects),
            len(dept_projects),
        )
        task_counts = count_statuses(
            (task_effective_status(t, now) for t in dept_tasks), len(dept_tasks)
        )
        results.append(DepartmentMetrics(
            department_id=dept.id,
            department_name=dept.name,
            team_size=team_size,
            total_projects=len(dept_projects),
            total_tasks=len(dept_tasks),
            completed_tasks=sum(1 for t in dept_tasks if t.status == STATUS_DONE),
            overdue_tasks=sum(1 for t in dept_tasks if is_overdue(t, now)),
            project_status_counts=project_counts,
            project_status_percentages=status_percentages(project_counts, len(dept_projects)),
            task_status_counts=task_counts,
            task_status_percentages=status_percentages(task_counts, len(dept_tasks)),
        ))
    return results


def project_breakdown(
    projects: Sequence[Project],
    tasks_by_project: dict[str, list[Task]],
    now: datetime,
) -> list[ProjectBreakdown]:
    """Per-project completion and overdue rates, busiest projects first.

    Projects without tasks are left out. Ties keep input order.
    """
    rows: list[ProjectBreakdown] = []
    for project in projects:
        project_tasks = tasks_by_project.get(project.id, [])
        if not project_tasks:
            continue
        total = len(project_tasks)
        completed = sum(1 for t in project_tasks if t.status == STATUS_DONE)
        overdue = sum(1 for t in project_tasks if is_overdue(t, now))
        names = [resolve_department_name(d) for d in project.departments] or [
            resolve_department_name(None)
        ]
        rows.append(ProjectBreakdown(
            project_id=project.id,
            project_name=project.name,
            departments=names,
            total_tasks=total,
            completed_tasks=completed,
            overdue_tasks=overdue,
            completion_rate=percentage(completed, total),
            overdue_rate=percentage(overdue, total),
        ))
    rows.sort(key=lambda r: r.total_tasks, reverse=True)
    return rows
