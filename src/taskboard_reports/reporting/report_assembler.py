"""Assemble one management report for a department or the whole organization.

The assembler narrows the entity snapshot to the requested scope, runs each
calculator once and collects the results into a Report. It never reads the
clock and never raises on sparse data: an empty or unknown scope yields a
report full of zeros and empty lists. Only a missing or malformed scope
identifier is an error, and that is raised by ``parse_scope`` before any
computation starts.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from taskboard_reports.reporting import (
    organization_breakdown,
    overdue_analyzer,
    productivity_trend,
    team_performance,
    time_metrics,
)
from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    EntitySnapshot,
    build_snapshot,
    group_tasks_by_project,
    percentage,
    resolve_scope_name,
)
from taskboard_reports.reporting.organization_breakdown import DepartmentMetrics, ProjectBreakdown
from taskboard_reports.reporting.overdue_analyzer import DepartmentOverdueGroup, ProjectOverdue
from taskboard_reports.reporting.status_classifier import (
    classify,
    count_statuses,
    status_percentages,
    task_effective_status,
)
from taskboard_reports.reporting.team_performance import PersonStats

logger = logging.getLogger(__name__)

SCOPE_DEPARTMENT = "department"
SCOPE_ORGANIZATION = "organization"

DEFAULT_ORGANIZATION_NAME = "Company-wide"
MILESTONE_LABEL = "Project Status"

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------


class ReportScopeError(ValueError):
    """The requested scope cannot be reported on."""


class MissingScopeError(ReportScopeError):
    pass


class InvalidScopeError(ReportScopeError):
    pass


@dataclass(frozen=True)
class ReportScope:
    kind: str
    scope_id: str | None = None

    @property
    def is_department(self) -> bool:
        return self.kind == SCOPE_DEPARTMENT


def is_valid_identifier(value: str) -> bool:
    """Accept canonical hyphenated UUIDs and 24-hex document ids."""
    if _OBJECT_ID.match(value):
        return True
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return False
    return str(parsed) == value.lower()


def parse_scope(kind: str, scope_id: str | None = None) -> ReportScope:
    """Validate a scope request.

    Raises:
        MissingScopeError: department scope without an identifier.
        InvalidScopeError: unknown scope kind or malformed identifier.
    """
    if kind == SCOPE_ORGANIZATION:
        return ReportScope(kind=SCOPE_ORGANIZATION)
    if kind != SCOPE_DEPARTMENT:
        raise InvalidScopeError(f"Unknown report scope: {kind!r}")
    if scope_id is None or not str(scope_id).strip():
        raise MissingScopeError("Department ID required")
    scope_id = str(scope_id).strip()
    if not is_valid_identifier(scope_id):
        raise InvalidScopeError("Invalid department ID")
    return ReportScope(kind=SCOPE_DEPARTMENT, scope_id=scope_id)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Milestone:
    """Status and overdue responsibility for one project."""

    project_id: str
    project_name: str
    status: str
    deadline: datetime | None
    overdue_responsibility: list[DepartmentOverdueGroup]
    has_overdue_from_other_depts: bool
    milestone: str = MILESTONE_LABEL


@dataclass
class Report:
    """Complete management report for one scope."""

    scope: ReportScope
    scope_name: str

    avg_task_completion_days: float
    avg_project_completion_days: float
    productivity_trend: str
    completion_rate_this_month: float
    completion_rate_last_month: float

    total_projects: int
    project_status_counts: dict[str, int]
    project_status_percentages: dict[str, float]
    milestones: list[Milestone]

    total_tasks: int
    task_status_counts: dict[str, int]
    task_status_percentages: dict[str, float]
    overdue_count: int
    overdue_percentage: float
    overdue_tasks_by_project: list[ProjectOverdue]

    team_size: int
    team: list[PersonStats]

    department_metrics: list[DepartmentMetrics] = field(default_factory=list)
    project_breakdown: list[ProjectBreakdown] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def _narrow(scope: ReportScope, snapshot: EntitySnapshot):
    """Return (projects, tasks, users) inside the scope."""
    if scope.is_department:
        projects = [
            p for p in snapshot.projects
            if any(d.id == scope.scope_id for d in p.departments)
        ]
        users = [
            u for u in snapshot.users
            if u.department is not None and u.department.id == scope.scope_id
        ]
    else:
        projects = list(snapshot.projects)
        users = list(snapshot.users)
    project_ids = {p.id for p in projects}
    tasks = [t for t in snapshot.tasks if t.project_id in project_ids]
    return projects, tasks, users


def assemble(
    scope: ReportScope,
    projects: Iterable = (),
    tasks: Iterable = (),
    users: Iterable = (),
    departments: Iterable = (),
    now: datetime | None = None,
    organization_name: str = DEFAULT_ORGANIZATION_NAME,
) -> Report:
    """Compute the full report for ``scope`` as of ``now``.

    Args:
        scope: Result of ``parse_scope``.
        projects: Project records (raw dicts or normalized entities).
        tasks: Task records.
        users: User records.
        departments: Department records, used to resolve names.
        now: Reference instant for every relative-date computation.
        organization_name: Display name for organization-scope reports.

    Returns:
        Report.
    """
    if now is None:
        raise TypeError("assemble() requires an explicit 'now'")

    snapshot = build_snapshot(projects, tasks, users, departments)
    scope_projects, scope_tasks, scope_users = _narrow(scope, snapshot)
    tasks_by_project = group_tasks_by_project(scope_tasks)
    member_ids = {u.id for u in scope_users} if scope.is_department else None

    if scope.is_department:
        scope_name = resolve_scope_name(snapshot.departments_by_id.get(scope.scope_id))
    else:
        scope_name = organization_name

    # Status tables
    total_projects = len(scope_projects)
    project_counts = count_statuses(
        (classify(tasks_by_project.get(p.id, []), p.deadline, now) for p in scope_projects),
        total_projects,
    )
    total_tasks = len(scope_tasks)
    task_counts = count_statuses(
        (task_effective_status(t, now) for t in scope_tasks), total_tasks
    )

    # Overdue analysis
    overdue_by_project = overdue_analyzer.group_overdue_by_project(
        scope_projects, tasks_by_project, now, member_ids
    )
    overdue_count = sum(p.overdue_count for p in overdue_by_project)

    milestones: list[Milestone] = []
    for project in scope_projects:
        project_tasks = tasks_by_project.get(project.id, [])
        groups = overdue_analyzer.attribute_by_department(project_tasks, now)
        if scope.is_department:
            home = {scope.scope_id}
        else:
            home = {d.id for d in project.departments}
        milestones.append(Milestone(
            project_id=project.id,
            project_name=project.name,
            status=classify(project_tasks, project.deadline, now),
            deadline=project.deadline,
            overdue_responsibility=groups,
            has_overdue_from_other_depts=overdue_analyzer.has_overdue_from_other_departments(
                groups, home
            ),
        ))

    # People
    team = team_performance.aggregate(scope_users, scope_tasks, now)

    # Time metrics
    if member_ids is not None:
        measured_tasks = [
            t for t in scope_tasks
            if t.status == STATUS_DONE and any(m.id in member_ids for m in t.assignees)
        ]
    else:
        measured_tasks = scope_tasks
    avg_task_days = time_metrics.avg_task_completion_days(measured_tasks)
    avg_project_days = time_metrics.avg_project_completion_days(scope_projects, scope_tasks, now)

    # Trend
    current_rate = productivity_trend.completion_rate(scope_projects, tasks_by_project)
    baseline_rate = productivity_trend.baseline_completion_rate(
        scope_projects, tasks_by_project, now
    )

    if scope.is_department:
        dept_metrics: list[DepartmentMetrics] = []
    else:
        dept_metrics = organization_breakdown.department_metrics(
            snapshot.departments, scope_projects, tasks_by_project, scope_users, now
        )

    logger.info(
        "Assembled %s report for %s: %d projects, %d tasks, %d people, %d overdue",
        scope.kind, scope.scope_id or scope_name,
        total_projects, total_tasks, len(scope_users), overdue_count,
    )

    return Report(
        scope=scope,
        scope_name=scope_name,
        avg_task_completion_days=round(avg_task_days, 1),
        avg_project_completion_days=round(avg_project_days, 1),
        productivity_trend=productivity_trend.trend(current_rate, baseline_rate),
        completion_rate_this_month=current_rate,
        completion_rate_last_month=baseline_rate,
        total_projects=total_projects,
        project_status_counts=project_counts,
        project_status_percentages=status_percentages(project_counts, total_projects),
        milestones=milestones,
        total_tasks=total_tasks,
        task_status_counts=task_counts,
        task_status_percentages=status_percentages(task_counts, total_tasks),
        overdue_count=overdue_count,
        overdue_percentage=percentage(overdue_count, total_tasks),
        overdue_tasks_by_project=overdue_by_project,
        team_size=len(scope_users),
        team=team,
        department_metrics=dept_metrics,
        project_breakdown=organization_breakdown.project_breakdown(
            scope_projects, tasks_by_project, now
        ),
    )
