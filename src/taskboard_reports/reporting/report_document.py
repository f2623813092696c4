"""Render a Report as the JSON-shaped document and as plain text."""

from __future__ import annotations

from datetime import datetime

from taskboard_reports.reporting.entities import EFFECTIVE_STATUSES, MemberRef
from taskboard_reports.reporting.overdue_analyzer import (
    DepartmentOverdueGroup,
    OverdueRecord,
    ProjectOverdue,
)
from taskboard_reports.reporting.report_assembler import Milestone, Report
from taskboard_reports.reporting.team_performance import PersonStats


def _iso(val: datetime | None) -> str | None:
    return val.isoformat() if val is not None else None


def _member(m: MemberRef) -> dict:
    return {"id": m.id, "name": m.name, "role": m.role}


def _overdue_task(r: OverdueRecord, with_members: bool) -> dict:
    out = {
        "taskId": r.task_id,
        "taskName": r.task_name,
        "deadline": _iso(r.deadline),
    }
    if with_members:
        out["assignedMembers"] = [_member(m) for m in r.assigned_members]
    out["daysPastDue"] = r.days_past_due
    return out


def _department_group(g: DepartmentOverdueGroup) -> dict:
    return {
        "departmentId": g.department_id,
        "departmentName": g.department_name,
        "overdueTaskCount": g.overdue_task_count,
        "overdueTasks": [_overdue_task(r, with_members=False) for r in g.overdue_tasks],
    }


def _milestone(m: Milestone) -> dict:
    return {
        "projectId": m.project_id,
        "projectName": m.project_name,
        "milestone": m.milestone,
        "status": m.status,
        "deadline": _iso(m.deadline),
        "overdueResponsibility": [_department_group(g) for g in m.overdue_responsibility],
        "hasOverdueFromOtherDepts": m.has_overdue_from_other_depts,
    }


def _project_overdue(p: ProjectOverdue) -> dict:
    return {
        "projectId": p.project_id,
        "projectName": p.project_name,
        "overdueTasks": [_overdue_task(r, with_members=True) for r in p.overdue_tasks],
        "overdueCount": p.overdue_count,
    }


def _person(p: PersonStats) -> dict:
    return {
        "userId": p.user_id,
        "name": p.name,
        "role": p.role,
        "tasksInvolved": p.tasks_involved,
        "todoTasks": p.todo_tasks,
        "inProgressTasks": p.in_progress_tasks,
        "completedTasks": p.completed_tasks,
        "overdueTasks": p.overdue_tasks,
        "overdueRate": p.overdue_rate,
    }


def serialize_report(report: Report) -> dict:
    """Convert a Report into the camelCase document served to clients."""
    return {
        "avgTaskCompletionDays": report.avg_task_completion_days,
        "avgProjectCompletionDays": report.avg_project_completion_days,
        "productivityTrend": report.productivity_trend,
        "completionRateThisMonth": report.completion_rate_this_month,
        "completionRateLastMonth": report.completion_rate_last_month,
        "projectScope": {
            "totalProjects": report.total_projects,
            "projectStatusCounts": dict(report.project_status_counts),
            "projectStatusPercentages": dict(report.project_status_percentages),
            "milestones": [_milestone(m) for m in report.milestones],
        },
        "taskScope": {
            "totalTasks": report.total_tasks,
            "taskStatusCounts": dict(report.task_status_counts),
            "taskStatusPercentages": dict(report.task_status_percentages),
            "overdueCount": report.overdue_count,
            "overduePercentage": report.overdue_percentage,
            "overdueTasksByProject": [_project_overdue(p) for p in report.overdue_tasks_by_project],
        },
        "teamPerformance": {
            "teamSize": report.team_size,
            "departmentTeam": [_person(p) for p in report.team],
        },
        "scopeInfo": {
            "scopeId": report.scope.scope_id,
            "scopeName": report.scope_name,
            "scopeType": report.scope.kind,
        },
        "departmentMetrics": [
            {
                "departmentId": d.department_id,
                "departmentName": d.department_name,
                "teamSize": d.team_size,
                "totalProjects": d.total_projects,
                "totalTasks": d.total_tasks,
                "completedTasks": d.completed_tasks,
                "overdueTasks": d.overdue_tasks,
                "projectStatusCounts": dict(d.project_status_counts),
                "projectStatusPercentages": dict(d.project_status_percentages),
                "taskStatusCounts": dict(d.task_status_counts),
                "taskStatusPercentages": dict(d.task_status_percentages),
            }
            for d in report.department_metrics
        ],
        "projectBreakdown": [
            {
                "projectId": p.project_id,
                "projectName": p.project_name,
                "departments": list(p.departments),
                "totalTasks": p.total_tasks,
                "completedTasks": p.completed_tasks,
                "overdueTasks": p.overdue_tasks,
                "completionRate": p.completion_rate,
                "overdueRate": p.overdue_rate,
            }
            for p in report.project_breakdown
        ],
    }


def format_report_summary(report: Report) -> str:
    """Generate a multi-section text rendering of a report.

    Args:
        report: Assembled report.

    Returns:
        Formatted report string.
    """
    sections: list[str] = []
    sections.append(f"Management Report: {report.scope_name}")
    sections.append("=" * 40)

    lines = ["", "Performance", "-" * 38]
    lines.append(f"  Avg task completion: {report.avg_task_completion_days:.1f} days")
    lines.append(f"  Avg project completion: {report.avg_project_completion_days:.1f} days")
    lines.append(
        f"  Completion rate: {report.completion_rate_this_month:.1f}% "
        f"(baseline {report.completion_rate_last_month:.1f}%)"
    )
    lines.append(f"  Trend: {report.productivity_trend}")
    sections.append("\n".join(lines))

    lines = ["", f"Projects ({report.total_projects})", "-" * 38]
    for status in EFFECTIVE_STATUSES:
        lines.append(
            f"  {status}: {report.project_status_counts[status]}"
            f" ({report.project_status_percentages[status]:.1f}%)"
        )
    for m in report.milestones:
        flag = " [other departments overdue]" if m.has_overdue_from_other_depts else ""
        lines.append(f"  - {m.project_name}: {m.status}{flag}")
    sections.append("\n".join(lines))

    lines = ["", f"Tasks ({report.total_tasks})", "-" * 38]
    for status in EFFECTIVE_STATUSES:
        lines.append(
            f"  {status}: {report.task_status_counts[status]}"
            f" ({report.task_status_percentages[status]:.1f}%)"
        )
    if report.overdue_count:
        lines.append(f"  Overdue: {report.overdue_count} ({report.overdue_percentage:.1f}%)")
        for p in report.overdue_tasks_by_project:
            worst = max(r.days_past_due for r in p.overdue_tasks)
            lines.append(f"    {p.project_name}: {p.overdue_count} overdue, worst {worst}d late")
    sections.append("\n".join(lines))

    lines = ["", f"Team ({report.team_size})", "-" * 38]
    if not report.team:
        lines.append("  No team members in scope.")
    for p in report.team:
        lines.append(
            f"  {p.name}: {p.completed_tasks}/{p.tasks_involved} done, "
            f"{p.overdue_tasks} overdue ({p.overdue_rate:.1f}%)"
        )
    sections.append("\n".join(lines))

    if report.department_metrics:
        lines = ["", "Departments", "-" * 38]
        for d in report.department_metrics:
            lines.append(
                f"  {d.department_name}: {d.total_projects} projects, "
                f"{d.completed_tasks}/{d.total_tasks} tasks done, {d.overdue_tasks} overdue"
            )
        sections.append("\n".join(lines))

    return "\n".join(sections)
