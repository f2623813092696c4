"""Materialize read-only entity snapshots for report generation.

The loaders return plain record dicts in the same shape the reporting engine
accepts from any other source; the engine normalizes them itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskboard_reports.db.models import Department, Project, Task, User

logger = logging.getLogger(__name__)


@dataclass
class ReportSnapshot:
    projects: list[dict] = field(default_factory=list)
    tasks: list[dict] = field(default_factory=list)
    users: list[dict] = field(default_factory=list)
    departments: list[dict] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Row -> record
# ---------------------------------------------------------------------------


def department_record(dept: Department) -> dict:
    return {"_id": dept.id, "name": dept.name}


def user_record(user: User) -> dict:
    return {
        "_id": user.id,
        "name": user.name,
        "role": user.role,
        "department": user.department_id,
    }


def project_record(project: Project) -> dict:
    return {
        "_id": project.id,
        "name": project.name,
        "department": [department_record(d) for d in project.departments],
        "deadline": project.deadline,
        "createdAt": project.created_at,
        "teamMembers": [m.id for m in project.team_members],
        "createdBy": project.created_by_id,
    }


def task_record(task: Task) -> dict:
    return {
        "_id": task.id,
        "title": task.title,
        "status": task.status,
        "deadline": task.deadline,
        "createdAt": task.created_at,
        "completedAt": task.completed_at,
        "assignedProject": {"_id": task.assigned_project_id} if task.assigned_project_id else None,
        "assignedTeamMembers": [user_record(m) for m in task.assigned_team_members],
        "createdBy": task.created_by_id,
        "subtasks": task.subtasks or [],
    }


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


async def _load_departments(session: AsyncSession) -> list[dict]:
    result = await session.execute(select(Department).order_by(Department.name, Department.id))
    return [department_record(d) for d in result.scalars().all()]


async def _load_tasks(session: AsyncSession, project_ids: list[str]) -> list[dict]:
    if not project_ids:
        return []
    result = await session.execute(
        select(Task)
        .where(Task.assigned_project_id.in_(project_ids))
        .options(selectinload(Task.assigned_team_members))
        .order_by(Task.created_at, Task.id)
    )
    return [task_record(t) for t in result.scalars().all()]


def _project_query():
    return (
        select(Project)
        .options(selectinload(Project.departments), selectinload(Project.team_members))
        .order_by(Project.created_at, Project.id)
    )


async def load_department_snapshot(session: AsyncSession, department_id: str) -> ReportSnapshot:
    """Load the projects, tasks and people of one department.

    Every department is loaded as well so that assignees from other
    departments can be attributed by name.
    """
    result = await session.execute(
        _project_query().where(Project.departments.any(Department.id == department_id))
    )
    projects = [project_record(p) for p in result.scalars().all()]
    tasks = await _load_tasks(session, [p["_id"] for p in projects])

    result = await session.execute(
        select(User).where(User.department_id == department_id).order_by(User.name, User.id)
    )
    users = [user_record(u) for u in result.scalars().all()]

    departments = await _load_departments(session)
    logger.debug(
        "Loaded department %s snapshot: %d projects, %d tasks, %d users",
        department_id, len(projects), len(tasks), len(users),
    )
    return ReportSnapshot(projects=projects, tasks=tasks, users=users, departments=departments)


async def load_organization_snapshot(session: AsyncSession) -> ReportSnapshot:
    """Load every project, task, user and department."""
    result = await session.execute(_project_query())
    projects = [project_record(p) for p in result.scalars().all()]
    tasks = await _load_tasks(session, [p["_id"] for p in projects])

    result = await session.execute(select(User).order_by(User.name, User.id))
    users = [user_record(u) for u in result.scalars().all()]

    departments = await _load_departments(session)
    logger.debug(
        "Loaded organization snapshot: %d projects, %d tasks, %d users, %d departments",
        len(projects), len(tasks), len(users), len(departments),
    )
    return ReportSnapshot(projects=projects, tasks=tasks, users=users, departments=departments)
