"""Entity snapshots and default resolution for the reporting engine.

Records arrive from the persistence layer as loosely shaped dicts: references
may be ids or populated mappings, ``department`` may be a list or a legacy
scalar, timestamps may be strings, datetimes or garbage. Everything is coerced
here into frozen dataclasses so the calculators never branch on shape.
No DB, async, or clock dependencies.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone

logger = logging.getLogger(__name__)

STATUS_TODO = "To Do"
STATUS_IN_PROGRESS = "In Progress"
STATUS_DONE = "Done"
STATUS_OVERDUE = "Overdue"

TASK_STATUSES = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_DONE)
EFFECTIVE_STATUSES = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_DONE, STATUS_OVERDUE)

UNASSIGNED_DEPARTMENT = "Unassigned"
UNKNOWN_DEPARTMENT = "Unknown Department"

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DepartmentRef:
    """A department reference as seen from a project, user or assignee."""

    id: str
    name: str


@dataclass(frozen=True)
class MemberRef:
    """A populated user reference (task assignee)."""

    id: str
    name: str
    role: str | None
    department: DepartmentRef | None


@dataclass(frozen=True)
class Subtask:
    title: str
    status: str
    deadline: datetime | None


@dataclass(frozen=True)
class Department:
    id: str
    name: str


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: str | None
    department: DepartmentRef | None


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    departments: tuple[DepartmentRef, ...]
    deadline: datetime | None
    created_at: datetime | None
    team_member_ids: tuple[str, ...] = ()
    created_by: str | None = None


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    status: str
    project_id: str | None
    deadline: datetime | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    assignees: tuple[MemberRef, ...] = ()
    created_by: str | None = None
    subtasks: tuple[Subtask, ...] = ()


@dataclass(frozen=True)
class EntitySnapshot:
    """Normalized, read-only inputs for one report computation."""

    projects: tuple[Project, ...] = ()
    tasks: tuple[Task, ...] = ()
    users: tuple[User, ...] = ()
    departments: tuple[Department, ...] = ()
    departments_by_id: dict[str, Department] = field(default_factory=dict, compare=False)


# ---------------------------------------------------------------------------
# Default resolution
# ---------------------------------------------------------------------------


def parse_timestamp(val) -> datetime | None:
    """Parse a timestamp from a datetime, date or string; None when unparseable."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, datetime):
        return val
    if isinstance(val, date):
        return datetime.combine(val, time.min)
    if not isinstance(val, str):
        return None
    text = val.strip()
    if not text:
        return None
    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    logger.debug("Unparseable timestamp %r", val)
    return None


def align_to(dt: datetime, ref: datetime) -> datetime:
    """Express ``dt`` in the same time-zone convention as ``ref``.

    Naive values are taken to be in the reference's zone; aware values are
    converted. A naive reference is treated as UTC.
    """
    if ref.tzinfo is not None:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=ref.tzinfo)
        return dt.astimezone(ref.tzinfo)
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def resolve_status(val) -> str:
    """Map a raw task status onto the three stored statuses, defaulting to To Do."""
    if isinstance(val, str):
        text = val.strip()
        for status in TASK_STATUSES:
            if text.lower() == status.lower():
                return status
    if val is not None:
        logger.debug("Unknown task status %r treated as %s", val, STATUS_TODO)
    return STATUS_TODO


def resolve_department_name(ref: DepartmentRef | None) -> str:
    if ref is None or not ref.name:
        return UNASSIGNED_DEPARTMENT
    return ref.name


def resolve_scope_name(department: Department | None) -> str:
    if department is None or not department.name:
        return UNKNOWN_DEPARTMENT
    return department.name


def percentage(count: int | float, total: int | float) -> float:
    """``round(count / total * 100, 1)``, or 0 when there is nothing to divide by."""
    if not total:
        return 0
    return round(count / total * 100, 1)


def ref_id(val) -> str | None:
    """Extract an id from a scalar id or a populated ``{_id|id}`` mapping."""
    if val is None:
        return None
    if isinstance(val, Mapping):
        inner = val.get("_id", val.get("id"))
        return None if inner is None else str(inner)
    if hasattr(val, "id") and not isinstance(val, (str, int)):
        return str(val.id)
    return str(val)


def _ref_name(val) -> str | None:
    if isinstance(val, Mapping):
        name = val.get("name")
        return str(name) if name else None
    name = getattr(val, "name", None)
    return str(name) if isinstance(name, str) and name else None


def _department_ref(val, departments_by_id: Mapping[str, Department]) -> DepartmentRef | None:
    dept_id = ref_id(val)
    if dept_id is None:
        return None
    name = _ref_name(val)
    if name is None and dept_id in departments_by_id:
        name = departments_by_id[dept_id].name
    return DepartmentRef(id=dept_id, name=name or UNASSIGNED_DEPARTMENT)


def normalize_departments(
    val, departments_by_id: Mapping[str, Department] | None = None
) -> tuple[DepartmentRef, ...]:
    """Coerce a list-or-scalar department field to a tuple of references."""
    lookup = departments_by_id or {}
    if val is None:
        return ()
    items = val if isinstance(val, (list, tuple)) else [val]
    refs: list[DepartmentRef] = []
    for item in items:
        ref = _department_ref(item, lookup)
        if ref is not None:
            refs.append(ref)
    return tuple(refs)


# ---------------------------------------------------------------------------
# Record normalization
# ---------------------------------------------------------------------------


def _get(record, key: str, default=None):
    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


def normalize_department(record) -> Department:
    if isinstance(record, Department):
        return record
    return Department(id=ref_id(record) or "", name=str(_get(record, "name") or ""))


def normalize_user(record, departments_by_id: Mapping[str, Department]) -> User:
    if isinstance(record, User):
        return record
    return User(
        id=ref_id(record) or "",
        name=str(_get(record, "name") or ""),
        role=_get(record, "role"),
        department=_department_ref(_get(record, "department"), departments_by_id),
    )


def normalize_project(record, departments_by_id: Mapping[str, Department]) -> Project:
    if isinstance(record, Project):
        return record
    members = _get(record, "teamMembers") or []
    return Project(
        id=ref_id(record) or "",
        name=str(_get(record, "name") or ""),
        departments=normalize_departments(_get(record, "department"), departments_by_id),
        deadline=parse_timestamp(_get(record, "deadline")),
        created_at=parse_timestamp(_get(record, "createdAt")),
        team_member_ids=tuple(m for m in (ref_id(x) for x in members) if m is not None),
        created_by=ref_id(_get(record, "createdBy")),
    )


def _member_ref(
    val,
    users_by_id: Mapping[str, User],
    departments_by_id: Mapping[str, Department],
) -> MemberRef | None:
    member_id = ref_id(val)
    if member_id is None:
        return None
    known = users_by_id.get(member_id)
    if isinstance(val, Mapping):
        dept_raw = val.get("department")
        department = _department_ref(dept_raw, departments_by_id)
        if department is None and known is not None:
            department = known.department
        return MemberRef(
            id=member_id,
            name=str(val.get("name") or (known.name if known else "")),
            role=val.get("role", known.role if known else None),
            department=department,
        )
    if known is not None:
        return MemberRef(id=member_id, name=known.name, role=known.role, department=known.department)
    return MemberRef(id=member_id, name="", role=None, department=None)


def _subtasks(val) -> tuple[Subtask, ...]:
    if not isinstance(val, (list, tuple)):
        return ()
    return tuple(
        Subtask(
            title=str(_get(item, "title") or ""),
            status=resolve_status(_get(item, "status")),
            deadline=parse_timestamp(_get(item, "deadline")),
        )
        for item in val
        if item is not None
    )


def normalize_task(
    record,
    users_by_id: Mapping[str, User],
    departments_by_id: Mapping[str, Department],
) -> Task:
    if isinstance(record, Task):
        return record
    assignees = []
    for raw in _get(record, "assignedTeamMembers") or []:
        member = _member_ref(raw, users_by_id, departments_by_id)
        if member is not None:
            assignees.append(member)
    return Task(
        id=ref_id(record) or "",
        title=str(_get(record, "title") or ""),
        status=resolve_status(_get(record, "status")),
        project_id=ref_id(_get(record, "assignedProject")),
        deadline=parse_timestamp(_get(record, "deadline")),
        created_at=parse_timestamp(_get(record, "createdAt")),
        completed_at=parse_timestamp(_get(record, "completedAt")),
        assignees=tuple(assignees),
        created_by=ref_id(_get(record, "createdBy")),
        subtasks=_subtasks(_get(record, "subtasks")),
    )


def build_snapshot(
    projects: Iterable = (),
    tasks: Iterable = (),
    users: Iterable = (),
    departments: Iterable = (),
) -> EntitySnapshot:
    """Normalize raw records into an EntitySnapshot.

    Departments are resolved first so that bare department ids on users,
    projects and assignees pick up their display names.
    """
    norm_departments = tuple(normalize_department(d) for d in departments or ())
    departments_by_id = {d.id: d for d in norm_departments}
    norm_users = tuple(normalize_user(u, departments_by_id) for u in users or ())
    users_by_id = {u.id: u for u in norm_users}
    return EntitySnapshot(
        projects=tuple(normalize_project(p, departments_by_id) for p in projects or ()),
        tasks=tuple(normalize_task(t, users_by_id, departments_by_id) for t in tasks or ()),
        users=norm_users,
        departments=norm_departments,
        departments_by_id=departments_by_id,
    )


def group_tasks_by_project(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    """Index tasks by owning project id, preserving input order."""
    grouped: dict[str, list[Task]] = {}
    for task in tasks:
        if task.project_id is None:
            continue
        grouped.setdefault(task.project_id, []).append(task)
    return grouped
