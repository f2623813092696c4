"""Tests for per-person performance aggregation."""

from datetime import datetime, timedelta, timezone

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_TODO,
    MemberRef,
    Task,
    User,
)
from taskboard_reports.reporting.team_performance import PersonStats, aggregate

NOW = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)

ALICE = User(id="u1", name="Alice", role="Staff", department=None)
BOB = User(id="u2", name="Bob", role="Manager", department=None)


def _member(user: User) -> MemberRef:
    return MemberRef(id=user.id, name=user.name, role=user.role, department=None)


def _task(task_id, status, users, days_ago=None):
    deadline = NOW - timedelta(days=days_ago) if days_ago is not None else None
    return Task(
        id=task_id, title=task_id, status=status, project_id="p1",
        deadline=deadline, assignees=tuple(_member(u) for u in users),
    )


class TestAggregate:
    def test_partition_by_status(self):
        tasks = [
            _task("t1", STATUS_TODO, [ALICE]),
            _task("t2", STATUS_IN_PROGRESS, [ALICE, BOB]),
            _task("t3", STATUS_DONE, [ALICE]),
            _task("t4", STATUS_DONE, [BOB]),
        ]
        rows = {r.user_id: r for r in aggregate([ALICE, BOB], tasks, NOW)}
        alice = rows["u1"]
        assert (alice.todo_tasks, alice.in_progress_tasks, alice.completed_tasks) == (1, 1, 1)
        assert alice.tasks_involved == 3
        assert rows["u2"].tasks_involved == 2

    def test_tasks_involved_invariant(self):
        tasks = [_task(f"t{i}", s, [ALICE]) for i, s in enumerate(
            [STATUS_TODO, STATUS_DONE, STATUS_DONE, STATUS_IN_PROGRESS, STATUS_TODO]
        )]
        row = aggregate([ALICE], tasks, NOW)[0]
        assert row.tasks_involved == row.todo_tasks + row.in_progress_tasks + row.completed_tasks

    def test_overdue_rate(self):
        tasks = [
            _task("t1", STATUS_TODO, [ALICE], days_ago=2),
            _task("t2", STATUS_IN_PROGRESS, [ALICE]),
            _task("t3", STATUS_DONE, [ALICE], days_ago=9),
        ]
        row = aggregate([ALICE], tasks, NOW)[0]
        assert row.overdue_tasks == 1
        assert row.overdue_rate == round(1 / 3 * 100, 1)

    def test_no_tasks_zero_rate(self):
        row = aggregate([BOB], [_task("t1", STATUS_TODO, [ALICE], days_ago=1)], NOW)[0]
        assert row == PersonStats(
            user_id="u2", name="Bob", role="Manager", tasks_involved=0, todo_tasks=0,
            in_progress_tasks=0, completed_tasks=0, overdue_tasks=0, overdue_rate=0,
        )

    def test_preserves_user_order(self):
        rows = aggregate([BOB, ALICE], [], NOW)
        assert [r.name for r in rows] == ["Bob", "Alice"]

    def test_no_users(self):
        assert aggregate([], [_task("t1", STATUS_TODO, [ALICE])], NOW) == []
