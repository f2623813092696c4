"""Tests for completion duration metrics."""

from datetime import datetime, timedelta, timezone

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    Project,
    Task,
    build_snapshot,
)
from taskboard_reports.reporting.time_metrics import (
    avg_project_completion_days,
    avg_task_completion_days,
    days_between,
)

NOW = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)


def _task(task_id, status=STATUS_DONE, created=None, completed=None, project_id="p1"):
    return Task(
        id=task_id, title=task_id, status=status, project_id=project_id,
        created_at=created, completed_at=completed,
    )


def _project(project_id="p1", created=None):
    return Project(id=project_id, name=project_id, departments=(), deadline=None, created_at=created)


# ---------------------------------------------------------------------------
# days_between
# ---------------------------------------------------------------------------


class TestDaysBetween:
    def test_whole_days(self):
        assert days_between(datetime(2025, 1, 1), datetime(2025, 1, 4)) == 3

    def test_truncates_partial_days(self):
        assert days_between(datetime(2025, 1, 1), datetime(2025, 1, 2, 23, 0)) == 1

    def test_negative_truncates_toward_zero(self):
        assert days_between(datetime(2025, 1, 2), datetime(2025, 1, 1, 12, 0)) == 0

    def test_mixed_awareness(self):
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert days_between(start, datetime(2025, 1, 3)) == 2


# ---------------------------------------------------------------------------
# avg_task_completion_days
# ---------------------------------------------------------------------------


class TestAvgTaskCompletionDays:
    def test_single_three_day_task(self):
        completed = datetime(2025, 10, 10, 9, 0, tzinfo=timezone.utc)
        task = _task("t1", created=completed - timedelta(days=3), completed=completed)
        assert avg_task_completion_days([task]) == 3

    def test_mean_over_measurable(self):
        base = datetime(2025, 9, 1)
        tasks = [
            _task("t1", created=base, completed=base + timedelta(days=2)),
            _task("t2", created=base, completed=base + timedelta(days=5)),
            _task("t3", created=base, completed=None),
        ]
        assert avg_task_completion_days(tasks) == 3.5

    def test_unfinished_tasks_ignored(self):
        base = datetime(2025, 9, 1)
        tasks = [
            _task("t1", status=STATUS_IN_PROGRESS, created=base, completed=base + timedelta(days=9)),
            _task("t2", created=base, completed=base + timedelta(days=1)),
        ]
        assert avg_task_completion_days(tasks) == 1

    def test_unparseable_created_at_only_done_task_is_zero(self):
        snapshot = build_snapshot(tasks=[{
            "_id": "t1", "title": "Broken", "status": "Done",
            "createdAt": "yesterday-ish", "completedAt": "2025-10-01T00:00:00Z",
        }])
        result = avg_task_completion_days(snapshot.tasks)
        assert result == 0
        assert result == result  # not NaN

    def test_no_tasks(self):
        assert avg_task_completion_days([]) == 0


# ---------------------------------------------------------------------------
# avg_project_completion_days
# ---------------------------------------------------------------------------


class TestAvgProjectCompletionDays:
    def test_latest_completion_used(self):
        created = datetime(2025, 9, 1)
        tasks = [
            _task("t1", completed=created + timedelta(days=4)),
            _task("t2", completed=created + timedelta(days=10)),
        ]
        assert avg_project_completion_days([_project(created=created)], tasks, NOW) == 10

    def test_incomplete_projects_skipped(self):
        created = datetime(2025, 9, 1)
        projects = [_project("p1", created), _project("p2", created)]
        tasks = [
            _task("t1", completed=created + timedelta(days=6)),
            _task("t2", status=STATUS_IN_PROGRESS, project_id="p2"),
        ]
        assert avg_project_completion_days(projects, tasks, NOW) == 6

    def test_project_without_tasks_skipped(self):
        assert avg_project_completion_days([_project(created=datetime(2025, 9, 1))], [], NOW) == 0

    def test_falls_back_to_now_without_completion_dates(self):
        created = NOW - timedelta(days=12)
        tasks = [_task("t1", completed=None)]
        assert avg_project_completion_days([_project(created=created)], tasks, NOW) == 12

    def test_negative_duration_clamped(self):
        created = datetime(2025, 9, 10)
        tasks = [_task("t1", completed=datetime(2025, 9, 1))]
        assert avg_project_completion_days([_project(created=created)], tasks, NOW) == 0

    def test_unparseable_created_at_is_zero(self):
        created = datetime(2025, 9, 1)
        projects = [_project("p1", created), _project("p2", None)]
        tasks = [
            _task("t1", completed=created + timedelta(days=6)),
            _task("t2", completed=created + timedelta(days=2), project_id="p2"),
        ]
        assert avg_project_completion_days(projects, tasks, NOW) == 0

    def test_no_projects(self):
        assert avg_project_completion_days([], [], NOW) == 0
