"""Tests for entity normalization and default resolution."""

from datetime import date, datetime, timedelta, timezone

from taskboard_reports.reporting.entities import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_TODO,
    Department,
    DepartmentRef,
    Task,
    align_to,
    build_snapshot,
    group_tasks_by_project,
    normalize_departments,
    parse_timestamp,
    percentage,
    ref_id,
    resolve_department_name,
    resolve_scope_name,
    resolve_status,
)


# ---------------------------------------------------------------------------
# parse_timestamp
# ---------------------------------------------------------------------------


class TestParseTimestamp:
    def test_iso_with_z(self):
        result = parse_timestamp("2025-10-10T00:00:00.000Z")
        assert result == datetime(2025, 10, 10, tzinfo=timezone.utc)

    def test_plain_date(self):
        assert parse_timestamp("2024-06-15") == datetime(2024, 6, 15)

    def test_slash_format(self):
        assert parse_timestamp("2024/06/15") == datetime(2024, 6, 15)

    def test_us_format(self):
        assert parse_timestamp("06/15/2024") == datetime(2024, 6, 15)

    def test_datetime_passthrough(self):
        dt = datetime(2024, 3, 1, 9, 30)
        assert parse_timestamp(dt) is dt

    def test_date_object(self):
        assert parse_timestamp(date(2024, 3, 1)) == datetime(2024, 3, 1)

    def test_none(self):
        assert parse_timestamp(None) is None

    def test_garbage(self):
        assert parse_timestamp("not-a-date") is None

    def test_empty_string(self):
        assert parse_timestamp("   ") is None

    def test_non_string(self):
        assert parse_timestamp(12.5) is None
        assert parse_timestamp(True) is None


class TestAlignTo:
    def test_naive_onto_aware(self):
        ref = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert align_to(datetime(2025, 1, 2), ref).tzinfo is timezone.utc

    def test_aware_onto_naive(self):
        ref = datetime(2025, 1, 1)
        plus_two = timezone(timedelta(hours=2))
        result = align_to(datetime(2025, 1, 2, 1, 0, tzinfo=plus_two), ref)
        assert result == datetime(2025, 1, 1, 23, 0)

    def test_converts_between_zones(self):
        ref = datetime(2025, 1, 1, tzinfo=timezone.utc)
        minus_five = timezone(timedelta(hours=-5))
        result = align_to(datetime(2025, 1, 1, 22, 0, tzinfo=minus_five), ref)
        assert result == datetime(2025, 1, 2, 3, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Default resolution
# ---------------------------------------------------------------------------


class TestResolveStatus:
    def test_known(self):
        assert resolve_status("Done") == STATUS_DONE
        assert resolve_status("In Progress") == STATUS_IN_PROGRESS

    def test_case_and_whitespace(self):
        assert resolve_status(" done ") == STATUS_DONE

    def test_unknown_defaults_to_todo(self):
        assert resolve_status("Blocked") == STATUS_TODO

    def test_missing_defaults_to_todo(self):
        assert resolve_status(None) == STATUS_TODO


class TestNameResolution:
    def test_department_name(self):
        assert resolve_department_name(DepartmentRef(id="d1", name="Design")) == "Design"

    def test_department_name_missing(self):
        assert resolve_department_name(None) == "Unassigned"
        assert resolve_department_name(DepartmentRef(id="d1", name="")) == "Unassigned"

    def test_scope_name(self):
        assert resolve_scope_name(Department(id="d1", name="Engineering")) == "Engineering"

    def test_scope_name_unknown(self):
        assert resolve_scope_name(None) == "Unknown Department"


class TestPercentage:
    def test_rounds_to_one_decimal(self):
        assert percentage(1, 3) == 33.3

    def test_zero_total(self):
        assert percentage(0, 0) == 0

    def test_full(self):
        assert percentage(4, 4) == 100.0


class TestRefId:
    def test_scalar(self):
        assert ref_id("abc") == "abc"

    def test_mapping_underscore_id(self):
        assert ref_id({"_id": 7, "name": "x"}) == "7"

    def test_mapping_id(self):
        assert ref_id({"id": "u1"}) == "u1"

    def test_none(self):
        assert ref_id(None) is None
        assert ref_id({"name": "no id"}) is None


class TestNormalizeDepartments:
    def test_none(self):
        assert normalize_departments(None) == ()

    def test_scalar_id_resolved_by_lookup(self):
        lookup = {"d1": Department(id="d1", name="Design")}
        assert normalize_departments("d1", lookup) == (DepartmentRef(id="d1", name="Design"),)

    def test_scalar_mapping(self):
        refs = normalize_departments({"_id": "d2", "name": "QA"})
        assert refs == (DepartmentRef(id="d2", name="QA"),)

    def test_list(self):
        refs = normalize_departments([{"_id": "d1", "name": "Design"}, "d9"])
        assert [r.id for r in refs] == ["d1", "d9"]
        assert refs[1].name == "Unassigned"


# ---------------------------------------------------------------------------
# build_snapshot
# ---------------------------------------------------------------------------


class TestBuildSnapshot:
    def test_assignee_ids_resolved_from_users(self):
        snapshot = build_snapshot(
            tasks=[{"_id": "t1", "title": "T", "status": "To Do",
                    "assignedProject": {"_id": "p1"}, "assignedTeamMembers": ["u1"]}],
            users=[{"_id": "u1", "name": "Alice", "role": "Staff", "department": "d1"}],
            departments=[{"_id": "d1", "name": "Design"}],
        )
        member = snapshot.tasks[0].assignees[0]
        assert member.name == "Alice"
        assert member.department == DepartmentRef(id="d1", name="Design")

    def test_populated_assignee_department_name_from_lookup(self):
        snapshot = build_snapshot(
            tasks=[{"_id": "t1", "title": "T", "assignedProject": "p1",
                    "assignedTeamMembers": [{"_id": "u5", "name": "Eve", "department": "d2"}]}],
            departments=[{"_id": "d2", "name": "QA"}],
        )
        task = snapshot.tasks[0]
        assert task.project_id == "p1"
        assert task.status == STATUS_TODO
        assert task.assignees[0].department.name == "QA"

    def test_project_legacy_scalar_department(self):
        snapshot = build_snapshot(
            projects=[{"_id": "p1", "name": "Legacy", "department": "d1",
                       "createdAt": "2025-01-01", "teamMembers": [{"_id": "u1"}, "u2"]}],
            departments=[{"_id": "d1", "name": "Ops"}],
        )
        project = snapshot.projects[0]
        assert project.departments == (DepartmentRef(id="d1", name="Ops"),)
        assert project.team_member_ids == ("u1", "u2")
        assert project.created_at == datetime(2025, 1, 1)

    def test_unparseable_dates_become_none(self):
        snapshot = build_snapshot(
            tasks=[{"_id": "t1", "title": "T", "status": "Done", "createdAt": "garbage",
                    "completedAt": "2025-01-04", "deadline": "nope"}],
        )
        task = snapshot.tasks[0]
        assert task.created_at is None
        assert task.deadline is None
        assert task.completed_at == datetime(2025, 1, 4)

    def test_subtasks(self):
        snapshot = build_snapshot(
            tasks=[{"_id": "t1", "title": "T", "subtasks": [
                {"title": "a", "status": "Done", "deadline": "2025-02-01"},
                {"title": "b"},
            ]}],
        )
        subtasks = snapshot.tasks[0].subtasks
        assert [s.status for s in subtasks] == [STATUS_DONE, STATUS_TODO]
        assert subtasks[0].deadline == datetime(2025, 2, 1)

    def test_entities_pass_through(self):
        task = Task(id="t1", title="T", status=STATUS_DONE, project_id="p1")
        assert build_snapshot(tasks=[task]).tasks[0] is task

    def test_empty(self):
        snapshot = build_snapshot()
        assert snapshot.projects == () and snapshot.tasks == ()


class TestGroupTasksByProject:
    def test_groups_and_skips_orphans(self):
        tasks = [
            Task(id="t1", title="a", status=STATUS_TODO, project_id="p1"),
            Task(id="t2", title="b", status=STATUS_TODO, project_id=None),
            Task(id="t3", title="c", status=STATUS_TODO, project_id="p1"),
        ]
        grouped = group_tasks_by_project(tasks)
        assert list(grouped) == ["p1"]
        assert [t.id for t in grouped["p1"]] == ["t1", "t3"]
