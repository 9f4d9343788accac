"""Tests for agentic15.models."""

import json

from agentic15.models import Task, TaskStatus, TaskSummary, TaskTracker, read_model, write_model


class TestTask:
    """Tests for the Task model."""

    def test_accepts_camel_case_and_keeps_extras(self):
        task = Task.model_validate(
            {"id": "TASK-001", "title": "Setup", "completionCriteria": ["runs"], "estimatedHours": 3}
        )
        assert task.completion_criteria == ["runs"]
        assert task.to_json().count("estimatedHours") == 1

    def test_branch_name(self):
        assert Task(id="TASK-007").branch_name == "feature/task-007"

    def test_external_id_prefers_issue_number(self):
        assert Task(id="T", issue_number=4, work_item_id=9).external_id == 4
        assert Task(id="T", work_item_id=9).external_id == 9
        assert Task(id="T").external_id is None

    def test_status_stored_as_value(self):
        task = Task(id="T")
        task.status = TaskStatus.BLOCKED
        assert task.status == "blocked"


class TestTaskTracker:
    """Tests for TaskTracker."""

    def _tracker(self):
        return TaskTracker(
            plan_id="plan-001-generated",
            task_files=[
                TaskSummary(id="TASK-001", status="completed"),
                TaskSummary(id="TASK-002", status="in_progress"),
                TaskSummary(id="TASK-003"),
                TaskSummary(id="TASK-004", status="blocked"),
            ],
        )

    def test_lookups(self):
        tracker = self._tracker()
        assert tracker.find("TASK-003").id == "TASK-003"
        assert tracker.find("TASK-999") is None
        assert tracker.in_progress().id == "TASK-002"
        assert tracker.first_pending().id == "TASK-003"

    def test_recompute_statistics(self):
        stats = self._tracker().recompute_statistics()
        assert (stats.total_tasks, stats.completed, stats.in_progress, stats.pending, stats.blocked) == (4, 1, 1, 1, 1)

    def test_active_task_written_as_null(self):
        data = json.loads(self._tracker().to_json())
        assert data["activeTask"] is None
        assert data["planId"] == "plan-001-generated"
        assert data["taskFiles"][1]["status"] == "in_progress"

    def test_round_trip_through_disk(self, tmp_path):
        path = tmp_path / "TASK-TRACKER.json"
        write_model(path, self._tracker())
        loaded = read_model(path, TaskTracker)
        assert loaded.find("TASK-004").status == "blocked"
