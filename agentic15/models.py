"""Data models for plans, tasks and the task tracker.

Everything persisted under ``.claude/`` is camelCase JSON, so the models use
camelCase aliases and accept either spelling on input.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Platform(str, Enum):
    """Issue tracker backends."""

    GITHUB = "github"
    AZURE = "azure"


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        validate_assignment=True,
    )

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2) + "\n"


class Task(CamelModel):
    """Full task detail, stored as ``tasks/<TASK-ID>.json``.

    Unknown keys written by the plan author (dependencies, estimates, ...)
    are preserved on round trip.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    phase: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    completion_criteria: List[str] = Field(default_factory=list)
    test_cases: List[str] = Field(default_factory=list)
    issue_number: Optional[int] = None
    work_item_id: Optional[int] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    blocked_reason: Optional[str] = None

    @property
    def branch_name(self) -> str:
        """Feature branch for this task, e.g. ``feature/task-001``."""
        return f"feature/{self.id.lower()}"

    @property
    def external_id(self) -> Optional[int]:
        """Linked issue number or work item id, whichever is set."""
        if self.issue_number is not None:
            return self.issue_number
        return self.work_item_id


class TaskSummary(CamelModel):
    """Task entry inside the tracker's ``taskFiles`` list."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    phase: str = "implementation"
    status: TaskStatus = TaskStatus.PENDING
    description: str = ""
    started_at: Optional[str] = None
    completed_at: Optional[str] = None


class TaskStatistics(CamelModel):
    total_tasks: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0
    blocked: int = 0


class TaskTracker(CamelModel):
    """Ordered task summaries plus aggregate counts for one plan."""

    plan_id: str
    project_name: str = ""
    active_task: Optional[str] = None
    locked_at: Optional[str] = None
    statistics: TaskStatistics = Field(default_factory=TaskStatistics)
    task_files: List[TaskSummary] = Field(default_factory=list)

    def to_json(self) -> str:
        # activeTask is written as an explicit null when cleared
        data = self.model_dump(by_alias=True, exclude_none=True)
        data.setdefault("activeTask", None)
        return json.dumps(data, indent=2) + "\n"

    def find(self, task_id: str) -> Optional[TaskSummary]:
        for summary in self.task_files:
            if summary.id == task_id:
                return summary
        return None

    def with_status(self, status: TaskStatus) -> List[TaskSummary]:
        return [t for t in self.task_files if t.status == status.value]

    def in_progress(self) -> Optional[TaskSummary]:
        """The task currently in progress, if any."""
        running = self.with_status(TaskStatus.IN_PROGRESS)
        return running[0] if running else None

    def first_pending(self) -> Optional[TaskSummary]:
        pending = self.with_status(TaskStatus.PENDING)
        return pending[0] if pending else None

    def recompute_statistics(self) -> TaskStatistics:
        """Refresh ``statistics`` from the task statuses and return it."""
        self.statistics = TaskStatistics(
            total_tasks=len(self.task_files),
            completed=len(self.with_status(TaskStatus.COMPLETED)),
            in_progress=len(self.with_status(TaskStatus.IN_PROGRESS)),
            pending=len(self.with_status(TaskStatus.PENDING)),
            blocked=len(self.with_status(TaskStatus.BLOCKED)),
        )
        return self.statistics


class ArchiveMeta(CamelModel):
    archived_at: str
    reason: str
    original_path: str
    archived_path: str


def read_model(path: Path, model: type) -> BaseModel:
    """Load a JSON file into ``model``."""
    return model.model_validate(json.loads(path.read_text()))


def write_model(path: Path, instance: CamelModel) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(instance.to_json())
