"""Plan storage and plan-level workflows.

Layout under the project root::

    .claude/ACTIVE-PLAN                         plan id (empty when none)
    .claude/plans/<planId>/PROJECT-REQUIREMENTS.txt
    .claude/plans/<planId>/PROJECT-PLAN.json    written by the assistant
    .claude/plans/<planId>/TASK-TRACKER.json
    .claude/plans/<planId>/tasks/<TASK-ID>.json
    .claude/plans/<planId>/.plan-locked
    .claude/plans/archived/<planId>/ARCHIVE-META.json

Writes are whole-file rewrites without locking; one operator per repository.
"""

import json
import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from agentic15 import git_utils
from agentic15.errors import (
    ActivePlanExistsError,
    BranchCheckoutError,
    GitCommandError,
    NoActivePlanError,
    PlanAlreadyLockedError,
    PlanFileMissingError,
    PlanNotFoundError,
    TaskNotFoundError,
    TrackerNotFoundError,
    WorkflowError,
)
from agentic15.models import (
    ArchiveMeta,
    Task,
    TaskStatus,
    TaskSummary,
    TaskTracker,
    read_model,
    utc_now,
    write_model,
)
from agentic15.platforms import PullRequest
from agentic15.router import PlatformRouter

log = logging.getLogger("agentic15.plans")

PLAN_ID_PATTERN = re.compile(r"^plan-(\d{3})-", re.IGNORECASE)
NESTED_TASK_KEYS = ("milestones", "subprojects", "projects")
DEFAULT_ARCHIVE_REASON = "Plan completed"

REQUIREMENTS_TEMPLATE = """PROJECT REQUIREMENTS
{rule}

{description}

Generated: {generated}
PLAN ID: {plan_id}
{rule}

INSTRUCTIONS FOR CLAUDE - CREATE PROJECT PLAN
{rule}

Analyze the requirements above and create PROJECT-PLAN.json in this
directory with:
   - a project / subproject / milestone hierarchy
   - tasks with ids TASK-001, TASK-002, ...
   - a phase for each task (design, implementation, testing, deployment)
   - completion criteria for each task

Then tell the user to run: agentic15 plan lock
{rule}
"""


def extract_tasks(node: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Collect task dicts from a plan document, depth first.

    Tasks may sit directly under ``tasks`` at any level, inside
    milestones/subprojects/projects lists, or under a root ``project`` object.
    """
    tasks: List[Dict[str, Any]] = []
    if isinstance(node.get("tasks"), list):
        tasks.extend(node["tasks"])
    for key in NESTED_TASK_KEYS:
        if isinstance(node.get(key), list):
            for child in node[key]:
                if isinstance(child, dict):
                    tasks.extend(extract_tasks(child))
    if isinstance(node.get("project"), dict):
        tasks.extend(extract_tasks(node["project"]))
    return tasks


class PlanStore:
    """File access for plans, trackers and task files."""

    def __init__(self, project_root: Optional[Path] = None) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.claude_dir = self.project_root / ".claude"
        self.plans_dir = self.claude_dir / "plans"
        self.archived_dir = self.plans_dir / "archived"
        self.active_plan_file = self.claude_dir / "ACTIVE-PLAN"

    def active_plan_id(self) -> Optional[str]:
        """The active plan id, or None (a blank ACTIVE-PLAN means none)."""
        if not self.active_plan_file.exists():
            return None
        return self.active_plan_file.read_text().strip() or None

    def require_active_plan(self) -> str:
        plan_id = self.active_plan_id()
        if plan_id is None:
            raise NoActivePlanError()
        return plan_id

    def set_active_plan(self, plan_id: Optional[str]) -> None:
        self.claude_dir.mkdir(parents=True, exist_ok=True)
        self.active_plan_file.write_text(plan_id or "")

    def plan_dir(self, plan_id: str) -> Path:
        return self.plans_dir / plan_id

    def requirements_path(self, plan_id: str) -> Path:
        return self.plan_dir(plan_id) / "PROJECT-REQUIREMENTS.txt"

    def plan_document_path(self, plan_id: str) -> Path:
        return self.plan_dir(plan_id) / "PROJECT-PLAN.json"

    def tracker_path(self, plan_id: str) -> Path:
        return self.plan_dir(plan_id) / "TASK-TRACKER.json"

    def task_path(self, plan_id: str, task_id: str) -> Path:
        return self.plan_dir(plan_id) / "tasks" / f"{task_id}.json"

    def lock_marker(self, plan_id: str) -> Path:
        return self.plan_dir(plan_id) / ".plan-locked"

    def is_locked(self, plan_id: str) -> bool:
        return self.lock_marker(plan_id).exists()

    def has_plan_document(self, plan_id: str) -> bool:
        return self.plan_document_path(plan_id).exists()

    def next_plan_id(self) -> str:
        """Next free ``plan-NNN-generated`` id."""
        numbers = []
        if self.plans_dir.exists():
            for entry in self.plans_dir.iterdir():
                match = PLAN_ID_PATTERN.match(entry.name)
                if match:
                    numbers.append(int(match.group(1)))
        next_num = max(numbers) + 1 if numbers else 1
        return f"plan-{next_num:03d}-generated"

    def generate(self, description: str) -> str:
        """Write requirements for a new plan and make it active.

        Returns:
            The new plan id

        Raises:
            PlanAlreadyLockedError: The active plan is locked
            ActivePlanExistsError: Another plan is already active
        """
        current = self.active_plan_id()
        if current:
            if self.is_locked(current):
                raise PlanAlreadyLockedError(current, hint=ActivePlanExistsError.hint)
            raise ActivePlanExistsError(current)

        plan_id = self.next_plan_id()
        plan_dir = self.plan_dir(plan_id)
        plan_dir.mkdir(parents=True, exist_ok=True)
        self.requirements_path(plan_id).write_text(
            REQUIREMENTS_TEMPLATE.format(
                rule="━" * 60,
                description=description.strip(),
                generated=utc_now(),
                plan_id=plan_id,
            )
        )
        self.set_active_plan(plan_id)
        log.info("Generated plan %s", plan_id)
        return plan_id

    def lock(self, plan_id: Optional[str] = None) -> TaskTracker:
        """Extract tasks from PROJECT-PLAN.json and lock the plan.

        Writes one file per task, the tracker, and the ``.plan-locked`` marker.

        Raises:
            NoActivePlanError: No plan id given and none active
            PlanAlreadyLockedError: The plan is already locked
            PlanFileMissingError: PROJECT-PLAN.json does not exist yet
        """
        plan_id = plan_id or self.require_active_plan()
        if self.is_locked(plan_id):
            raise PlanAlreadyLockedError(plan_id)
        if not self.has_plan_document(plan_id):
            raise PlanFileMissingError(plan_id)

        try:
            document = json.loads(self.plan_document_path(plan_id).read_text())
            tasks = [
                Task.model_validate({**raw, "status": TaskStatus.PENDING.value})
                for raw in extract_tasks(document)
            ]
        except (json.JSONDecodeError, ValidationError) as e:
            raise WorkflowError(f"Invalid PROJECT-PLAN.json for {plan_id}: {e}") from e

        for task in tasks:
            write_model(self.task_path(plan_id, task.id), task)

        tracker = TaskTracker(
            plan_id=plan_id,
            project_name=self.project_root.resolve().name,
            locked_at=utc_now(),
            task_files=[
                TaskSummary(
                    id=task.id,
                    title=task.title,
                    phase=task.phase or "implementation",
                    description=task.description,
                )
                for task in tasks
            ],
        )
        tracker.recompute_statistics()
        self.save_tracker(tracker)
        self.lock_marker(plan_id).write_text(utc_now())
        log.info("Locked plan %s with %d tasks", plan_id, len(tasks))
        return tracker

    def load_tracker(self, plan_id: Optional[str] = None) -> TaskTracker:
        """Load the tracker for ``plan_id`` (default: the active plan).

        Raises:
            NoActivePlanError: No plan id given and none active
            TrackerNotFoundError: The plan has not been locked
        """
        plan_id = plan_id or self.require_active_plan()
        path = self.tracker_path(plan_id)
        if not path.exists():
            raise TrackerNotFoundError(plan_id)
        return read_model(path, TaskTracker)

    def save_tracker(self, tracker: TaskTracker) -> None:
        write_model(self.tracker_path(tracker.plan_id), tracker)

    def load_task(self, plan_id: str, task_id: str, tracker: Optional[TaskTracker] = None) -> Task:
        """Load full task detail.

        Falls back to the tracker summary when the task file is missing.

        Raises:
            TaskNotFoundError: Neither the task file nor a tracker entry exists
        """
        path = self.task_path(plan_id, task_id)
        if path.exists():
            return read_model(path, Task)
        summary = tracker.find(task_id) if tracker else None
        if summary is None:
            raise TaskNotFoundError(task_id)
        return Task.model_validate(summary.model_dump(exclude_none=True))

    def save_task(self, plan_id: str, task: Task) -> None:
        write_model(self.task_path(plan_id, task.id), task)

    def archive(self, reason: Optional[str] = None) -> ArchiveMeta:
        """Move the active plan under ``plans/archived`` and clear ACTIVE-PLAN.

        Raises:
            NoActivePlanError: Nothing to archive
            PlanNotFoundError: ACTIVE-PLAN points at a missing directory
        """
        plan_id = self.require_active_plan()
        source = self.plan_dir(plan_id)
        if not source.exists():
            raise PlanNotFoundError(plan_id)

        self.archived_dir.mkdir(parents=True, exist_ok=True)
        destination = self.archived_dir / plan_id
        shutil.move(str(source), str(destination))

        meta = ArchiveMeta(
            archived_at=utc_now(),
            reason=reason or DEFAULT_ARCHIVE_REASON,
            original_path=f".claude/plans/{plan_id}",
            archived_path=f".claude/plans/archived/{plan_id}",
        )
        write_model(destination / "ARCHIVE-META.json", meta)
        self.set_active_plan(None)
        log.info("Archived plan %s", plan_id)
        return meta


@dataclass
class AdminBranchResult:
    """Outcome of a plan operation published on an ``admin/*`` branch."""

    plan_id: str
    branch: str
    pushed: bool = False
    pull_request: Optional[PullRequest] = None
    meta: Optional[ArchiveMeta] = None


class PlanWorkflow:
    """Plan archive/new operations that go through git and a pull request."""

    def __init__(self, store: PlanStore, router_factory: Callable[[Path], PlatformRouter] = PlatformRouter) -> None:
        self.store = store
        self.project_root = store.project_root
        self._router_factory = router_factory

    def archive(self, reason: Optional[str] = None) -> AdminBranchResult:
        plan_id = self.store.require_active_plan()
        if not self.store.plan_dir(plan_id).exists():
            raise PlanNotFoundError(plan_id)

        branch = f"admin/archive-plan-{plan_id}"
        self._create_branch(branch)
        meta = self.store.archive(reason)
        result = AdminBranchResult(plan_id=plan_id, branch=branch, meta=meta)
        self._publish(
            result,
            commit_message=f"Archive plan {plan_id}: {meta.reason}",
            pr_title=f"Archive plan {plan_id}",
            pr_body=f"Archiving completed plan: {meta.reason}",
        )
        return result

    def create_new(self, description: str) -> AdminBranchResult:
        """Start a new plan on its own admin branch.

        Raises:
            ActivePlanExistsError: The current plan has not been archived
        """
        current = self.store.active_plan_id()
        if current:
            raise ActivePlanExistsError(current)

        plan_id = self.store.next_plan_id()
        branch = f"admin/new-plan-{plan_id}"
        self._create_branch(branch)
        self.store.generate(description)
        result = AdminBranchResult(plan_id=plan_id, branch=branch)
        self._publish(
            result,
            commit_message=f"Create new plan: {plan_id}",
            pr_title=f"Create new plan {plan_id}",
            pr_body=f"Create new plan: {description.strip() or plan_id}",
        )
        return result

    def _create_branch(self, branch: str) -> None:
        try:
            git_utils.checkout_branch(branch, cwd=self.project_root, create=True)
        except subprocess.CalledProcessError as e:
            raise BranchCheckoutError(branch, (e.stderr or "").strip()) from e

    def _publish(self, result: AdminBranchResult, commit_message: str, pr_title: str, pr_body: str) -> None:
        try:
            git_utils.stage_paths([".claude/"], cwd=self.project_root)
            git_utils.commit(commit_message, cwd=self.project_root)
        except subprocess.CalledProcessError as e:
            raise GitCommandError(f"Failed to commit: {(e.stderr or '').strip()}") from e

        try:
            git_utils.push_branch(result.branch, cwd=self.project_root, set_upstream=True)
            result.pushed = True
        except subprocess.CalledProcessError as e:
            log.warning("Push failed, create the PR manually: %s", (e.stderr or "").strip())
            return

        code_host = self._router_factory(self.project_root).get_code_host()
        if code_host is None:
            log.warning("Unknown platform - create PR manually")
            return
        base = git_utils.get_main_branch(self.project_root)
        result.pull_request = code_host.create_pull_request(pr_title, pr_body, head=result.branch, base=base)
