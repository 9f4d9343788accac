"""Task lifecycle: start, next, complete, reset, block.

Status changes go through TaskStateMachine; the tracker file is only written
after every precondition has passed, so a refused command leaves it untouched.
Issue/work item sync is advisory and never fails a command.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from agentic15 import git_utils
from agentic15.errors import (
    BranchCheckoutError,
    GitRemoteMissingError,
    NoTaskInProgressError,
    TaskAlreadyCompletedError,
    TaskAlreadyInProgressError,
    TaskNotFoundError,
    TaskNotInProgressError,
)
from agentic15.models import Task, TaskStatistics, TaskStatus, TaskSummary, TaskTracker, utc_now
from agentic15.plans import PlanStore
from agentic15.router import PlatformRouter
from agentic15.state_machine import TaskStateMachine

log = logging.getLogger("agentic15.workflow")


@dataclass
class StartResult:
    task: Task
    branch: str
    branch_created: bool
    main_branch: str
    main_synced: bool = True
    item_id: Optional[int] = None
    item_created: bool = False
    resumed: bool = False


@dataclass
class NextResult:
    """Either the task that was started, or the final counts."""

    statistics: TaskStatistics
    started: Optional[StartResult] = None

    @property
    def all_done(self) -> bool:
        return self.started is None


@dataclass
class ResetResult:
    task: Task
    previous_status: str
    hints: List[str] = field(default_factory=list)


class TaskWorkflow:
    """Task commands against the active plan."""

    def __init__(
        self,
        project_root: Optional[Path] = None,
        store: Optional[PlanStore] = None,
        router_factory: Callable[[Path], PlatformRouter] = PlatformRouter,
    ) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.store = store or PlanStore(self.project_root)
        self._router_factory = router_factory
        self._router: Optional[PlatformRouter] = None

    @property
    def router(self) -> PlatformRouter:
        """Router for this command, detected on first use."""
        if self._router is None:
            self._router = self._router_factory(self.project_root)
        return self._router

    def _load(self) -> Tuple[str, TaskTracker]:
        plan_id = self.store.require_active_plan()
        return plan_id, self.store.load_tracker(plan_id)

    def _find(self, tracker: TaskTracker, task_id: str) -> TaskSummary:
        summary = tracker.find(task_id)
        if summary is None:
            raise TaskNotFoundError(task_id)
        return summary

    def _save(self, plan_id: str, tracker: TaskTracker, task: Task) -> None:
        tracker.recompute_statistics()
        self.store.save_tracker(tracker)
        self.store.save_task(plan_id, task)

    def sync_item(self, task: Task) -> bool:
        """Mirror the task's status onto its linked item, when enabled."""
        item_id = task.external_id
        if item_id is None or not self.router.is_configured() or not self.router.auto_update:
            return False
        return self.router.update_task_item(task, item_id)

    def start(self, task_id: str) -> StartResult:
        """Start a task on its feature branch.

        Starting the task that is already in progress resumes it: its branch is
        checked out again and the tracker is left as it is.

        Raises:
            TaskNotFoundError: No such task in the active plan
            TaskAlreadyCompletedError: The task is done
            TaskAlreadyInProgressError: Another task is already in progress
            InvalidTransitionError: The task is blocked
            GitRemoteMissingError: No origin remote
            BranchCheckoutError: The feature branch could not be checked out
        """
        plan_id, tracker = self._load()
        summary = self._find(tracker, task_id)
        if summary.status == TaskStatus.COMPLETED:
            raise TaskAlreadyCompletedError(task_id)
        running = tracker.in_progress()
        resuming = running is not None and running.id == task_id
        if running is not None and not resuming:
            raise TaskAlreadyInProgressError(running.id)

        if not resuming:
            new_status = TaskStateMachine(summary.status).fire("start")

        if git_utils.try_get_remote_url(self.project_root) is None:
            raise GitRemoteMissingError()

        task = self.store.load_task(plan_id, task_id, tracker)
        main_branch = git_utils.get_main_branch(self.project_root)
        main_synced = True
        if not resuming:
            try:
                git_utils.checkout_branch(main_branch, cwd=self.project_root)
                git_utils.pull(main_branch, cwd=self.project_root)
            except subprocess.CalledProcessError as e:
                main_synced = False
                log.warning("Could not update %s: %s", main_branch, (e.stderr or "").strip())

        branch = task.branch_name
        try:
            created = git_utils.checkout_or_create_branch(branch, cwd=self.project_root)
        except subprocess.CalledProcessError as e:
            raise BranchCheckoutError(branch, (e.stderr or "").strip()) from e

        if resuming:
            log.info("Resuming %s on %s", task_id, branch)
        else:
            started_at = utc_now()
            task.status = new_status
            task.started_at = started_at
            summary.status = new_status
            summary.started_at = started_at
            tracker.active_task = task_id
            self._save(plan_id, tracker, task)

        result = StartResult(
            task=task,
            branch=branch,
            branch_created=created,
            main_branch=main_branch,
            main_synced=main_synced,
            item_id=task.external_id,
            resumed=resuming,
        )

        if task.external_id is None:
            if self.router.is_configured() and self.router.auto_create:
                item_id = self.router.create_task_item(task)
                if item_id is not None:
                    self.router.link_task(task, item_id)
                    self.store.save_task(plan_id, task)
                    result.item_id = item_id
                    result.item_created = True
                    self.sync_item(task)
        elif not resuming:
            self.sync_item(task)
        return result

    def next(self) -> NextResult:
        """Start the first pending task in tracker order.

        With nothing pending, only reports the counts; no branch is touched.
        """
        _, tracker = self._load()
        statistics = tracker.recompute_statistics()
        pending = tracker.first_pending()
        if pending is None:
            return NextResult(statistics=statistics)
        started = self.start(pending.id)
        return NextResult(statistics=self.store.load_tracker(tracker.plan_id).statistics, started=started)

    def complete(self) -> Task:
        """Mark the in-progress task completed.

        Raises:
            NoTaskInProgressError: Nothing to complete
        """
        plan_id, tracker = self._load()
        summary = tracker.in_progress()
        if summary is None:
            raise NoTaskInProgressError()

        task = self.store.load_task(plan_id, summary.id, tracker)
        new_status = TaskStateMachine(summary.status).fire("complete")
        completed_at = utc_now()
        task.status = new_status
        task.completed_at = completed_at
        summary.status = new_status
        summary.completed_at = completed_at
        tracker.active_task = None
        self._save(plan_id, tracker, task)
        return task

    def reset(self, task_id: Optional[str] = None, force: bool = False) -> ResetResult:
        """Send a task back to pending.

        Defaults to the task in progress. Completed or blocked tasks need
        ``force``.

        Raises:
            NoTaskInProgressError: No task given and none in progress
            TaskNotInProgressError: The task is not in progress and force is off
        """
        plan_id, tracker = self._load()
        if task_id is None:
            running = tracker.in_progress()
            if running is None:
                raise NoTaskInProgressError()
            task_id = running.id
        summary = self._find(tracker, task_id)
        previous = summary.status

        if previous == TaskStatus.IN_PROGRESS:
            new_status = TaskStateMachine(previous).fire("reset")
        elif not force:
            raise TaskNotInProgressError(task_id, previous)
        elif previous == TaskStatus.PENDING:
            new_status = previous
        else:
            new_status = TaskStateMachine(previous).fire("force_reset")

        task = self.store.load_task(plan_id, task_id, tracker)
        task.status = new_status
        task.started_at = None
        task.completed_at = None
        task.blocked_reason = None
        summary.status = new_status
        summary.started_at = None
        summary.completed_at = None
        if tracker.active_task == task_id:
            tracker.active_task = None
        self._save(plan_id, tracker, task)
        self.sync_item(task)

        main_branch = git_utils.get_main_branch(self.project_root)
        hints = [
            f"Discard changes: git checkout {main_branch} && git branch -D {task.branch_name}",
            f"Or keep working: agentic15 task start {task_id}",
        ]
        return ResetResult(task=task, previous_status=previous, hints=hints)

    def block(self, task_id: str, reason: Optional[str] = None) -> Task:
        """Mark a pending or in-progress task as blocked."""
        plan_id, tracker = self._load()
        summary = self._find(tracker, task_id)
        new_status = TaskStateMachine(summary.status).fire("block")

        task = self.store.load_task(plan_id, task_id, tracker)
        task.status = new_status
        task.blocked_reason = reason
        summary.status = new_status
        if tracker.active_task == task_id:
            tracker.active_task = None
        self._save(plan_id, tracker, task)

        if self.sync_item(task) and reason:
            self.router.add_comment(task.external_id, f"Blocked: {reason}")
        return task

    def unblock(self, task_id: str) -> Task:
        """Return a blocked task to pending."""
        plan_id, tracker = self._load()
        summary = self._find(tracker, task_id)
        new_status = TaskStateMachine(summary.status).fire("unblock")

        task = self.store.load_task(plan_id, task_id, tracker)
        task.status = new_status
        task.blocked_reason = None
        summary.status = new_status
        self._save(plan_id, tracker, task)
        self.sync_item(task)
        return task
