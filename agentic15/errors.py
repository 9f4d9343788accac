"""Workflow errors.

These are the only conditions that abort a command. The CLI prints the message
in red and exits with status 1. Tracker sync problems never raise.
"""

from typing import Optional


class WorkflowError(Exception):
    """A workflow precondition was not met."""

    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class NoActivePlanError(WorkflowError):
    hint = 'Create a plan first: agentic15 plan generate "Your project requirements"'

    def __init__(self) -> None:
        super().__init__("No active plan")


class PlanNotFoundError(WorkflowError):
    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__(f"Plan not found: {plan_id}")


class TrackerNotFoundError(WorkflowError):
    hint = "Lock the plan first: agentic15 plan lock"

    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__(f"Task tracker not found for plan {plan_id}")


class PlanAlreadyLockedError(WorkflowError):
    def __init__(self, plan_id: str, hint: Optional[str] = None) -> None:
        self.plan_id = plan_id
        super().__init__(f"Plan already locked: {plan_id}", hint=hint)


class PlanFileMissingError(WorkflowError):
    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__(
            f"PROJECT-PLAN.json not found for {plan_id}",
            hint='Tell Claude: "Create the project plan", then run: agentic15 plan lock',
        )


class ActivePlanExistsError(WorkflowError):
    hint = "Archive it first: agentic15 plan archive"

    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__(f"A plan is already active: {plan_id}")


class TaskNotFoundError(WorkflowError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class TaskAlreadyInProgressError(WorkflowError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(
            f"Task {task_id} is already in progress",
            hint="Finish it with: agentic15 commit (or reset it with: agentic15 task reset)",
        )


class TaskAlreadyCompletedError(WorkflowError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id} is already completed")


class TaskNotInProgressError(WorkflowError):
    def __init__(self, task_id: str, status: str) -> None:
        self.task_id = task_id
        self.status = status
        super().__init__(
            f"Task {task_id} is {status}, not in progress",
            hint="Use --force to reset it anyway",
        )


class NoTaskInProgressError(WorkflowError):
    def __init__(self) -> None:
        super().__init__("No task is in progress")


class InvalidTransitionError(WorkflowError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, source: str, dest: str, message: Optional[str] = None) -> None:
        self.source = source
        self.dest = dest
        super().__init__(message or f"Invalid transition from '{source}' to '{dest}'")


class BranchCheckoutError(WorkflowError):
    def __init__(self, branch: str, detail: str = "") -> None:
        self.branch = branch
        super().__init__(f"Could not check out branch {branch}" + (f": {detail}" if detail else ""))


class GitRemoteMissingError(WorkflowError):
    hint = "Add one with: git remote add origin <url>"

    def __init__(self) -> None:
        super().__init__("No git remote 'origin' configured")


class NothingToCommitError(WorkflowError):
    def __init__(self) -> None:
        super().__init__("No changes to commit")


class GitCommandError(WorkflowError):
    """A git step the workflow depends on failed."""


class SyncBlockedError(WorkflowError):
    """Sync refused to run because it could lose work."""
