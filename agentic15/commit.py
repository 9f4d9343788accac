"""Commit workflow: complete the active task, commit, push, open a PR.

The task is marked completed before staging so the updated tracker goes into
the same commit as the work.
"""

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from agentic15 import git_utils
from agentic15.errors import GitCommandError, NoTaskInProgressError, NothingToCommitError
from agentic15.models import Task, TaskStatistics
from agentic15.platforms import PullRequest
from agentic15.workflow import TaskWorkflow

log = logging.getLogger("agentic15.commit")

TRACKER_COMMIT_MESSAGE = "[TRACKER] Update task completion status"
PR_TEMPLATE_PATH = Path(".github") / "PULL_REQUEST_TEMPLATE.md"
DESCRIPTION_PLACEHOLDER = "<!-- Provide a brief description of the changes in this PR -->"
FIXES_LINE = re.compile(r"Fixes #\s*\n")


def commit_message(task: Task) -> str:
    return f"[{task.id}] {task.title}"


def populate_pr_template(template: str, task: Task, message: str) -> str:
    """Fill the description and related-issue slots of a PR template."""
    body = template.replace(DESCRIPTION_PLACEHOLDER, task.description or message)
    related = f"Fixes #{task.issue_number}\n" if task.issue_number else f"Related to {task.id}\n"
    return FIXES_LINE.sub(lambda _: related, body, count=1)


def build_pr_body(task: Task, message: str) -> str:
    """PR body used when the repository has no PR template."""
    lines = ["## Task", ""]
    if task.issue_number:
        lines.append(f"Closes #{task.issue_number}")
    elif task.work_item_id:
        lines.append(f"AB#{task.work_item_id}")
    else:
        lines.append(task.id)
    lines += ["", "## Description", "", task.description or message, ""]
    if task.phase:
        lines += [f"**Phase:** {task.phase}", ""]
    lines += ["## Changes", "", f"- Implemented {task.title}", ""]
    if task.completion_criteria:
        lines += ["## Completion Criteria", ""]
        lines += [f"- [ ] {criterion}" for criterion in task.completion_criteria]
        lines.append("")
    lines += ["## Notes", "", "Auto-generated by Agentic15"]
    return "\n".join(lines)


@dataclass
class CommitResult:
    message: str
    branch: str
    staged_files: List[str] = field(default_factory=list)
    task: Optional[Task] = None
    pull_request: Optional[PullRequest] = None
    item_updated: bool = False
    statistics: Optional[TaskStatistics] = None

    @property
    def tracker_only(self) -> bool:
        """True when there was no active task and only leftovers were committed."""
        return self.task is None


class CommitWorkflow:
    """Run ``agentic15 commit``."""

    def __init__(self, project_root: Optional[Path] = None, tasks: Optional[TaskWorkflow] = None) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.tasks = tasks or TaskWorkflow(self.project_root)

    def run(self) -> CommitResult:
        """Commit the active task, or leftover tracker changes if there is none.

        If staging or committing fails the task goes back to in progress. A
        failed push keeps the local commit, so the task stays completed.

        Raises:
            NoActivePlanError / TrackerNotFoundError: No locked plan
            NoTaskInProgressError: No active task and nothing to commit
            NothingToCommitError: Nothing staged
            GitCommandError: A commit or push failed
        """
        tracker = self.tasks.store.load_tracker()
        running = tracker.in_progress()
        if running is None:
            if not git_utils.has_uncommitted_changes(self.project_root):
                raise NoTaskInProgressError()
            return self._commit_leftovers()

        saved = self._snapshot(tracker.plan_id, running.id)
        task = self.tasks.complete()
        message = commit_message(task)
        try:
            staged = self._stage()
            self._git(git_utils.commit, message, what="commit")
        except (GitCommandError, NothingToCommitError):
            self._restore(saved)
            log.warning("Commit failed; %s is back in progress", task.id)
            raise
        try:
            self._push(task.branch_name)
        except GitCommandError as e:
            e.hint = f"The commit is saved locally. Push it with: git push -u origin {task.branch_name}"
            raise

        result = CommitResult(message=message, branch=task.branch_name, staged_files=staged, task=task)
        result.pull_request = self._open_pull_request(task, message)
        result.item_updated = self._update_item(task, result.pull_request)
        result.statistics = self.tasks.store.load_tracker().statistics
        return result

    def _snapshot(self, plan_id: str, task_id: str) -> Dict[Path, str]:
        store = self.tasks.store
        paths = (store.tracker_path(plan_id), store.task_path(plan_id, task_id))
        return {path: path.read_text() for path in paths if path.exists()}

    def _restore(self, saved: Dict[Path, str]) -> None:
        for path, text in saved.items():
            path.write_text(text)

    def _commit_leftovers(self) -> CommitResult:
        branch = git_utils.get_current_branch(self.project_root)
        staged = self._stage()
        self._git(git_utils.commit, TRACKER_COMMIT_MESSAGE, what="commit")
        self._push(branch)
        return CommitResult(message=TRACKER_COMMIT_MESSAGE, branch=branch, staged_files=staged)

    def _git(self, func, *args, what: str) -> None:
        try:
            func(*args, cwd=self.project_root)
        except subprocess.CalledProcessError as e:
            raise GitCommandError(f"Failed to {what}: {(e.stderr or '').strip()}") from e

    def _stage(self) -> List[str]:
        self._git(git_utils.stage_all, what="stage files")
        staged = git_utils.get_staged_files(self.project_root)
        if not staged:
            raise NothingToCommitError()
        return staged

    def _push(self, branch: str) -> None:
        upstream = git_utils.has_upstream(self.project_root)
        try:
            git_utils.push_branch(branch, cwd=self.project_root, set_upstream=not upstream)
        except subprocess.CalledProcessError as e:
            raise GitCommandError(f"Failed to push: {(e.stderr or '').strip()}") from e

    def _pr_body(self, task: Task, message: str) -> str:
        template = self.project_root / PR_TEMPLATE_PATH
        if template.exists():
            return populate_pr_template(template.read_text(), task, message)
        return build_pr_body(task, message)

    def _open_pull_request(self, task: Task, message: str) -> Optional[PullRequest]:
        code_host = self.tasks.router.get_code_host()
        if code_host is None:
            log.warning("Could not detect platform - create the pull request manually")
            return None
        base = git_utils.get_main_branch(self.project_root)
        return code_host.create_pull_request(message, self._pr_body(task, message), head=task.branch_name, base=base)

    def _update_item(self, task: Task, pull_request: Optional[PullRequest]) -> bool:
        item_id = task.external_id
        router = self.tasks.router
        if item_id is None or not router.is_configured():
            return False

        updated = self.tasks.sync_item(task)
        comment = f"Pull request created: {pull_request.url}" if pull_request else None
        if router.auto_close:
            return router.close_task_item(item_id, comment) or updated
        if comment and router.auto_update:
            router.add_comment(item_id, f"{comment}\n\nTask is now in code review.")
        return updated
