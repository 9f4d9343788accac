"""Post-merge cleanup: return to main, pull, delete the work branch.

Refuses to run whenever deleting the branch could lose work: uncommitted
changes, an unmerged PR, or commits that never made it into a PR.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from agentic15 import git_utils
from agentic15.errors import GitCommandError, SyncBlockedError
from agentic15.platforms import PullRequestState
from agentic15.router import PlatformRouter

log = logging.getLogger("agentic15.sync")

WORK_BRANCH_PREFIXES = ("feature/", "admin/")


def next_step_hints(previous_branch: str) -> List[str]:
    """What to do next, based on the kind of branch that was just merged."""
    if previous_branch.startswith("admin/archive-plan-"):
        return [
            'Start a new project: agentic15 plan new "Your project requirements"',
            "Or view help: agentic15 plan --help",
        ]
    if previous_branch.startswith("admin/new-plan-"):
        return [
            'Tell Claude: "Create the project plan"',
            "Lock the plan: agentic15 plan lock",
            "Start first task: agentic15 task next",
        ]
    if previous_branch.startswith("feature/"):
        return [
            "Start next task: agentic15 task next",
            "Check status: agentic15 status",
        ]
    return [
        "Check status: agentic15 status",
        "Start a task: agentic15 task next",
    ]


@dataclass
class SyncResult:
    previous_branch: str
    main_branch: str
    pr_state: Optional[PullRequestState] = None
    deleted: bool = False
    hints: List[str] = field(default_factory=list)

    @property
    def was_work_branch(self) -> bool:
        return self.previous_branch.startswith(WORK_BRANCH_PREFIXES)


class SyncWorkflow:
    """Run ``agentic15 sync``."""

    def __init__(
        self,
        project_root: Optional[Path] = None,
        router_factory: Callable[[Path], PlatformRouter] = PlatformRouter,
    ) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._router_factory = router_factory

    def run(self) -> SyncResult:
        """Sync with main.

        Raises:
            SyncBlockedError: Syncing now could lose work
            GitCommandError: Checkout or pull of main failed
        """
        try:
            branch = git_utils.get_current_branch(self.project_root)
        except subprocess.CalledProcessError as e:
            raise GitCommandError(f"Failed to get current branch: {(e.stderr or '').strip()}") from e
        main_branch = git_utils.get_main_branch(self.project_root)
        result = SyncResult(previous_branch=branch, main_branch=main_branch)

        if not result.was_work_branch and branch != main_branch:
            raise SyncBlockedError(
                f"You're on branch '{branch}', not a feature or admin branch",
                hint="This command syncs feature/admin branches with main",
            )
        if git_utils.has_uncommitted_changes(self.project_root):
            raise SyncBlockedError("You have uncommitted changes", hint="Commit or stash them first")

        if result.was_work_branch:
            result.pr_state = self._check_pull_request(branch, main_branch)

        try:
            git_utils.checkout_branch(main_branch, cwd=self.project_root)
        except subprocess.CalledProcessError as e:
            raise GitCommandError(f"Failed to switch to {main_branch}: {(e.stderr or '').strip()}") from e
        try:
            git_utils.pull(main_branch, cwd=self.project_root)
        except subprocess.CalledProcessError as e:
            raise GitCommandError(f"Failed to pull from {main_branch}: {(e.stderr or '').strip()}") from e

        if result.was_work_branch:
            result.deleted = git_utils.delete_branch(branch, cwd=self.project_root)
            if not result.deleted:
                log.warning("Could not delete branch %s", branch)

        result.hints = next_step_hints(branch)
        return result

    def _check_pull_request(self, branch: str, main_branch: str) -> PullRequestState:
        code_host = self._router_factory(self.project_root).get_code_host()
        if code_host is None:
            log.warning("Could not detect platform (GitHub or Azure DevOps), skipping PR status check")
            self._check_unpushed_commits(branch, main_branch)
            return PullRequestState.NONE

        state = code_host.pull_request_state(branch)
        if state == PullRequestState.OPEN:
            raise SyncBlockedError(
                f"Cannot sync: PR for {branch} is not merged",
                hint="Merge the PR (or close it and abandon the changes) before running sync",
            )
        if state == PullRequestState.CLOSED:
            raise SyncBlockedError(
                f"Cannot sync: PR for {branch} was closed without merging",
                hint="Reopen and merge it, or delete the branch yourself if the work is abandoned",
            )
        if state == PullRequestState.ABANDONED:
            log.warning("PR for %s was abandoned", branch)
        if state == PullRequestState.NONE:
            self._check_unpushed_commits(branch, main_branch)
        return state

    def _check_unpushed_commits(self, branch: str, main_branch: str) -> None:
        try:
            commits = git_utils.get_commits_ahead(f"origin/{main_branch}", branch, cwd=self.project_root)
        except (OSError, subprocess.CalledProcessError) as e:
            raise SyncBlockedError(
                f"Could not verify PR status for {branch}", hint="Aborting sync for safety"
            ) from e
        if commits:
            raise SyncBlockedError(
                f"Cannot sync: No PR found but {branch} has unpushed commits",
                hint=f"Create a PR first (agentic15 commit) or push manually: git push -u origin {branch}",
            )
