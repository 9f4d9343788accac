"""GitHub integration for Agentic15.

Issues are managed through ``gh api`` authenticated with the configured token
(passed as GH_TOKEN), so the REST calls work whether or not the user ran
``gh auth login``. Pull requests use the regular ``gh pr`` commands.
"""

import json
import logging
import os
import shutil
import subprocess
from typing import Any, Dict, List, Optional

from agentic15.config import GitHubConfig
from agentic15.models import Platform, Task
from agentic15.platforms.base import (
    CodeHost,
    PullRequest,
    PullRequestState,
    TrackerClient,
    TrackerItem,
)
from agentic15.platforms.mapping import (
    github_issue_body,
    github_label,
    github_labels,
    is_status_tag,
    item_title,
)

log = logging.getLogger("agentic15.platforms.github")


def ensure_gh_cli() -> None:
    """Ensure gh CLI is installed and authenticated.

    Raises:
        RuntimeError: If gh not found or not authenticated
    """
    if not shutil.which("gh"):
        raise RuntimeError(
            "GitHub CLI (gh) not found.\n\n"
            "Install: https://cli.github.com/\n"
        )

    result = subprocess.run(
        ["gh", "auth", "status"],
        capture_output=True,
        text=True
    )

    if result.returncode != 0:
        raise RuntimeError(
            "Not authenticated with GitHub.\n\n"
            "Run: gh auth login\n"
        )


def gh_command(args: List[str], token: Optional[str] = None, input_data: Optional[str] = None) -> str:
    """Run a gh (GitHub CLI) command.

    Args:
        args: Command arguments
        token: Token to authenticate with (sets GH_TOKEN)
        input_data: Text fed to stdin (for ``--input -``)

    Returns:
        Command output

    Raises:
        RuntimeError: If gh command fails or is not installed
    """
    env = None
    if token:
        env = {**os.environ, "GH_TOKEN": token}
    try:
        result = subprocess.run(
            ["gh"] + args,
            input=input_data,
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"GitHub CLI command failed: {e.stderr}") from e
    except FileNotFoundError as e:
        raise RuntimeError("GitHub CLI (gh) not found") from e


class GitHubClient(TrackerClient):
    """GitHub Issues backend."""

    platform = Platform.GITHUB
    display_name = "GitHub"

    def __init__(self, config: GitHubConfig) -> None:
        super().__init__(config)

    def is_configured(self) -> bool:
        return self.config.is_enabled

    @property
    def _repo_path(self) -> str:
        return f"repos/{self.config.owner}/{self.config.repo}"

    def _api(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        args = ["api", path, "--method", method]
        input_data = None
        if payload is not None:
            args += ["--input", "-"]
            input_data = json.dumps(payload)
        output = gh_command(args, token=self.config.token, input_data=input_data)
        return json.loads(output) if output else None

    def create_item(self, title: str, body: str, tags: List[str]) -> Optional[int]:
        """Create an issue.

        Returns:
            Issue number, or None if unconfigured or the call failed
        """
        if not self.is_configured():
            return None
        try:
            data = self._api("POST", f"{self._repo_path}/issues", {"title": title, "body": body, "labels": tags})
            return int(data["number"])
        except (RuntimeError, KeyError, TypeError, ValueError) as e:
            log.warning("Failed to create GitHub issue: %s", e)
            return None

    def update_state(self, item_id: int, status: str) -> bool:
        """Swap the issue's ``status: *`` label, keeping every other label."""
        if not self.is_configured():
            return False
        try:
            issue = self._api("GET", f"{self._repo_path}/issues/{item_id}")
            labels = [label["name"] for label in issue.get("labels", [])]
            labels = [name for name in labels if not is_status_tag(name)]
            labels.append(github_label(status))
            self._api("PATCH", f"{self._repo_path}/issues/{item_id}", {"labels": labels})
            return True
        except (RuntimeError, KeyError, TypeError, AttributeError) as e:
            log.warning("Failed to update issue labels: %s", e)
            return False

    def add_comment(self, item_id: int, text: str) -> bool:
        if not self.is_configured():
            return False
        try:
            self._api("POST", f"{self._repo_path}/issues/{item_id}/comments", {"body": text})
            return True
        except RuntimeError as e:
            log.warning("Failed to add issue comment: %s", e)
            return False

    def close_item(self, item_id: int, comment: Optional[str] = None) -> bool:
        if not self.is_configured():
            return False
        if comment:
            self.add_comment(item_id, comment)
        try:
            self._api("PATCH", f"{self._repo_path}/issues/{item_id}", {"state": "closed"})
            return True
        except RuntimeError as e:
            log.warning("Failed to close issue: %s", e)
            return False

    def item_for_task(self, task: Task) -> TrackerItem:
        return TrackerItem(title=item_title(task), body=github_issue_body(task), tags=github_labels(task))

    def link_task(self, task: Task, item_id: int) -> None:
        task.issue_number = item_id


class GitHubCodeHost(CodeHost):
    """Pull requests through ``gh pr``, using whatever auth gh already has."""

    platform = Platform.GITHUB
    display_name = "GitHub"

    def create_pull_request(self, title: str, body: str, head: str, base: str) -> Optional[PullRequest]:
        try:
            output = gh_command(
                ["pr", "create", "--title", title, "--body", body, "--base", base, "--head", head]
            )
        except RuntimeError as e:
            log.warning("Failed to create pull request: %s", e)
            return None

        pr_url = output.strip().splitlines()[-1] if output.strip() else ""
        try:
            number: Optional[int] = int(pr_url.rstrip("/").split("/")[-1])
        except ValueError:
            number = None
        return PullRequest(url=pr_url, number=number)

    def pull_request_state(self, branch: str) -> PullRequestState:
        try:
            output = gh_command(["pr", "view", branch, "--json", "state,mergedAt"])
            pr = json.loads(output)
        except (RuntimeError, json.JSONDecodeError):
            return PullRequestState.NONE

        state = pr.get("state")
        if state == "OPEN":
            return PullRequestState.OPEN
        if state == "MERGED" or pr.get("mergedAt"):
            return PullRequestState.MERGED
        return PullRequestState.CLOSED
