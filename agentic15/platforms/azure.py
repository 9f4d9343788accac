"""Azure DevOps integration for Agentic15.

Work items and pull requests go through the Azure CLI with the
azure-devops extension. There is no token handling here: ``az login`` is the
only supported authentication.
"""

import json
import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from agentic15.config import AzureDevOpsConfig
from agentic15.models import Platform, Task, TaskStatus
from agentic15.platforms.base import (
    CodeHost,
    PullRequest,
    PullRequestState,
    TrackerClient,
    TrackerItem,
)
from agentic15.platforms.mapping import (
    azure_description,
    azure_state,
    azure_tags,
    item_title,
    replace_status_tag,
    STATUS_TAG_PREFIX,
)

log = logging.getLogger("agentic15.platforms.azure")

AZ_LOGIN_HINT = "Azure CLI not authenticated. Run: az login"


def az_command(args: List[str]) -> str:
    """Run an az (Azure CLI) command.

    Raises:
        RuntimeError: If az command fails or is not installed
    """
    try:
        result = subprocess.run(
            ["az"] + args,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Azure CLI command failed: {e.stderr}") from e
    except FileNotFoundError as e:
        raise RuntimeError("Azure CLI (az) not found") from e


def is_az_authenticated() -> bool:
    """Whether ``az account show`` succeeds."""
    try:
        az_command(["account", "show", "--output", "json"])
        return True
    except RuntimeError:
        return False


def _split_tags(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [tag.strip() for tag in value.split(";") if tag.strip()]


class AzureDevOpsClient(TrackerClient):
    """Azure Boards work item backend."""

    platform = Platform.AZURE
    display_name = "Azure DevOps"

    def __init__(self, config: AzureDevOpsConfig) -> None:
        super().__init__(config)
        self._authenticated: Optional[bool] = None

    def is_configured(self) -> bool:
        """Organization and project present, and the Azure CLI is logged in.

        The login check runs once per client.
        """
        if not self.config.is_enabled:
            return False
        if self._authenticated is None:
            self._authenticated = is_az_authenticated()
            if not self._authenticated:
                log.warning(AZ_LOGIN_HINT)
        return self._authenticated

    @property
    def _org_args(self) -> List[str]:
        return ["--organization", self.config.organization_url]

    def create_item(self, title: str, body: str, tags: List[str]) -> Optional[int]:
        """Create a Task work item.

        Returns:
            Work item id, or None if unconfigured or the call failed
        """
        if not self.is_configured():
            return None
        args = [
            "boards", "work-item", "create",
            "--title", title,
            "--type", "Task",
            "--description", body,
            *self._org_args,
            "--project", self.config.project,
            "--output", "json",
        ]
        if tags:
            args += ["--fields", f"System.Tags={';'.join(tags)}"]
        try:
            return int(json.loads(az_command(args))["id"])
        except (RuntimeError, KeyError, TypeError, ValueError) as e:
            log.warning("Failed to create Azure work item: %s", e)
            return None

    def _current_tags(self, item_id: int) -> List[str]:
        output = az_command(
            ["boards", "work-item", "show", "--id", str(item_id), *self._org_args, "--output", "json"]
        )
        fields = json.loads(output).get("fields", {})
        return _split_tags(fields.get("System.Tags"))

    def update_state(self, item_id: int, status: str) -> bool:
        """Set the work item state and swap its ``status: *`` tag.

        Blocked tasks stay in the New state; the tag is what marks them.
        """
        if not self.is_configured():
            return False
        status = TaskStatus(status).value
        state, tag = azure_state(status)
        try:
            tags = replace_status_tag(self._current_tags(item_id), tag or f"{STATUS_TAG_PREFIX}{status}")
            az_command([
                "boards", "work-item", "update",
                "--id", str(item_id),
                "--state", state,
                "--fields", f"System.Tags={';'.join(tags)}",
                *self._org_args,
                "--output", "json",
            ])
            return True
        except (RuntimeError, json.JSONDecodeError, AttributeError) as e:
            log.warning("Failed to update work item state: %s", e)
            return False

    def add_comment(self, item_id: int, text: str) -> bool:
        if not self.is_configured():
            return False
        try:
            az_command([
                "boards", "work-item", "update",
                "--id", str(item_id),
                "--discussion", text,
                *self._org_args,
                "--output", "json",
            ])
            return True
        except RuntimeError as e:
            log.warning("Failed to add work item comment: %s", e)
            return False

    def close_item(self, item_id: int, comment: Optional[str] = None) -> bool:
        if not self.is_configured():
            return False
        if comment:
            self.add_comment(item_id, comment)
        try:
            az_command([
                "boards", "work-item", "update",
                "--id", str(item_id),
                "--state", "Closed",
                *self._org_args,
                "--output", "json",
            ])
            return True
        except RuntimeError as e:
            log.warning("Failed to close work item: %s", e)
            return False

    def item_for_task(self, task: Task) -> TrackerItem:
        return TrackerItem(title=item_title(task), body=azure_description(task), tags=azure_tags(task))

    def link_task(self, task: Task, item_id: int) -> None:
        task.work_item_id = item_id


class AzureReposCodeHost(CodeHost):
    """Pull requests through ``az repos pr``."""

    platform = Platform.AZURE
    display_name = "Azure DevOps"

    def create_pull_request(self, title: str, body: str, head: str, base: str) -> Optional[PullRequest]:
        try:
            output = az_command([
                "repos", "pr", "create",
                "--source-branch", head,
                "--target-branch", base,
                "--title", title,
                "--description", body,
                "--output", "json",
            ])
            data = json.loads(output)
        except (RuntimeError, json.JSONDecodeError) as e:
            log.warning("Failed to create pull request: %s", e)
            return None
        number = data.get("pullRequestId")
        return PullRequest(url=data.get("url", ""), number=number)

    def pull_request_state(self, branch: str) -> PullRequestState:
        try:
            output = az_command([
                "repos", "pr", "list",
                "--source-branch", branch,
                "--status", "all",
                "--output", "json",
            ])
            prs = json.loads(output)
        except (RuntimeError, json.JSONDecodeError):
            return PullRequestState.NONE

        if not prs:
            return PullRequestState.NONE
        status = prs[0].get("status")
        if status == "active":
            return PullRequestState.OPEN
        if status == "completed":
            return PullRequestState.MERGED
        if status == "abandoned":
            return PullRequestState.ABANDONED
        return PullRequestState.NONE


@dataclass
class AzureCliStatus:
    """Readiness of the Azure CLI for Agentic15."""

    installed: bool = False
    version: Optional[str] = None
    devops_extension: bool = False
    authenticated: bool = False
    organization: Optional[str] = None
    project: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.installed and self.devops_extension and self.authenticated

    @property
    def defaults_configured(self) -> bool:
        return bool(self.organization and self.project)


def check_azure_cli() -> AzureCliStatus:
    """Inspect the local Azure CLI: install, extension, login and defaults."""
    status = AzureCliStatus()
    if not shutil.which("az"):
        return status
    try:
        output = az_command(["--version"])
    except RuntimeError:
        return status
    status.installed = True
    status.version = output.splitlines()[0] if output else None

    try:
        extensions = json.loads(az_command(["extension", "list", "--output", "json"]))
        status.devops_extension = any(ext.get("name") == "azure-devops" for ext in extensions)
    except (RuntimeError, json.JSONDecodeError):
        status.devops_extension = False

    status.authenticated = is_az_authenticated()

    try:
        defaults = az_command(["devops", "configure", "--list"])
    except RuntimeError:
        return status
    org_match = re.search(r"organization\s*=\s*(.+)", defaults)
    project_match = re.search(r"project\s*=\s*(.+)", defaults)
    if org_match and org_match.group(1).strip():
        status.organization = org_match.group(1).strip()
    if project_match and project_match.group(1).strip():
        status.project = project_match.group(1).strip()
    return status
