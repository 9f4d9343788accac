"""Tests for agentic15.platforms.azure."""

import json
import subprocess
from unittest.mock import Mock, patch

import pytest

from agentic15.config import AzureDevOpsConfig
from agentic15.models import Task
from agentic15.platforms.azure import (
    AzureDevOpsClient,
    AzureReposCodeHost,
    az_command,
    check_azure_cli,
    is_az_authenticated,
)
from agentic15.platforms.base import PullRequestState


def _client(**overrides):
    values = {"enabled": True, "organization": "contoso", "project": "Web"}
    values.update(overrides)
    return AzureDevOpsClient(AzureDevOpsConfig(**values))


def _value_after(args, flag):
    return args[args.index(flag) + 1]


class TestAzCommand:
    """Tests for az_command."""

    @patch("subprocess.run")
    def test_failure_raises_runtime_error(self, mock_run: Mock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(1, ["az"], stderr="denied")
        with pytest.raises(RuntimeError, match="Azure CLI command failed: denied"):
            az_command(["account", "show"])

    @patch("agentic15.platforms.azure.az_command", side_effect=RuntimeError("not logged in"))
    def test_is_az_authenticated_false(self, mock_az: Mock) -> None:
        assert is_az_authenticated() is False


class TestIsConfigured:
    """Tests for AzureDevOpsClient.is_configured."""

    @patch("agentic15.platforms.azure.is_az_authenticated")
    def test_needs_org_and_project(self, mock_auth: Mock) -> None:
        assert _client(project=None).is_configured() is False
        mock_auth.assert_not_called()

    @patch("agentic15.platforms.azure.is_az_authenticated", return_value=True)
    def test_login_check_runs_once(self, mock_auth: Mock) -> None:
        client = _client()
        assert client.is_configured() is True
        assert client.is_configured() is True
        mock_auth.assert_called_once()

    @patch("agentic15.platforms.azure.is_az_authenticated", return_value=False)
    def test_not_logged_in_warns(self, mock_auth: Mock, caplog) -> None:
        assert _client().is_configured() is False
        assert "az login" in caplog.text


@patch("agentic15.platforms.azure.is_az_authenticated", return_value=True)
class TestWorkItems:
    """Work item operations."""

    @patch("agentic15.platforms.azure.az_command")
    def test_create_item(self, mock_az: Mock, mock_auth: Mock) -> None:
        mock_az.return_value = json.dumps({"id": 314})
        assert _client().create_item("[TASK-001] Setup", "<p>x</p>", ["status: pending", "infra"]) == 314

        args = mock_az.call_args.args[0]
        assert args[:3] == ["boards", "work-item", "create"]
        assert _value_after(args, "--type") == "Task"
        assert _value_after(args, "--organization") == "https://dev.azure.com/contoso"
        assert _value_after(args, "--project") == "Web"
        assert _value_after(args, "--fields") == "System.Tags=status: pending;infra"

    @patch("agentic15.platforms.azure.az_command", side_effect=RuntimeError("boom"))
    def test_create_item_failure(self, mock_az: Mock, mock_auth: Mock) -> None:
        assert _client().create_item("t", "b", []) is None

    @pytest.mark.parametrize(
        "status,state,tag",
        [
            ("in_progress", "Active", "status: in_progress"),
            ("completed", "Closed", "status: completed"),
            ("blocked", "New", "status: blocked"),
            ("pending", "New", "status: pending"),
        ],
    )
    @patch("agentic15.platforms.azure.az_command")
    def test_update_state(self, mock_az: Mock, mock_auth: Mock, status, state, tag) -> None:
        show = {"fields": {"System.Tags": "infra; status: pending"}}
        mock_az.side_effect = [json.dumps(show), "{}"]

        assert _client().update_state(314, status) is True
        args = mock_az.call_args_list[1].args[0]
        assert _value_after(args, "--state") == state
        assert _value_after(args, "--fields") == f"System.Tags=infra;{tag}"

    @patch("agentic15.platforms.azure.az_command")
    def test_close_item_posts_comment_first(self, mock_az: Mock, mock_auth: Mock) -> None:
        mock_az.return_value = "{}"
        assert _client().close_item(314, "PR opened") is True

        first, second = [c.args[0] for c in mock_az.call_args_list]
        assert _value_after(first, "--discussion") == "PR opened"
        assert _value_after(second, "--state") == "Closed"

    def test_link_task_sets_work_item_id(self, mock_auth: Mock) -> None:
        task = Task(id="TASK-001")
        _client().link_task(task, 314)
        assert task.work_item_id == 314
        assert task.issue_number is None


class TestAzureReposCodeHost:
    """Tests for AzureReposCodeHost."""

    @patch("agentic15.platforms.azure.az_command")
    def test_create_pull_request(self, mock_az: Mock) -> None:
        mock_az.return_value = json.dumps({"pullRequestId": 5, "url": "https://dev.azure.com/pr/5"})
        pr = AzureReposCodeHost().create_pull_request("T", "B", head="feature/task-001", base="main")

        assert (pr.url, pr.number) == ("https://dev.azure.com/pr/5", 5)
        args = mock_az.call_args.args[0]
        assert _value_after(args, "--source-branch") == "feature/task-001"
        assert _value_after(args, "--target-branch") == "main"

    @pytest.mark.parametrize(
        "prs,expected",
        [
            ([{"status": "active"}], PullRequestState.OPEN),
            ([{"status": "completed"}], PullRequestState.MERGED),
            ([{"status": "abandoned"}], PullRequestState.ABANDONED),
            ([], PullRequestState.NONE),
        ],
    )
    def test_pull_request_state(self, prs, expected):
        with patch("agentic15.platforms.azure.az_command", return_value=json.dumps(prs)):
            assert AzureReposCodeHost().pull_request_state("feature/task-001") == expected


class TestCheckAzureCli:
    """Tests for check_azure_cli."""

    @patch("agentic15.platforms.azure.shutil.which", return_value=None)
    def test_not_installed(self, mock_which: Mock) -> None:
        status = check_azure_cli()
        assert status.installed is False
        assert status.ready is False

    @patch("agentic15.platforms.azure.is_az_authenticated", return_value=True)
    @patch("agentic15.platforms.azure.shutil.which", return_value="/usr/bin/az")
    @patch("agentic15.platforms.azure.az_command")
    def test_ready(self, mock_az: Mock, mock_which: Mock, mock_auth: Mock) -> None:
        def fake(args):
            if args == ["--version"]:
                return "azure-cli 2.60.0\ncore 2.60.0"
            if args[0] == "extension":
                return json.dumps([{"name": "azure-devops"}])
            return "organization = https://dev.azure.com/contoso\nproject = Web"

        mock_az.side_effect = fake
        status = check_azure_cli()

        assert status.ready
        assert status.version == "azure-cli 2.60.0"
        assert status.defaults_configured
        assert status.project == "Web"
