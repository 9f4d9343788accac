"""Tests for agentic15.sync."""

import subprocess
from unittest.mock import Mock, patch

import pytest

from agentic15.errors import SyncBlockedError
from agentic15.platforms import PullRequestState
from agentic15.sync import SyncWorkflow, next_step_hints
from tests.helpers import make_router


@pytest.fixture
def mock_git():
    with patch("agentic15.sync.git_utils") as git:
        git.get_current_branch.return_value = "feature/task-001"
        git.get_main_branch.return_value = "main"
        git.has_uncommitted_changes.return_value = False
        git.get_commits_ahead.return_value = []
        git.delete_branch.return_value = True
        yield git


def _sync(root, state=PullRequestState.MERGED, code_host=True):
    host = None
    if code_host:
        host = Mock()
        host.pull_request_state.return_value = state
    return SyncWorkflow(root, router_factory=lambda r: make_router(code_host=host))


class TestNextStepHints:
    """Tests for next_step_hints."""

    def test_hints_by_branch_type(self):
        assert "agentic15 plan new" in next_step_hints("admin/archive-plan-plan-001-generated")[0]
        assert "agentic15 plan lock" in next_step_hints("admin/new-plan-plan-002-generated")[1]
        assert "agentic15 task next" in next_step_hints("feature/task-003")[0]
        assert next_step_hints("main")


class TestSyncWorkflow:
    """Tests for SyncWorkflow.run."""

    def test_merged_pr(self, mock_git, tmp_path):
        result = _sync(tmp_path).run()

        assert result.pr_state == PullRequestState.MERGED
        mock_git.checkout_branch.assert_called_once_with("main", cwd=tmp_path)
        mock_git.pull.assert_called_once_with("main", cwd=tmp_path)
        mock_git.delete_branch.assert_called_once_with("feature/task-001", cwd=tmp_path)
        assert result.deleted is True
        assert result.hints == next_step_hints("feature/task-001")

    def test_open_pr_blocks(self, mock_git, tmp_path):
        with pytest.raises(SyncBlockedError, match="not merged"):
            _sync(tmp_path, PullRequestState.OPEN).run()
        mock_git.checkout_branch.assert_not_called()

    def test_closed_pr_blocks(self, mock_git, tmp_path):
        with pytest.raises(SyncBlockedError, match="closed without merging"):
            _sync(tmp_path, PullRequestState.CLOSED).run()

    def test_abandoned_pr_warns_and_continues(self, mock_git, tmp_path, caplog):
        result = _sync(tmp_path, PullRequestState.ABANDONED).run()
        assert result.deleted
        assert "abandoned" in caplog.text

    def test_no_pr_with_unpushed_commits_blocks(self, mock_git, tmp_path):
        mock_git.get_commits_ahead.return_value = ["abc123 wip"]
        with pytest.raises(SyncBlockedError, match="unpushed commits"):
            _sync(tmp_path, PullRequestState.NONE).run()
        mock_git.get_commits_ahead.assert_called_once_with("origin/main", "feature/task-001", cwd=tmp_path)

    def test_no_pr_and_no_commits_continues(self, mock_git, tmp_path):
        assert _sync(tmp_path, PullRequestState.NONE).run().deleted

    def test_unverifiable_commits_block(self, mock_git, tmp_path):
        mock_git.get_commits_ahead.side_effect = subprocess.CalledProcessError(128, ["git"])
        with pytest.raises(SyncBlockedError, match="Could not verify"):
            _sync(tmp_path, PullRequestState.NONE).run()

    def test_uncommitted_changes_block(self, mock_git, tmp_path):
        mock_git.has_uncommitted_changes.return_value = True
        with pytest.raises(SyncBlockedError, match="uncommitted changes"):
            _sync(tmp_path).run()

    def test_other_branch_refused(self, mock_git, tmp_path):
        mock_git.get_current_branch.return_value = "experiment"
        with pytest.raises(SyncBlockedError, match="not a feature or admin branch"):
            _sync(tmp_path).run()

    def test_on_main_just_pulls(self, mock_git, tmp_path):
        mock_git.get_current_branch.return_value = "main"
        result = _sync(tmp_path).run()
        assert result.pr_state is None
        mock_git.pull.assert_called_once()
        mock_git.delete_branch.assert_not_called()

    def test_unknown_platform_checks_commits(self, mock_git, tmp_path):
        result = _sync(tmp_path, code_host=False).run()
        assert result.pr_state == PullRequestState.NONE
        mock_git.get_commits_ahead.assert_called_once()
