"""CLI flow against a real git repository."""

import json
from pathlib import Path

from agentic15.cli import main
from agentic15.plans import PlanStore
from tests.helpers import sample_plan

from tests.integration.helpers import git


class TestCliFlow:
    """generate -> lock -> next -> status -> commit."""

    def test_plan_to_commit(self, cli_runner, git_repo: Path, monkeypatch):
        monkeypatch.chdir(git_repo)

        result = cli_runner.invoke(main, ["plan", "generate", "Build a todo app"])
        assert result.exit_code == 0, result.output

        store = PlanStore(git_repo)
        store.plan_document_path(store.active_plan_id()).write_text(json.dumps(sample_plan(2)))
        result = cli_runner.invoke(main, ["plan"])
        assert result.exit_code == 0, result.output
        git(git_repo, "add", ".")
        git(git_repo, "commit", "-m", "Lock plan")
        git(git_repo, "push")

        result = cli_runner.invoke(main, ["task", "next"])
        assert result.exit_code == 0, result.output
        assert "TASK-001" in result.output

        result = cli_runner.invoke(main, ["status"])
        assert result.exit_code == 0, result.output
        assert "Current task:" in result.output

        (git_repo / "todo.py").write_text("TODOS = []\n")
        result = cli_runner.invoke(main, ["commit"])
        assert result.exit_code == 0, result.output
        assert "Committed" in result.output
        assert PlanStore(git_repo).load_tracker().statistics.completed == 1

    def test_hooks_install(self, cli_runner, git_repo: Path, monkeypatch):
        monkeypatch.chdir(git_repo)
        result = cli_runner.invoke(main, ["hooks", "install"])
        assert result.exit_code == 0, result.output
        assert (git_repo / ".git" / "hooks" / "pre-commit").exists()
