"""Integration test fixtures for agentic15.

These fixtures create real git repositories with a local bare repository as
``origin``, so pushes and pulls work without network access and no
platform is detected.
"""

import json
import subprocess
from pathlib import Path
from typing import Generator

import pytest

from agentic15.plans import PlanStore
from tests.helpers import sample_plan
from tests.integration.helpers import git


@pytest.fixture
def git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a real git repository with an initial commit pushed to origin."""
    remote = tmp_path / "remote.git"
    subprocess.run(["git", "init", "--bare", str(remote)], check=True, capture_output=True)

    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()
    git(repo_path, "init")
    git(repo_path, "checkout", "-B", "main")
    git(repo_path, "config", "user.email", "test@example.com")
    git(repo_path, "config", "user.name", "Test User")
    git(repo_path, "config", "commit.gpgsign", "false")
    git(repo_path, "config", "pull.rebase", "false")
    git(repo_path, "remote", "add", "origin", str(remote))

    (repo_path / "README.md").write_text("# Test Project\n")
    git(repo_path, "add", ".")
    git(repo_path, "commit", "-m", "Initial commit")
    git(repo_path, "push", "-u", "origin", "main")

    yield repo_path


@pytest.fixture
def planned_repo(git_repo: Path) -> Path:
    """git_repo with a locked three-task plan committed on main."""
    store = PlanStore(git_repo)
    plan_id = store.generate("Build a todo app")
    store.plan_document_path(plan_id).write_text(json.dumps(sample_plan()))
    store.lock(plan_id)
    git(git_repo, "add", ".")
    git(git_repo, "commit", "-m", "Lock plan")
    git(git_repo, "push")
    return git_repo

