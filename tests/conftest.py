"""Pytest configuration and fixtures for agentic15 tests.

Clears every environment variable the settings loader reads so the
developer's shell never leaks into a test.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests.helpers import sample_plan

SETTINGS_ENV_VARS = (
    "GITHUB_TOKEN",
    "GITHUB_OWNER",
    "GITHUB_REPO",
    "GITHUB_ENABLED",
    "GITHUB_AUTO_CREATE",
    "GITHUB_AUTO_UPDATE",
    "GITHUB_AUTO_CLOSE",
    "AZURE_DEVOPS_ORGANIZATION",
    "AZURE_DEVOPS_PROJECT",
    "AZURE_DEVOPS_ENABLED",
    "AZURE_DEVOPS_AUTO_CREATE",
    "AZURE_DEVOPS_AUTO_UPDATE",
    "AZURE_DEVOPS_AUTO_CLOSE",
    "AGENTIC15_PLATFORM",
)


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    """Remove settings environment variables for all tests."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cli_runner():
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Project root with a generated plan awaiting PROJECT-PLAN.json."""
    from agentic15.plans import PlanStore

    PlanStore(tmp_path).generate("Build a todo app")
    return tmp_path


@pytest.fixture
def locked_project(project: Path) -> Path:
    """Project root with a locked three-task plan."""
    from agentic15.plans import PlanStore

    store = PlanStore(project)
    plan_id = store.active_plan_id()
    store.plan_document_path(plan_id).write_text(json.dumps(sample_plan()))
    store.lock(plan_id)
    return project
