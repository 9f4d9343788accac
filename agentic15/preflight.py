"""Environment checks for agentic15.

Verifies the external tools the workflow shells out to: git, the GitHub CLI
and the Azure CLI, plus whether issue sync is configured.

Usage:
    from agentic15.preflight import run_preflight

    results = run_preflight(Path("."))
    if all(r.passed for r in results):
        print("Environment ready!")
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from agentic15.git_utils import run_git, try_get_remote_url
from agentic15.models import Platform
from agentic15.platforms.azure import check_azure_cli
from agentic15.platforms.github import ensure_gh_cli
from agentic15.router import PlatformRouter


@dataclass
class PreflightResult:
    """Result of a single preflight check.

    Attributes:
        name: Name of the check that was run
        passed: Whether the check passed
        message: Human-readable message describing the result
        fix_hint: Optional suggestion for how to fix a failure
    """

    name: str
    passed: bool
    message: str
    fix_hint: Optional[str] = None


class PreflightCheck(ABC):
    """Base class for preflight checks."""

    name: str = ""
    description: str = ""

    @abstractmethod
    def check(self) -> PreflightResult:
        pass


class PreflightRegistry:
    """Registry for collecting and running preflight checks."""

    def __init__(self) -> None:
        self.checks: List[PreflightCheck] = []

    def register(self, check: PreflightCheck) -> None:
        self.checks.append(check)

    def run_all(self) -> List[PreflightResult]:
        """Run all registered checks and return results.

        A check that raises is reported as a failure; the rest still run.
        """
        results: List[PreflightResult] = []
        for check in self.checks:
            try:
                results.append(check.check())
            except Exception as e:
                results.append(
                    PreflightResult(
                        name=check.name,
                        passed=False,
                        message=f"Check error: {e}",
                    )
                )
        return results


class GitCheck(PreflightCheck):
    """Check that git is available and the project is a repository."""

    name = "git"
    description = "Verify git is available and this is a repository"

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root

    def check(self) -> PreflightResult:
        try:
            result = run_git(["status", "--porcelain"], cwd=self.project_root, check=False)
        except FileNotFoundError:
            return PreflightResult(name=self.name, passed=False, message="Git not found", fix_hint="Install git")
        if result.returncode != 0:
            return PreflightResult(
                name=self.name,
                passed=False,
                message=f"Git error: {result.stderr.strip()}",
                fix_hint="Run: git init",
            )
        return PreflightResult(name=self.name, passed=True, message="Git is working")


class GitRemoteCheck(PreflightCheck):
    """Check that an origin remote exists."""

    name = "git_remote"
    description = "Verify the origin remote is configured"

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root

    def check(self) -> PreflightResult:
        url = try_get_remote_url(self.project_root)
        if url is None:
            return PreflightResult(
                name=self.name,
                passed=False,
                message="No origin remote",
                fix_hint="Run: git remote add origin <url>",
            )
        return PreflightResult(name=self.name, passed=True, message=f"origin -> {url}")


class GitHubCliCheck(PreflightCheck):
    """Check that gh is installed and logged in."""

    name = "github_cli"
    description = "Verify GitHub CLI is installed and authenticated"

    def check(self) -> PreflightResult:
        try:
            ensure_gh_cli()
        except RuntimeError as e:
            message, _, hint = str(e).strip().partition("\n\n")
            return PreflightResult(name=self.name, passed=False, message=message, fix_hint=hint.strip() or None)
        return PreflightResult(name=self.name, passed=True, message="GitHub CLI authenticated")


class AzureCliCheck(PreflightCheck):
    """Check that az, the azure-devops extension and a login are present."""

    name = "azure_cli"
    description = "Verify Azure CLI, devops extension and login"

    def check(self) -> PreflightResult:
        status = check_azure_cli()
        if not status.installed:
            return PreflightResult(
                name=self.name,
                passed=False,
                message="Azure CLI not found",
                fix_hint="Install: https://aka.ms/installazurecli",
            )
        if not status.devops_extension:
            return PreflightResult(
                name=self.name,
                passed=False,
                message="azure-devops extension not installed",
                fix_hint="Run: az extension add --name azure-devops",
            )
        if not status.authenticated:
            return PreflightResult(
                name=self.name, passed=False, message="Azure CLI not authenticated", fix_hint="Run: az login"
            )
        return PreflightResult(name=self.name, passed=True, message=f"Azure CLI ready ({status.version})")


class TrackerSyncCheck(PreflightCheck):
    """Report the detected platform and whether issue sync will run."""

    name = "tracker_sync"
    description = "Verify issue/work item sync is configured"

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root

    def check(self) -> PreflightResult:
        router = PlatformRouter(self.project_root)
        name = router.get_platform_name()
        if router.get_platform() is None:
            return PreflightResult(
                name=self.name,
                passed=False,
                message="No platform detected; issue sync disabled",
                fix_hint="Add a GitHub or Azure DevOps origin remote, or set platform.type in .claude/settings.json",
            )
        if not router.is_configured():
            return PreflightResult(
                name=self.name,
                passed=False,
                message=f"{name} detected but issue sync is not configured",
                fix_hint=f"Run: agentic15 auth {router.get_platform().value}",
            )
        return PreflightResult(name=self.name, passed=True, message=f"{name} issue sync enabled")


def get_default_registry(project_root: Path, platform: Optional[Platform] = None) -> PreflightRegistry:
    """Registry with the checks relevant to ``platform`` (all CLIs when None)."""
    registry = PreflightRegistry()
    registry.register(GitCheck(project_root))
    registry.register(GitRemoteCheck(project_root))
    if platform in (None, Platform.GITHUB):
        registry.register(GitHubCliCheck())
    if platform in (None, Platform.AZURE):
        registry.register(AzureCliCheck())
    registry.register(TrackerSyncCheck(project_root))
    return registry


def run_preflight(project_root: Path, platform: Optional[Platform] = None) -> List[PreflightResult]:
    return get_default_registry(project_root, platform).run_all()
