"""Tracker and code host backends (GitHub, Azure DevOps)."""

from agentic15.platforms.azure import AzureDevOpsClient, AzureReposCodeHost
from agentic15.platforms.base import (
    CodeHost,
    PullRequest,
    PullRequestState,
    TrackerClient,
    TrackerItem,
)
from agentic15.platforms.github import GitHubClient, GitHubCodeHost

__all__ = [
    "AzureDevOpsClient",
    "AzureReposCodeHost",
    "CodeHost",
    "GitHubClient",
    "GitHubCodeHost",
    "PullRequest",
    "PullRequestState",
    "TrackerClient",
    "TrackerItem",
]
