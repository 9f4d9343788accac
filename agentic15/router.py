"""Route task-item operations to the detected platform.

A router detects once, binds at most one tracker client, and never falls back
to the other platform. Callers only ever talk to the router.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from agentic15.config import Settings, load_settings, resolve_azure_config, resolve_github_config
from agentic15.detection import PlatformDetector
from agentic15.models import Platform, Task
from agentic15.platforms import (
    AzureDevOpsClient,
    AzureReposCodeHost,
    CodeHost,
    GitHubClient,
    GitHubCodeHost,
    TrackerClient,
)

logger = logging.getLogger(__name__)

NO_PLATFORM_NAME = "None"


@dataclass(frozen=True)
class PlatformBackend:
    """Factories for everything a platform provides."""

    display_name: str
    build_client: Callable[[Settings, Path], TrackerClient]
    build_code_host: Callable[[], CodeHost]


BACKENDS: Dict[Platform, PlatformBackend] = {
    Platform.GITHUB: PlatformBackend(
        display_name="GitHub",
        build_client=lambda settings, root: GitHubClient(resolve_github_config(settings, root)),
        build_code_host=GitHubCodeHost,
    ),
    Platform.AZURE: PlatformBackend(
        display_name="Azure DevOps",
        build_client=lambda settings, root: AzureDevOpsClient(resolve_azure_config(settings)),
        build_code_host=AzureReposCodeHost,
    ),
}


class PlatformRouter:
    """Single entry point for issue/work item sync.

    Example usage:
        >>> router = PlatformRouter(Path("."))
        >>> router.get_platform()
        <Platform.GITHUB: 'github'>
        >>> router.create_task_item(task)
        42
    """

    def __init__(
        self,
        project_root: Optional[Path] = None,
        detector: Optional[PlatformDetector] = None,
    ) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.detector = detector or PlatformDetector(self.project_root)
        self.platform: Optional[Platform] = self.detector.detect()
        self.client: Optional[TrackerClient] = None

        backend = BACKENDS.get(self.platform) if self.platform else None
        if backend is None:
            return

        client = backend.build_client(load_settings(self.project_root), self.project_root)
        if client.config.is_enabled:
            self.client = client
        else:
            logger.debug("%s detected but its settings are incomplete", backend.display_name)

    def get_platform(self) -> Optional[Platform]:
        return self.platform

    def get_platform_name(self) -> str:
        """Human-readable platform name ("GitHub", "Azure DevOps" or "None")."""
        if self.platform is None:
            return NO_PLATFORM_NAME
        return BACKENDS[self.platform].display_name

    def get_client(self) -> Optional[TrackerClient]:
        return self.client

    def get_code_host(self) -> Optional[CodeHost]:
        """Pull request backend for the detected platform.

        Available even when issue sync is not configured, since PRs only need
        the platform CLI to be logged in.
        """
        if self.platform is None:
            return None
        return BACKENDS[self.platform].build_code_host()

    def is_configured(self) -> bool:
        """True iff a client is bound and reports itself ready."""
        return self.client is not None and self.client.is_configured()

    def is_github(self) -> bool:
        return self.platform == Platform.GITHUB

    def is_azure(self) -> bool:
        return self.platform == Platform.AZURE

    @property
    def auto_create(self) -> bool:
        return self.client is not None and self.client.auto_create

    @property
    def auto_update(self) -> bool:
        return self.client is not None and self.client.auto_update

    @property
    def auto_close(self) -> bool:
        return self.client is not None and self.client.auto_close

    def create_task_item(self, task: Task) -> Optional[int]:
        """Create the issue/work item for a task.

        Returns:
            Item number/id, or None when nothing is configured or the call failed
        """
        if self.client is None:
            return None
        item = self.client.item_for_task(task)
        return self.client.create_item(item.title, item.body, item.tags)

    def update_task_item(self, task: Task, item_id: int) -> bool:
        """Push the task's current status to its item."""
        if self.client is None:
            return False
        return self.client.update_state(item_id, task.status)

    def close_task_item(self, item_id: int, comment: Optional[str] = None) -> bool:
        if self.client is None:
            return False
        return self.client.close_item(item_id, comment)

    def add_comment(self, item_id: int, text: str) -> bool:
        if self.client is None:
            return False
        return self.client.add_comment(item_id, text)

    def link_task(self, task: Task, item_id: int) -> None:
        """Store ``item_id`` on the task under the platform's field name."""
        if self.client is not None:
            self.client.link_task(task, item_id)
