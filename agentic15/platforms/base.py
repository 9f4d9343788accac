"""Common interface for issue tracker and code host backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from agentic15.models import Platform, Task


@dataclass
class TrackerItem:
    """A task translated into the shape a tracker expects."""

    title: str
    body: str
    tags: List[str] = field(default_factory=list)


@dataclass
class PullRequest:
    """A pull request opened for a branch."""

    url: str
    number: Optional[int] = None


class PullRequestState(str, Enum):
    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"  # closed without merging
    ABANDONED = "abandoned"
    NONE = "none"  # no PR for the branch, or lookup failed


class TrackerClient(ABC):
    """Issue/work item operations for one platform.

    Every operation is best effort: when the client is not configured or the
    underlying CLI call fails, it logs a warning and returns None/False.
    Nothing here raises into the workflow.
    """

    platform: Platform
    display_name: str = ""

    def __init__(self, config: Any) -> None:
        self.config = config

    @property
    def auto_create(self) -> bool:
        return bool(self.config.auto_create)

    @property
    def auto_update(self) -> bool:
        return bool(self.config.auto_update)

    @property
    def auto_close(self) -> bool:
        return bool(self.config.auto_close)

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether identity fields are present and the backend is reachable."""

    @abstractmethod
    def create_item(self, title: str, body: str, tags: List[str]) -> Optional[int]:
        """Create an issue/work item and return its number/id."""

    @abstractmethod
    def update_state(self, item_id: int, status: str) -> bool:
        """Reflect a task status on the item."""

    @abstractmethod
    def add_comment(self, item_id: int, text: str) -> bool:
        pass

    @abstractmethod
    def close_item(self, item_id: int, comment: Optional[str] = None) -> bool:
        pass

    @abstractmethod
    def item_for_task(self, task: Task) -> TrackerItem:
        """Translate a task into this platform's title/body/tags."""

    @abstractmethod
    def link_task(self, task: Task, item_id: int) -> None:
        """Record ``item_id`` on the task under this platform's field name."""


class CodeHost(ABC):
    """Pull request operations, independent of tracker configuration."""

    platform: Platform
    display_name: str = ""

    @abstractmethod
    def create_pull_request(self, title: str, body: str, head: str, base: str) -> Optional[PullRequest]:
        """Open a PR from ``head`` into ``base``. None on failure."""

    @abstractmethod
    def pull_request_state(self, branch: str) -> PullRequestState:
        """State of the most recent PR whose source is ``branch``."""
