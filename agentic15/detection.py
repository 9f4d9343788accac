"""Platform detection.

Decides whether the project tracks work on GitHub or Azure DevOps by walking
a fixed priority chain and stopping at the first step that names a platform:

1. cache (only when the caller supplies one)
2. explicit override (``platform.type`` with ``platform.autoDetect: false``)
3. ``git remote get-url origin``
4. ``.git/config`` read from disk
5. feature flags (``github.enabled`` / ``azureDevOps.enabled``)

Every step records a StepResult so ``agentic15 platform show`` and debug logs
can explain why a step fell through.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from agentic15.config import Settings, load_settings
from agentic15.git_utils import get_remote_url
from agentic15.models import Platform
from agentic15.remote_url import extract_origin_url, parse_remote_url

logger = logging.getLogger(__name__)

AMBIGUOUS_FLAGS_WARNING = (
    "Both GitHub and Azure are enabled. Defaulting to GitHub. "
    "Set platform.type in settings.json to override."
)


class DetectionStep(str, Enum):
    CACHE = "cache"
    OVERRIDE = "override"
    GIT_REMOTE = "git_remote"
    GIT_CONFIG = "git_config"
    FEATURE_FLAGS = "feature_flags"


class DetectionFailure(str, Enum):
    """Why a detection step did not produce a platform."""

    NOT_SET = "not_set"
    INVALID_OVERRIDE = "invalid_override"
    NO_GIT = "no_git"
    NO_REMOTE = "no_remote"
    PARSE_FAILED = "parse_failed"
    READ_FAILED = "read_failed"


@dataclass
class StepResult:
    """Outcome of one step in the detection chain.

    Exactly one of ``platform`` and ``failure`` is set. A ``final`` result
    ends the chain even without a platform.
    """

    step: DetectionStep
    platform: Optional[Platform] = None
    failure: Optional[DetectionFailure] = None
    detail: str = ""
    final: bool = False

    @property
    def found(self) -> bool:
        return self.platform is not None


class DetectionCache:
    """Holds a detected platform for as long as the owner keeps it around.

    Detectors never share a cache unless one is passed to them explicitly.
    """

    def __init__(self) -> None:
        self.platform: Optional[Platform] = None

    def store(self, platform: Optional[Platform]) -> None:
        self.platform = platform

    def clear(self) -> None:
        self.platform = None


class PlatformDetector:
    """Detect the tracker platform for a project.

    Example usage:
        >>> detector = PlatformDetector(Path("."))
        >>> detector.detect()
        <Platform.GITHUB: 'github'>
        >>> [s.failure for s in detector.last_steps]
        [<DetectionFailure.NOT_SET: 'not_set'>, None]
    """

    def __init__(
        self,
        project_root: Optional[Path] = None,
        cache: Optional[DetectionCache] = None,
        settings_loader: Callable[[Path], Settings] = load_settings,
    ) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.cache = cache
        self._load_settings = settings_loader
        self.last_steps: List[StepResult] = []

    def detect(self, use_cache: bool = True) -> Optional[Platform]:
        """Run the detection chain.

        Args:
            use_cache: Consult and fill the cache, if one was supplied

        Returns:
            Detected platform, or None meaning "integration disabled"
        """
        self.last_steps = []

        if use_cache and self.cache is not None and self.cache.platform is not None:
            self.last_steps.append(StepResult(DetectionStep.CACHE, platform=self.cache.platform))
            return self.cache.platform

        settings = self._load_settings(self.project_root)
        steps = (
            lambda: self._override_step(settings),
            self._git_remote_step,
            self._git_config_step,
            lambda: self._feature_flag_step(settings),
        )

        platform = None
        for step in steps:
            result = step()
            self.last_steps.append(result)
            if result.found:
                platform = result.platform
                break
            if result.final:
                logger.debug("Detection stopped at %s: %s %s", result.step.value, result.failure.value, result.detail)
                break
            logger.debug("Detection step %s fell through: %s %s", result.step.value, result.failure.value, result.detail)

        if use_cache and self.cache is not None:
            self.cache.store(platform)
        return platform

    def clear_cache(self) -> None:
        """Forget any cached result (e.g. after settings change)."""
        if self.cache is not None:
            self.cache.clear()

    def _override_step(self, settings: Settings) -> StepResult:
        override = settings.platform
        if not override.type or override.auto_detect:
            return StepResult(DetectionStep.OVERRIDE, failure=DetectionFailure.NOT_SET)
        try:
            return StepResult(DetectionStep.OVERRIDE, platform=Platform(override.type))
        except ValueError:
            logger.warning("Unknown platform.type %r, platform integration disabled", override.type)
            return StepResult(
                DetectionStep.OVERRIDE,
                failure=DetectionFailure.INVALID_OVERRIDE,
                detail=override.type,
                final=True,
            )

    def _git_remote_step(self) -> StepResult:
        step = DetectionStep.GIT_REMOTE
        try:
            url = get_remote_url(self.project_root)
        except FileNotFoundError:
            return StepResult(step, failure=DetectionFailure.NO_GIT, detail="git not installed")
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or ""
            if "not a git repository" in stderr:
                return StepResult(step, failure=DetectionFailure.NO_GIT, detail=stderr.strip())
            return StepResult(step, failure=DetectionFailure.NO_REMOTE, detail=stderr.strip())
        return self._parse(step, url)

    def _git_config_step(self) -> StepResult:
        step = DetectionStep.GIT_CONFIG
        config_file = self.project_root / ".git" / "config"
        if not config_file.exists():
            return StepResult(step, failure=DetectionFailure.NO_GIT)
        try:
            text = config_file.read_text()
        except OSError as e:
            return StepResult(step, failure=DetectionFailure.READ_FAILED, detail=str(e))
        url = extract_origin_url(text)
        if url is None:
            return StepResult(step, failure=DetectionFailure.NO_REMOTE)
        return self._parse(step, url)

    def _parse(self, step: DetectionStep, url: str) -> StepResult:
        platform = parse_remote_url(url)
        if platform is None:
            return StepResult(step, failure=DetectionFailure.PARSE_FAILED, detail=url)
        return StepResult(step, platform=platform, detail=url)

    def _feature_flag_step(self, settings: Settings) -> StepResult:
        step = DetectionStep.FEATURE_FLAGS
        github = settings.github.enabled is True
        azure = settings.azure_devops.enabled is True

        if github and azure:
            logger.warning(AMBIGUOUS_FLAGS_WARNING)
            return StepResult(step, platform=Platform.GITHUB, detail="both enabled")
        if github:
            return StepResult(step, platform=Platform.GITHUB)
        if azure:
            return StepResult(step, platform=Platform.AZURE)
        return StepResult(step, failure=DetectionFailure.NOT_SET)
