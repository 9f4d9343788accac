"""Configuration management for Agentic15.

Settings come from three tiers, later tiers winning:

1. ``.claude/settings.json``: team defaults, committed
2. ``.claude/settings.local.json``: personal overrides, gitignored
3. Environment variables (``GITHUB_*``, ``AZURE_DEVOPS_*``, ``AGENTIC15_PLATFORM``)

Settings are re-read on every command; nothing is kept in memory between calls.
"""

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from agentic15.git_utils import try_get_remote_url
from agentic15.models import CamelModel
from agentic15.remote_url import parse_github_repo

log = logging.getLogger("agentic15.config")

SETTINGS_DIR = ".claude"
SETTINGS_FILE = "settings.json"
LOCAL_SETTINGS_FILE = "settings.local.json"


class PlatformSettings(CamelModel):
    """Explicit platform choice. Only honoured when ``autoDetect`` is false."""

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    auto_detect: bool = True


class GitHubSettings(CamelModel):
    """Raw ``github`` section. None means "not set in any tier"."""

    model_config = ConfigDict(extra="allow")

    enabled: Optional[bool] = None
    token: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    auto_create: Optional[bool] = None
    auto_update: Optional[bool] = None
    auto_close: Optional[bool] = None


class AzureDevOpsSettings(CamelModel):
    """Raw ``azureDevOps`` section."""

    model_config = ConfigDict(extra="allow")

    enabled: Optional[bool] = None
    organization: Optional[str] = None
    project: Optional[str] = None
    auto_create: Optional[bool] = None
    auto_update: Optional[bool] = None
    auto_close: Optional[bool] = None


class Settings(CamelModel):
    """Merged project settings.

    Keys that belong to the Claude Code host (permissions, hooks, ...) are
    kept as extras and ignored here.
    """

    model_config = ConfigDict(extra="allow")

    platform: PlatformSettings = Field(default_factory=PlatformSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    azure_devops: AzureDevOpsSettings = Field(
        default_factory=AzureDevOpsSettings, alias="azureDevOps"
    )


class GitHubConfig(BaseModel):
    """Resolved GitHub integration settings."""

    enabled: bool = True
    token: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    auto_create: bool = True
    auto_update: bool = True
    auto_close: bool = True

    @property
    def is_enabled(self) -> bool:
        """True when enabled and every identity field is present."""
        return bool(self.enabled and self.token and self.owner and self.repo)


class AzureDevOpsConfig(BaseModel):
    """Resolved Azure DevOps integration settings.

    Authentication is delegated to the Azure CLI, so there is no token here.
    """

    enabled: bool = False
    organization: Optional[str] = None
    project: Optional[str] = None
    auto_create: bool = False
    auto_update: bool = False
    auto_close: bool = False

    @property
    def is_enabled(self) -> bool:
        return bool(self.enabled and self.organization and self.project)

    @property
    def organization_url(self) -> str:
        return f"https://dev.azure.com/{self.organization}"


def settings_path(project_root: Path, local: bool = False) -> Path:
    """Path to the shared or local settings file."""
    name = LOCAL_SETTINGS_FILE if local else SETTINGS_FILE
    return project_root / SETTINGS_DIR / name


def _read_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Could not read %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s: expected a JSON object", path)
        return {}
    return data


def merge_settings(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into ``base`` one section deep.

    Sections that are objects in both are merged key by key, so a local file
    can set ``github.token`` without repeating the rest of ``github``.
    """
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _env_flag(env: Mapping[str, str], name: str) -> Optional[bool]:
    # Only the literal "true" enables a flag
    if name not in env:
        return None
    return env[name] == "true"


def apply_env_overrides(settings: Settings, env: Mapping[str, str]) -> Settings:
    """Apply environment variables on top of file settings (in place)."""
    github = settings.github
    for field, var in (("token", "GITHUB_TOKEN"), ("owner", "GITHUB_OWNER"), ("repo", "GITHUB_REPO")):
        if env.get(var):
            setattr(github, field, env[var])
    for field, var in (
        ("enabled", "GITHUB_ENABLED"),
        ("auto_create", "GITHUB_AUTO_CREATE"),
        ("auto_update", "GITHUB_AUTO_UPDATE"),
        ("auto_close", "GITHUB_AUTO_CLOSE"),
    ):
        flag = _env_flag(env, var)
        if flag is not None:
            setattr(github, field, flag)

    azure = settings.azure_devops
    for field, var in (
        ("organization", "AZURE_DEVOPS_ORGANIZATION"),
        ("project", "AZURE_DEVOPS_PROJECT"),
    ):
        if env.get(var):
            setattr(azure, field, env[var])
    for field, var in (
        ("enabled", "AZURE_DEVOPS_ENABLED"),
        ("auto_create", "AZURE_DEVOPS_AUTO_CREATE"),
        ("auto_update", "AZURE_DEVOPS_AUTO_UPDATE"),
        ("auto_close", "AZURE_DEVOPS_AUTO_CLOSE"),
    ):
        flag = _env_flag(env, var)
        if flag is not None:
            setattr(azure, field, flag)

    if env.get("AGENTIC15_PLATFORM"):
        settings.platform.type = env["AGENTIC15_PLATFORM"]
        settings.platform.auto_detect = False

    return settings


def load_settings(project_root: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """Load and merge all three settings tiers.

    Args:
        project_root: Project directory (default: current directory)
        env: Environment mapping (default: os.environ)

    Returns:
        Merged Settings (defaults if no files exist)
    """
    if project_root is None:
        project_root = Path.cwd()
    if env is None:
        env = os.environ

    shared = _read_json(settings_path(project_root))
    local = _read_json(settings_path(project_root, local=True))
    settings = Settings.model_validate(merge_settings(shared, local))
    return apply_env_overrides(settings, env)


def save_local_settings(project_root: Path, updates: Dict[str, Any]) -> Path:
    """Merge ``updates`` into ``settings.local.json`` and write it back.

    Returns:
        Path of the written file
    """
    path = settings_path(project_root, local=True)
    data = merge_settings(_read_json(path), updates)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path


def _gh_auth_token() -> Optional[str]:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return result.stdout.strip() or None


def _set_values(section: BaseModel) -> Dict[str, Any]:
    return {k: v for k, v in section.model_dump(include=set(type(section).model_fields)).items() if v is not None}


def resolve_github_config(
    settings: Settings, project_root: Optional[Path] = None, discover: bool = True
) -> GitHubConfig:
    """Build the effective GitHub config.

    With ``discover`` on, a missing token falls back to ``gh auth token`` and a
    missing owner/repo is read from the origin remote.
    """
    config = GitHubConfig(**_set_values(settings.github))
    if not discover:
        return config

    if not config.token:
        config.token = _gh_auth_token()
    if not (config.owner and config.repo):
        parsed = parse_github_repo(try_get_remote_url(project_root))
        if parsed:
            config.owner = config.owner or parsed[0]
            config.repo = config.repo or parsed[1]
    return config


def resolve_azure_config(settings: Settings) -> AzureDevOpsConfig:
    """Build the effective Azure DevOps config."""
    return AzureDevOpsConfig(**_set_values(settings.azure_devops))
