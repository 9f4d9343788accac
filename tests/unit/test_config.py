"""Tests for agentic15.config."""

import json
from unittest.mock import patch

from agentic15.config import (
    AzureDevOpsConfig,
    GitHubConfig,
    load_settings,
    merge_settings,
    resolve_azure_config,
    resolve_github_config,
    save_local_settings,
)
from tests.helpers import write_settings


class TestMergeSettings:
    """Tests for merge_settings."""

    def test_sections_merge_one_level_deep(self):
        merged = merge_settings(
            {"github": {"owner": "acme", "repo": "app"}, "other": 1},
            {"github": {"token": "t"}, "other": 2},
        )
        assert merged == {"github": {"owner": "acme", "repo": "app", "token": "t"}, "other": 2}


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults_when_no_files(self, tmp_path):
        settings = load_settings(tmp_path, env={})
        assert settings.platform.type is None
        assert settings.platform.auto_detect is True
        assert settings.github.enabled is None
        assert settings.azure_devops.enabled is None

    def test_local_overrides_shared(self, tmp_path):
        write_settings(tmp_path, {"github": {"owner": "acme", "repo": "app"}, "permissions": {"allow": []}})
        write_settings(tmp_path, {"github": {"owner": "me"}}, local=True)
        settings = load_settings(tmp_path, env={})
        assert settings.github.owner == "me"
        assert settings.github.repo == "app"

    def test_env_overrides_files(self, tmp_path):
        write_settings(tmp_path, {"azureDevOps": {"organization": "file-org"}})
        env = {
            "AZURE_DEVOPS_ORGANIZATION": "env-org",
            "AZURE_DEVOPS_ENABLED": "true",
            "GITHUB_AUTO_CLOSE": "false",
        }
        settings = load_settings(tmp_path, env=env)
        assert settings.azure_devops.organization == "env-org"
        assert settings.azure_devops.enabled is True
        assert settings.github.auto_close is False

    def test_only_literal_true_enables(self, tmp_path):
        settings = load_settings(tmp_path, env={"GITHUB_ENABLED": "1"})
        assert settings.github.enabled is False

    def test_platform_env_sets_override(self, tmp_path):
        settings = load_settings(tmp_path, env={"AGENTIC15_PLATFORM": "azure"})
        assert settings.platform.type == "azure"
        assert settings.platform.auto_detect is False

    def test_invalid_json_is_ignored(self, tmp_path, caplog):
        path = tmp_path / ".claude" / "settings.json"
        path.parent.mkdir()
        path.write_text("{not json")
        settings = load_settings(tmp_path, env={})
        assert settings.github.owner is None
        assert "Could not read" in caplog.text


class TestSaveLocalSettings:
    """Tests for save_local_settings."""

    def test_merges_into_existing_file(self, tmp_path):
        write_settings(tmp_path, {"github": {"token": "keep"}}, local=True)
        path = save_local_settings(tmp_path, {"github": {"owner": "acme"}})
        assert json.loads(path.read_text()) == {"github": {"token": "keep", "owner": "acme"}}


class TestResolvedConfigs:
    """Tests for GitHubConfig / AzureDevOpsConfig resolution."""

    def test_github_defaults(self):
        config = GitHubConfig()
        assert config.enabled and config.auto_create and config.auto_update and config.auto_close
        assert config.is_enabled is False

    def test_azure_defaults(self):
        config = AzureDevOpsConfig()
        assert not (config.enabled or config.auto_create or config.auto_update or config.auto_close)
        assert config.is_enabled is False

    def test_azure_is_enabled_needs_org_and_project(self):
        assert AzureDevOpsConfig(enabled=True, organization="o", project="p").is_enabled
        assert not AzureDevOpsConfig(enabled=True, organization="o").is_enabled

    def test_github_discovers_token_and_repo(self, tmp_path):
        settings = load_settings(tmp_path, env={})
        with patch("agentic15.config._gh_auth_token", return_value="gh-token"), patch(
            "agentic15.config.try_get_remote_url", return_value="git@github.com:acme/app.git"
        ):
            config = resolve_github_config(settings, tmp_path)
        assert (config.token, config.owner, config.repo) == ("gh-token", "acme", "app")
        assert config.is_enabled

    def test_github_explicit_values_win(self, tmp_path):
        settings = load_settings(tmp_path, env={"GITHUB_TOKEN": "t", "GITHUB_OWNER": "me", "GITHUB_REPO": "r"})
        with patch("agentic15.config._gh_auth_token") as mock_token, patch(
            "agentic15.config.try_get_remote_url"
        ) as mock_remote:
            config = resolve_github_config(settings, tmp_path)
        mock_token.assert_not_called()
        mock_remote.assert_not_called()
        assert (config.owner, config.repo) == ("me", "r")

    def test_github_without_discovery(self, tmp_path):
        config = resolve_github_config(load_settings(tmp_path, env={}), tmp_path, discover=False)
        assert config.token is None

    def test_configs_are_independent(self, tmp_path):
        settings = load_settings(tmp_path, env={"AZURE_DEVOPS_ENABLED": "true"})
        azure = resolve_azure_config(settings)
        github = resolve_github_config(settings, tmp_path, discover=False)
        assert azure.enabled is True
        assert github.auto_create is True
        assert azure.auto_create is False
