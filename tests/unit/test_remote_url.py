"""Tests for agentic15.remote_url."""

import pytest

from agentic15.models import Platform
from agentic15.remote_url import extract_origin_url, parse_github_repo, parse_remote_url


class TestParseRemoteUrl:
    """Tests for parse_remote_url."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/app.git",
            "git@github.com:acme/app.git",
            "ssh://git@github.com/acme/app",
        ],
    )
    def test_github_urls(self, url):
        assert parse_remote_url(url) == Platform.GITHUB

    @pytest.mark.parametrize(
        "url",
        [
            "https://dev.azure.com/org/proj/_git/repo",
            "git@ssh.dev.azure.com:v3/org/proj/repo",
            "https://org.visualstudio.com/proj/_git/repo",
        ],
    )
    def test_azure_urls(self, url):
        assert parse_remote_url(url) == Platform.AZURE

    @pytest.mark.parametrize("url", ["", None, "https://gitlab.com/acme/app.git", "not a url"])
    def test_unknown_urls(self, url):
        assert parse_remote_url(url) is None

    def test_github_checked_before_azure(self):
        """A URL mentioning both hosts resolves to GitHub."""
        assert parse_remote_url("https://github.com/dev.azure.com/mirror") == Platform.GITHUB

    def test_matching_is_case_sensitive(self):
        assert parse_remote_url("https://GITHUB.COM/acme/app") is None


class TestExtractOriginUrl:
    """Tests for extract_origin_url."""

    def test_origin_url_found(self):
        text = (
            "[core]\n\tbare = false\n"
            '[remote "origin"]\n\turl = git@github.com:acme/app.git\n'
            "\tfetch = +refs/heads/*:refs/remotes/origin/*\n"
        )
        assert extract_origin_url(text) == "git@github.com:acme/app.git"

    def test_no_origin_section(self):
        assert extract_origin_url('[remote "upstream"]\n\turl = x\n') is None


class TestParseGithubRepo:
    """Tests for parse_github_repo."""

    @pytest.mark.parametrize(
        "url",
        ["https://github.com/acme/app.git", "git@github.com:acme/app.git", "https://github.com/acme/app"],
    )
    def test_owner_and_repo(self, url):
        assert parse_github_repo(url) == ("acme", "app")

    def test_non_github(self):
        assert parse_github_repo("https://dev.azure.com/org/proj/_git/repo") is None
        assert parse_github_repo(None) is None
