"""Git remote URL parsing.

Maps remote URLs to the tracker platform that hosts them. These helpers
are pure: no subprocess calls, no file access.
"""

import re
from typing import Optional, Tuple

from agentic15.models import Platform

ORIGIN_URL_PATTERN = re.compile(r'\[remote "origin"\][\s\S]*?url\s*=\s*(.+)')
GITHUB_REPO_PATTERN = re.compile(r"github\.com[:/]([^/]+)/([^/.]+)")


def parse_remote_url(url: Optional[str]) -> Optional[Platform]:
    """Map a git remote URL to a platform.

    Matching is plain substring containment, checked in order:
    ``github.com`` first, then ``dev.azure.com`` / ``visualstudio.com``.

    Args:
        url: Remote URL in HTTPS or SSH form

    Returns:
        The matching Platform, or None for anything else (including "")
    """
    if not url:
        return None
    if "github.com" in url:
        return Platform.GITHUB
    if "dev.azure.com" in url or "visualstudio.com" in url:
        return Platform.AZURE
    return None


def extract_origin_url(git_config_text: str) -> Optional[str]:
    """Pull the origin URL out of the text of a .git/config file."""
    match = ORIGIN_URL_PATTERN.search(git_config_text)
    if not match:
        return None
    return match.group(1).strip()


def parse_github_repo(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """Extract (owner, repo) from a GitHub remote URL.

    Works for both ``https://github.com/owner/repo.git`` and
    ``git@github.com:owner/repo.git``.
    """
    if not url:
        return None
    match = GITHUB_REPO_PATTERN.search(url)
    if not match:
        return None
    return match.group(1), match.group(2)
