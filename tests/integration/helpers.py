"""Git helpers for integration tests."""

import subprocess
from pathlib import Path
from typing import List


def git(repo: Path, *args: str) -> str:
    """Run git in ``repo`` and return stdout."""
    result = subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, text=True)
    return result.stdout.strip()


def remote_branches(repo: Path) -> List[str]:
    """Branch names present on origin."""
    output = git(repo, "ls-remote", "--heads", "origin")
    return [line.split("refs/heads/", 1)[1] for line in output.splitlines() if "refs/heads/" in line]
