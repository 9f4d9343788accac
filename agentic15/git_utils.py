"""Git utility functions for Agentic15.

All functions call git through subprocess. Functions that need a working
tree accept ``cwd`` (default: current directory).
"""

import subprocess
from pathlib import Path
from typing import List, Optional


def run_git(args: List[str], cwd: Optional[Path] = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run a git command and capture its output.

    Raises:
        subprocess.CalledProcessError: If ``check`` is set and git fails
        FileNotFoundError: If git is not installed
    """
    return subprocess.run(
        ["git"] + args,
        cwd=cwd,
        capture_output=True,
        text=True,
        check=check,
    )


def get_remote_url(cwd: Optional[Path] = None, remote: str = "origin") -> str:
    """Get the URL of a git remote.

    Raises:
        subprocess.CalledProcessError: If not a repo or the remote is missing
        FileNotFoundError: If git is not installed
    """
    return run_git(["remote", "get-url", remote], cwd=cwd).stdout.strip()


def try_get_remote_url(cwd: Optional[Path] = None) -> Optional[str]:
    """Like get_remote_url, but None instead of an exception."""
    try:
        return get_remote_url(cwd) or None
    except (OSError, subprocess.CalledProcessError):
        return None


def get_current_branch(cwd: Optional[Path] = None) -> str:
    """Get current git branch name.

    Raises:
        subprocess.CalledProcessError: If git command fails
    """
    return run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd).stdout.strip()


def has_uncommitted_changes(cwd: Optional[Path] = None) -> bool:
    """Check if there are uncommitted changes (staged or unstaged)."""
    return bool(run_git(["status", "--porcelain"], cwd=cwd).stdout.strip())


def get_modified_files(cwd: Optional[Path] = None) -> List[str]:
    """Paths reported by ``git status --porcelain``."""
    result = run_git(["status", "--porcelain"], cwd=cwd, check=False)
    if result.returncode != 0:
        return []
    return [line[3:] for line in result.stdout.splitlines() if line.strip()]


def get_main_branch(cwd: Optional[Path] = None) -> str:
    """Name of the main branch, based on the remote branches.

    Returns 'main' if origin/main exists, 'master' if only origin/master
    exists, and 'main' otherwise.
    """
    try:
        remotes = run_git(["branch", "-r"], cwd=cwd).stdout
    except (OSError, subprocess.CalledProcessError):
        return "main"
    if "origin/main" in remotes:
        return "main"
    if "origin/master" in remotes:
        return "master"
    return "main"


def checkout_branch(branch: str, cwd: Optional[Path] = None, create: bool = False) -> None:
    """Check out ``branch``, creating it with -b when ``create`` is set."""
    args = ["checkout", "-b", branch] if create else ["checkout", branch]
    run_git(args, cwd=cwd)


def checkout_or_create_branch(branch: str, cwd: Optional[Path] = None) -> bool:
    """Create and check out ``branch``, or check it out if it already exists.

    Returns:
        True if the branch was created, False if it already existed

    Raises:
        subprocess.CalledProcessError: If both attempts fail
    """
    try:
        checkout_branch(branch, cwd=cwd, create=True)
        return True
    except subprocess.CalledProcessError:
        checkout_branch(branch, cwd=cwd)
        return False


def pull(branch: str, cwd: Optional[Path] = None, remote: str = "origin") -> None:
    run_git(["pull", remote, branch], cwd=cwd)


def stage_all(cwd: Optional[Path] = None) -> None:
    run_git(["add", "-A"], cwd=cwd)


def stage_paths(paths: List[str], cwd: Optional[Path] = None) -> None:
    run_git(["add"] + paths, cwd=cwd)


def get_staged_files(cwd: Optional[Path] = None) -> List[str]:
    """Files staged for the next commit."""
    output = run_git(["diff", "--cached", "--name-only"], cwd=cwd).stdout
    return [line for line in output.splitlines() if line.strip()]


def commit(message: str, cwd: Optional[Path] = None) -> None:
    run_git(["commit", "-m", message], cwd=cwd)


def has_upstream(cwd: Optional[Path] = None) -> bool:
    """Whether the current branch tracks a remote branch."""
    result = run_git(
        ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"],
        cwd=cwd,
        check=False,
    )
    return result.returncode == 0


def push_branch(branch: str, cwd: Optional[Path] = None, set_upstream: bool = False) -> None:
    """Push ``branch`` to origin.

    Raises:
        subprocess.CalledProcessError: If the push fails
    """
    if set_upstream:
        run_git(["push", "-u", "origin", branch], cwd=cwd)
    else:
        run_git(["push"], cwd=cwd)


def delete_branch(branch: str, cwd: Optional[Path] = None) -> bool:
    """Delete a local branch, forcing the delete if it has unmerged commits.

    Returns:
        True if deleted, False if even the forced delete failed
    """
    try:
        run_git(["branch", "-d", branch], cwd=cwd)
        return True
    except subprocess.CalledProcessError:
        pass
    result = run_git(["branch", "-D", branch], cwd=cwd, check=False)
    return result.returncode == 0


def get_commits_ahead(base: str, branch: str, cwd: Optional[Path] = None) -> List[str]:
    """One-line log of commits on ``branch`` that are not on ``base``.

    Raises:
        subprocess.CalledProcessError: If either ref is unknown
    """
    output = run_git(["log", f"{base}..{branch}", "--oneline"], cwd=cwd).stdout
    return [line for line in output.splitlines() if line.strip()]
