"""Git hook installation.

Workflow enforcement runs through the Claude Code host, not git. The
pre-commit hook installed here only prints a reminder; a project-provided
``.claude/hooks/post-merge*`` script is copied in as the post-merge hook.
"""

import logging
import os
from pathlib import Path
from typing import List

log = logging.getLogger("agentic15.hooks")

HOOK_MODE = 0o755

PRE_COMMIT_HOOK = """#!/bin/sh
# agentic15 pre-commit hook
echo "agentic15: commit task work with 'agentic15 commit' so the tracker stays in sync"
exit 0
"""


def _write_hook(path: Path, content: str) -> None:
    path.write_text(content)
    try:
        os.chmod(path, HOOK_MODE)
    except OSError as e:
        log.warning("Could not make %s executable: %s", path, e)


def install_git_hooks(project_root: Path) -> List[Path]:
    """Install agentic15 git hooks into ``.git/hooks``.

    Args:
        project_root: Repository root

    Returns:
        Paths of the hooks that were written

    Raises:
        FileNotFoundError: If the project is not a git repository
    """
    git_dir = project_root / ".git"
    if not git_dir.is_dir():
        raise FileNotFoundError(f"Not a git repository: {project_root}")

    hooks_dir = git_dir / "hooks"
    hooks_dir.mkdir(exist_ok=True)
    installed = []

    pre_commit = hooks_dir / "pre-commit"
    _write_hook(pre_commit, PRE_COMMIT_HOOK)
    installed.append(pre_commit)

    sources = sorted((project_root / ".claude" / "hooks").glob("post-merge*"))
    if sources:
        post_merge = hooks_dir / "post-merge"
        _write_hook(post_merge, sources[0].read_text())
        installed.append(post_merge)

    return installed
