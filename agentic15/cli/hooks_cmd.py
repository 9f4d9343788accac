"""Git hook commands."""

import sys

import click

from agentic15.cli._utils import console, project_root
from agentic15.hooks import install_git_hooks


@click.group("hooks")
def hooks_group() -> None:
    """Manage git hooks."""
    pass


@hooks_group.command("install")
def install() -> None:
    """Install agentic15 git hooks into .git/hooks."""
    root = project_root()
    try:
        installed = install_git_hooks(root)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    for path in installed:
        console.print(f"[green]✓ Installed {path.relative_to(root)}[/green]")
