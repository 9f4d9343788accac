"""Sync command."""

import click

from agentic15.cli._utils import console, handle_workflow_errors, print_hints, project_root
from agentic15.platforms import PullRequestState
from agentic15.sync import SyncWorkflow


@click.command("sync")
@handle_workflow_errors
def sync_command() -> None:
    """After a merge: switch to main, pull, delete the work branch."""
    result = SyncWorkflow(project_root()).run()

    if result.pr_state == PullRequestState.MERGED:
        console.print(f"[green]✓ PR for {result.previous_branch} is merged[/green]")
    elif result.pr_state == PullRequestState.ABANDONED:
        console.print(f"[yellow]PR for {result.previous_branch} was abandoned[/yellow]")
    console.print(f"[green]✓ {result.main_branch} is up to date[/green]")
    if result.was_work_branch:
        if result.deleted:
            console.print(f"[green]✓ Deleted branch {result.previous_branch}[/green]")
        else:
            console.print(f"[yellow]Could not delete {result.previous_branch}; remove it manually[/yellow]")
    print_hints(result.hints)
