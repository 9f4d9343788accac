"""Commit command."""

import click
from rich.markup import escape

from agentic15.cli._utils import console, handle_workflow_errors, print_hints, project_root
from agentic15.commit import CommitWorkflow


@click.command("commit")
@handle_workflow_errors
def commit_command() -> None:
    """Complete the active task, commit, push and open a pull request."""
    workflow = CommitWorkflow(project_root())
    result = workflow.run()

    if result.tracker_only:
        console.print(f"[green]✓ Committed tracker updates on {result.branch}[/green]")
        console.print(f"  Files: {len(result.staged_files)}")
        return

    console.print(f"[green]✓ Committed: {escape(result.message)}[/green]")
    console.print(f"  Branch: {result.branch}")
    console.print(f"  Files: {len(result.staged_files)}")
    if result.pull_request:
        console.print(f"  PR: {result.pull_request.url}")
    else:
        console.print("[yellow]  No pull request created; open one manually[/yellow]")
    if result.item_updated:
        console.print(f"  Updated {workflow.tasks.router.get_platform_name()} item #{result.task.external_id}")

    if result.statistics:
        stats = result.statistics
        console.print(f"\n  Progress: {stats.completed}/{stats.total_tasks} tasks completed")
    print_hints(["Merge the PR, then run: agentic15 sync", "Then start the next task: agentic15 task next"])
