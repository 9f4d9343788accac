"""Task commands (start, next, show, reset, block, unblock)."""

from typing import Optional

import click

from agentic15.cli._utils import console, handle_workflow_errors, print_hints, project_root
from agentic15.models import TaskStatistics
from agentic15.state_machine import allowed_triggers
from agentic15.workflow import StartResult, TaskWorkflow


def _print_started(result: StartResult, platform_name: str) -> None:
    task = result.task
    verb = "Resumed" if result.resumed else "Started"
    console.print(f"\n[green]✓ {verb} task: {task.id}[/green]")
    console.print(f"  Title: {task.title}")
    if task.phase:
        console.print(f"  Phase: {task.phase}")
    if result.branch_created:
        console.print(f"  Branch: {result.branch} [dim](created from {result.main_branch})[/dim]")
    else:
        console.print(f"  Branch: {result.branch} [dim](existing)[/dim]")
    if not result.main_synced:
        console.print(f"[yellow]  Could not update {result.main_branch}; branch may be behind[/yellow]")

    if result.item_id is not None:
        verb = "Created" if result.item_created else "Linked"
        console.print(f"  {verb} {platform_name} item: #{result.item_id}")

    if task.description:
        console.print(f"\n[bold]Description[/bold]\n  {task.description}")
    if task.completion_criteria:
        console.print("\n[bold]Completion criteria[/bold]")
        for criterion in task.completion_criteria:
            console.print(f"  • {criterion}")

    print_hints(['Tell Claude: "Write code for this task"', "When done: agentic15 commit"])


def _print_all_done(statistics: TaskStatistics) -> None:
    console.print("\n[green]✓ No pending tasks.[/green]")
    console.print(
        f"  {statistics.completed}/{statistics.total_tasks} completed, "
        f"{statistics.blocked} blocked, {statistics.in_progress} in progress"
    )
    if statistics.completed == statistics.total_tasks:
        print_hints(["Archive the plan: agentic15 plan archive"])


@click.group()
def task() -> None:
    """Manage tasks in the active plan."""
    pass


@task.command("start")
@click.argument("task_id")
@handle_workflow_errors
def start(task_id: str) -> None:
    """Start TASK_ID on its feature branch."""
    workflow = TaskWorkflow(project_root())
    result = workflow.start(task_id)
    _print_started(result, workflow.router.get_platform_name())


@task.command("next")
@handle_workflow_errors
def next_task() -> None:
    """Start the next pending task."""
    workflow = TaskWorkflow(project_root())
    result = workflow.next()
    if result.all_done:
        _print_all_done(result.statistics)
        return
    _print_started(result.started, workflow.router.get_platform_name())


@task.command("show")
@click.argument("task_id", required=False)
@handle_workflow_errors
def show(task_id: Optional[str]) -> None:
    """Show TASK_ID, or the task in progress."""
    workflow = TaskWorkflow(project_root())
    plan_id = workflow.store.require_active_plan()
    tracker = workflow.store.load_tracker(plan_id)
    if task_id is None:
        running = tracker.in_progress()
        if running is None:
            console.print("[yellow]No task in progress[/yellow]")
            return
        task_id = running.id

    detail = workflow.store.load_task(plan_id, task_id, tracker)
    console.print(f"\n[bold cyan]{detail.id}[/bold cyan]: {detail.title}")
    console.print(f"  Status: {detail.status}")
    if detail.phase:
        console.print(f"  Phase: {detail.phase}")
    if detail.external_id is not None:
        console.print(f"  Item: #{detail.external_id}")
    if detail.blocked_reason:
        console.print(f"  Blocked: {detail.blocked_reason}")
    console.print(f"  Next moves: {', '.join(allowed_triggers(detail.status)) or 'none'}")
    if detail.description:
        console.print(f"\n{detail.description}")


@task.command("reset")
@click.argument("task_id", required=False)
@click.option("--force", is_flag=True, help="Also reset completed or blocked tasks")
@handle_workflow_errors
def reset(task_id: Optional[str], force: bool) -> None:
    """Return a task (default: the one in progress) to pending."""
    result = TaskWorkflow(project_root()).reset(task_id, force=force)
    console.print(f"[green]✓ Reset {result.task.id} ({result.previous_status} → pending)[/green]")
    print_hints(result.hints)


@task.command("block")
@click.argument("task_id")
@click.option("--reason", "-r", default=None, help="Why the task is blocked")
@handle_workflow_errors
def block(task_id: str, reason: Optional[str]) -> None:
    """Mark TASK_ID as blocked."""
    detail = TaskWorkflow(project_root()).block(task_id, reason)
    console.print(f"[yellow]Blocked {detail.id}[/yellow]" + (f": {reason}" if reason else ""))


@task.command("unblock")
@click.argument("task_id")
@handle_workflow_errors
def unblock(task_id: str) -> None:
    """Return a blocked TASK_ID to pending."""
    detail = TaskWorkflow(project_root()).unblock(task_id)
    console.print(f"[green]✓ Unblocked {detail.id}[/green]")
