"""Plan commands (generate, lock, archive, new)."""

from typing import Optional, Tuple

import click

from agentic15.cli._utils import console, fail, handle_workflow_errors, print_hints, project_root
from agentic15.errors import WorkflowError
from agentic15.models import TaskTracker
from agentic15.plans import AdminBranchResult, PlanStore, PlanWorkflow


def _read_description(words: Tuple[str, ...]) -> str:
    description = " ".join(words).strip()
    if description:
        return description
    stdin = click.get_text_stream("stdin")
    if not stdin.isatty():
        description = stdin.read().strip()
    if not description:
        fail(WorkflowError("A project description is required", hint='Usage: agentic15 plan generate "Build a todo app"'))
    return description


def _print_locked(tracker: TaskTracker) -> None:
    stats = tracker.statistics
    console.print(f"[green]✓ Plan {tracker.plan_id} locked[/green]")
    console.print(
        f"  Tasks: {stats.total_tasks} total, {stats.completed} completed, "
        f"{stats.in_progress} in progress, {stats.pending} pending"
    )


def _print_admin_result(result: AdminBranchResult) -> None:
    console.print(f"  Branch: {result.branch}")
    if result.pull_request:
        console.print(f"  PR: {result.pull_request.url}")
    elif result.pushed:
        console.print("[yellow]  Branch pushed; create the pull request manually[/yellow]")
    else:
        console.print(f"[yellow]  Push failed; run: git push -u origin {result.branch}[/yellow]")


@click.group(invoke_without_command=True)
@click.pass_context
@handle_workflow_errors
def plan(ctx: click.Context) -> None:
    """Manage the project plan.

    Without a subcommand, moves the active plan one step forward: locks it
    once PROJECT-PLAN.json exists, otherwise reports where it stands.
    """
    if ctx.invoked_subcommand is not None:
        return

    store = PlanStore(project_root())
    plan_id = store.active_plan_id()
    if plan_id is None:
        console.print("[yellow]No active plan[/yellow]")
        print_hints(['Create one: agentic15 plan generate "Your project requirements"'])
        return
    if store.is_locked(plan_id):
        console.print(f"[yellow]Plan already locked: {plan_id}[/yellow]")
        tracker = store.load_tracker(plan_id)
        stats = tracker.statistics
        console.print(f"  {stats.completed}/{stats.total_tasks} tasks completed")
        print_hints(["Start the next task: agentic15 task next"])
        return
    if not store.has_plan_document(plan_id):
        console.print(f"[yellow]Waiting for PROJECT-PLAN.json in .claude/plans/{plan_id}/[/yellow]")
        print_hints(['Tell Claude: "Create the project plan"', "Then run: agentic15 plan lock"])
        return

    _print_locked(store.lock(plan_id))
    print_hints(["Start the first task: agentic15 task next"])


@plan.command("generate")
@click.argument("description", nargs=-1)
@handle_workflow_errors
def generate(description: Tuple[str, ...]) -> None:
    """Write requirements for a new plan from DESCRIPTION (or stdin)."""
    text = _read_description(description)
    store = PlanStore(project_root())
    plan_id = store.generate(text)
    console.print(f"[green]✓ Created plan {plan_id}[/green]")
    console.print(f"  Requirements: {store.requirements_path(plan_id).relative_to(store.project_root)}")
    print_hints(['Tell Claude: "Create the project plan"', "Then run: agentic15 plan lock"])


@plan.command("lock")
@click.argument("plan_id", required=False)
@handle_workflow_errors
def lock(plan_id: Optional[str]) -> None:
    """Lock the active plan (or PLAN_ID) and write the task tracker."""
    tracker = PlanStore(project_root()).lock(plan_id)
    _print_locked(tracker)
    print_hints(["Start the first task: agentic15 task next"])


@plan.command("archive")
@click.argument("reason", nargs=-1)
@handle_workflow_errors
def archive(reason: Tuple[str, ...]) -> None:
    """Archive the active plan on an admin branch and open a PR."""
    workflow = PlanWorkflow(PlanStore(project_root()))
    result = workflow.archive(" ".join(reason) or None)
    console.print(f"[green]✓ Archived plan {result.plan_id}[/green]")
    if result.meta:
        console.print(f"  Reason: {result.meta.reason}")
    _print_admin_result(result)
    print_hints(["Merge the PR, then run: agentic15 sync"])


@plan.command("new")
@click.argument("description", nargs=-1)
@handle_workflow_errors
def new(description: Tuple[str, ...]) -> None:
    """Start a new plan on an admin branch and open a PR."""
    text = _read_description(description)
    result = PlanWorkflow(PlanStore(project_root())).create_new(text)
    console.print(f"[green]✓ Created plan {result.plan_id}[/green]")
    _print_admin_result(result)
    print_hints(["Merge the PR, then run: agentic15 sync"])
