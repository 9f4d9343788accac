"""Status command: plan progress at a glance."""

from datetime import datetime, timezone
from typing import Optional

import click
from rich.table import Table

from agentic15 import git_utils
from agentic15.cli._utils import console, handle_workflow_errors, project_root
from agentic15.models import TaskStatistics, TaskStatus, TaskTracker
from agentic15.plans import PlanStore

BAR_WIDTH = 30
MAX_MODIFIED_FILES = 10
MAX_RECENT = 3


def progress_bar(completed: int, total: int, width: int = BAR_WIDTH) -> str:
    """Render ``completed/total`` as a bar of █ and ░."""
    filled = round(width * completed / total) if total else 0
    return "█" * filled + "░" * (width - filled)


def _format_duration(minutes: int) -> str:
    """Format minutes as a human-readable duration (e.g., '5m', '2h', '1d')."""
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    days = hours // 24
    return f"{days}d"


def time_ago(timestamp: Optional[str], now: Optional[datetime] = None) -> str:
    """'5m ago' style text for an ISO timestamp, '?' when unparseable."""
    if not timestamp:
        return "?"
    try:
        then = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return "?"
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if (now - then).total_seconds() < 60:
        return "just now"
    return f"{_format_duration(int((now - then).total_seconds() / 60))} ago"


def _print_breakdown(stats: TaskStatistics) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Status")
    table.add_column("Count", justify="right")
    table.add_row("[green]Completed[/green]", str(stats.completed))
    table.add_row("[cyan]In progress[/cyan]", str(stats.in_progress))
    table.add_row("Pending", str(stats.pending))
    table.add_row("[red]Blocked[/red]", str(stats.blocked))
    console.print(table)


def _print_tasks(tracker: TaskTracker) -> None:
    running = tracker.in_progress()
    if running:
        console.print(f"\n[bold]Current task:[/bold] [cyan]{running.id}[/cyan] {running.title}")
        if running.started_at:
            console.print(f"  Started {time_ago(running.started_at)}")
    else:
        console.print("\n[bold]Current task:[/bold] none")
        pending = tracker.first_pending()
        if pending:
            console.print(f"[bold]Next task:[/bold] [cyan]{pending.id}[/cyan] {pending.title}")

    blocked = tracker.with_status(TaskStatus.BLOCKED)
    if blocked:
        console.print("\n[bold red]Blocked[/bold red]")
        for summary in blocked:
            console.print(f"  {summary.id} {summary.title}")

    completed = [t for t in tracker.with_status(TaskStatus.COMPLETED) if t.completed_at]
    completed.sort(key=lambda t: t.completed_at, reverse=True)
    if completed:
        console.print("\n[bold]Recently completed[/bold]")
        for summary in completed[:MAX_RECENT]:
            console.print(f"  [green]✓[/green] {summary.id} {summary.title} [dim]({time_ago(summary.completed_at)})[/dim]")


def _print_modified_files() -> None:
    try:
        files = git_utils.get_modified_files(project_root())
    except OSError:
        return
    if not files:
        return
    console.print(f"\n[bold]Modified files ({len(files)})[/bold]")
    for path in files[:MAX_MODIFIED_FILES]:
        console.print(f"  {path}")
    if len(files) > MAX_MODIFIED_FILES:
        console.print(f"  [dim]... and {len(files) - MAX_MODIFIED_FILES} more[/dim]")


@click.command("status")
@handle_workflow_errors
def status_command() -> None:
    """Show progress of the active plan."""
    store = PlanStore(project_root())
    tracker = store.load_tracker()
    stats = tracker.recompute_statistics()
    percent = round(100 * stats.completed / stats.total_tasks) if stats.total_tasks else 0

    console.print(f"\n[bold]{tracker.project_name or tracker.plan_id}[/bold] [dim]({tracker.plan_id})[/dim]")
    console.print(f"{progress_bar(stats.completed, stats.total_tasks)} {percent}% ({stats.completed}/{stats.total_tasks})")
    _print_breakdown(stats)
    _print_tasks(tracker)
    _print_modified_files()
