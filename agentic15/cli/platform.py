"""Platform commands (show, set)."""

import click
from rich.table import Table

from agentic15.cli._utils import console, project_root
from agentic15.config import save_local_settings
from agentic15.detection import PlatformDetector
from agentic15.models import Platform
from agentic15.router import PlatformRouter

AUTO = "auto"


@click.group()
def platform() -> None:
    """Inspect or override issue tracker platform detection."""
    pass


@platform.command("show")
def show() -> None:
    """Show the detected platform and how it was chosen."""
    root = project_root()
    detector = PlatformDetector(root)
    router = PlatformRouter(root, detector=detector)

    console.print(f"\n[bold]Platform:[/bold] {router.get_platform_name()}")

    table = Table(title="Detection")
    table.add_column("Step", style="cyan")
    table.add_column("Result")
    table.add_column("Detail", style="dim")
    for step in detector.last_steps:
        if step.found:
            result = f"[green]{step.platform.value}[/green]"
        else:
            result = f"[yellow]{step.failure.value}[/yellow]"
        table.add_row(step.step.value, result, step.detail)
    console.print(table)

    if router.get_platform() is None:
        console.print("[yellow]Issue sync disabled[/yellow]")
    elif router.is_configured():
        client = router.get_client()
        console.print(
            f"[green]✓ Issue sync enabled[/green] "
            f"(create={client.auto_create}, update={client.auto_update}, close={client.auto_close})"
        )
    else:
        console.print(f"[yellow]Issue sync not configured. Run: agentic15 auth {router.get_platform().value}[/yellow]")


@platform.command("set")
@click.argument("choice", type=click.Choice([Platform.GITHUB.value, Platform.AZURE.value, AUTO]))
def set_platform(choice: str) -> None:
    """Pin the platform in settings.local.json, or go back to auto-detection."""
    if choice == AUTO:
        updates = {"platform": {"type": None, "autoDetect": True}}
    else:
        updates = {"platform": {"type": choice, "autoDetect": False}}
    path = save_local_settings(project_root(), updates)
    console.print(f"[green]✓ Platform set to {choice}[/green] [dim]({path.name})[/dim]")
