"""Authentication and environment commands (auth github, auth azure, doctor)."""

import sys

import click

from agentic15.cli._utils import console, project_root
from agentic15.config import save_local_settings
from agentic15.detection import PlatformDetector
from agentic15.git_utils import try_get_remote_url
from agentic15.platforms.azure import check_azure_cli
from agentic15.platforms.github import ensure_gh_cli
from agentic15.preflight import run_preflight
from agentic15.remote_url import parse_github_repo


@click.group()
def auth() -> None:
    """Connect agentic15 to GitHub or Azure DevOps."""
    pass


@auth.command("github")
def auth_github() -> None:
    """Check gh login and save the repository owner/name."""
    try:
        ensure_gh_cli()
    except RuntimeError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    console.print("[green]✓ GitHub CLI authenticated[/green]")

    root = project_root()
    parsed = parse_github_repo(try_get_remote_url(root))
    if parsed is None:
        console.print("[red]Error: Could not detect a GitHub repository from the origin remote[/red]")
        console.print("[dim]Set github.owner and github.repo in .claude/settings.local.json[/dim]")
        sys.exit(1)

    owner, repo = parsed
    path = save_local_settings(root, {"github": {"enabled": True, "owner": owner, "repo": repo}})
    console.print("[green]✓ GitHub issue sync configured[/green]")
    console.print(f"  Owner: {owner}")
    console.print(f"  Repo: {repo}")
    console.print("  Auth: gh CLI credentials")
    console.print(f"  Config: {path.relative_to(root)}")


@auth.command("azure")
def auth_azure() -> None:
    """Report Azure CLI readiness for Azure DevOps work items."""
    status = check_azure_cli()

    def line(ok: bool, text: str, fix: str) -> None:
        if ok:
            console.print(f"[green]✓[/green] {text}")
        else:
            console.print(f"[red]✗[/red] {text}  [dim]{fix}[/dim]")

    line(status.installed, f"Azure CLI installed {status.version or ''}".rstrip(), "https://aka.ms/installazurecli")
    line(status.devops_extension, "azure-devops extension", "az extension add --name azure-devops")
    line(status.authenticated, "Logged in", "az login")
    line(
        status.defaults_configured,
        f"Defaults: organization={status.organization or '-'} project={status.project or '-'}",
        "az devops configure --defaults organization=<url> project=<name>",
    )

    if not status.ready:
        sys.exit(1)
    console.print("\n[green]✓ Azure CLI ready[/green]")
    console.print("[dim]Enable work items with azureDevOps.enabled, organization and project in .claude/settings.json[/dim]")


@click.command("doctor")
def doctor() -> None:
    """Run environment checks for git, gh, az and issue sync."""
    root = project_root()
    platform = PlatformDetector(root).detect()
    results = run_preflight(root, platform)

    for result in results:
        if result.passed:
            console.print(f"[green]✓[/green] {result.name}: {result.message}")
        else:
            console.print(f"[red]✗[/red] {result.name}: {result.message}")
            if result.fix_hint:
                console.print(f"    [dim]{result.fix_hint}[/dim]")

    failed = [r for r in results if not r.passed]
    if failed:
        console.print(f"\n[yellow]{len(failed)} check(s) failed[/yellow]")
        sys.exit(1)
    console.print("\n[green]Environment ready![/green]")
