"""CLI for Agentic15."""

import click

from agentic15 import __version__
from agentic15.cli._utils import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool) -> None:
    """Agentic15: plan-driven task workflow for Claude Code.

    Plans become tasks, tasks become feature branches and pull requests,
    and each task is mirrored to a GitHub issue or Azure DevOps work item.
    """
    setup_logging(verbose)


# Import and register command modules
from agentic15.cli import auth
from agentic15.cli import commit
from agentic15.cli import hooks_cmd
from agentic15.cli import plan
from agentic15.cli import platform
from agentic15.cli import status
from agentic15.cli import sync
from agentic15.cli import task

# Plan and task groups
main.add_command(plan.plan)
main.add_command(task.task)

# Workflow commands
main.add_command(commit.commit_command)
main.add_command(status.status_command)
main.add_command(sync.sync_command)

# Platform and environment
main.add_command(platform.platform)
main.add_command(auth.auth)
main.add_command(auth.doctor)
main.add_command(hooks_cmd.hooks_group)
