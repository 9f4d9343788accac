"""Shared utilities for CLI modules."""

import functools
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List, NoReturn

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from agentic15.errors import WorkflowError

# Shared Rich console instance for all CLI modules
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through Rich.

    Warnings always show; ``--verbose`` adds debug output such as why each
    platform detection step fell through.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def project_root() -> Path:
    """Commands always operate on the current directory."""
    return Path.cwd()


def fail(error: WorkflowError) -> NoReturn:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    if error.hint:
        console.print(f"[dim]{escape(error.hint)}[/dim]")
    sys.exit(1)


def handle_workflow_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn WorkflowError into a red message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except WorkflowError as e:
            fail(e)

    return wrapper


def print_hints(hints: List[str], title: str = "Next steps:") -> None:
    if not hints:
        return
    console.print(f"\n[bold]{title}[/bold]")
    for hint in hints:
        console.print(f"  • {hint}")


__all__ = [
    "console",
    "setup_logging",
    "project_root",
    "fail",
    "handle_workflow_errors",
    "print_hints",
]
