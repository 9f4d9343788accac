"""Agentic15: task-based AI-assisted development workflow."""

__version__ = "0.1.0"
