"""Helpers shared by unit and integration tests."""

import json
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock


def write_settings(root: Path, data: Dict[str, Any], local: bool = False) -> Path:
    """Write .claude/settings(.local).json under ``root``."""
    path = root / ".claude" / ("settings.local.json" if local else "settings.json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


def sample_plan(task_count: int = 3) -> Dict[str, Any]:
    """A PROJECT-PLAN.json document with tasks spread over milestones."""
    tasks: List[Dict[str, Any]] = [
        {
            "id": f"TASK-{n:03d}",
            "title": f"Task number {n}",
            "description": f"Do thing {n}",
            "phase": "implementation",
            "completionCriteria": [f"Thing {n} works"],
        }
        for n in range(1, task_count + 1)
    ]
    return {
        "project": {
            "name": "Demo",
            "milestones": [
                {"name": "M1", "tasks": tasks[:1]},
                {"name": "M2", "tasks": tasks[1:]},
            ],
        }
    }


def make_router(configured: bool = False, code_host: Any = None, platform_name: str = "None") -> MagicMock:
    """A PlatformRouter stand-in.

    Unconfigured by default, like a project with no detectable platform.
    """
    router = MagicMock()
    router.is_configured.return_value = configured
    router.get_platform_name.return_value = platform_name
    router.get_code_host.return_value = code_host
    router.auto_create = configured
    router.auto_update = configured
    router.auto_close = configured
    return router
