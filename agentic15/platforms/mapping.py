"""Status tables and task formatting shared by the tracker clients.

The tables are the exact labels/states already present on existing issues and
work items; changing a value orphans history on the tracker side.
"""

from html import escape
from typing import List, Optional, Tuple

from agentic15.models import Task, TaskStatus

STATUS_TAG_PREFIX = "status: "

GITHUB_STATUS_LABELS = {
    TaskStatus.PENDING: "status: pending",
    TaskStatus.IN_PROGRESS: "status: in progress",
    TaskStatus.COMPLETED: "status: completed",
    TaskStatus.BLOCKED: "status: blocked",
}

# Azure has no Blocked state in the basic process; blocked tasks stay New
# and carry a tag instead.
AZURE_STATUS_STATES = {
    TaskStatus.PENDING: "New",
    TaskStatus.IN_PROGRESS: "Active",
    TaskStatus.COMPLETED: "Closed",
    TaskStatus.BLOCKED: "New",
}

AZURE_STATUS_TAGS = {
    TaskStatus.BLOCKED: "status: blocked",
}


def github_label(status: str) -> str:
    """GitHub label for a task status.

    Raises:
        ValueError: If ``status`` is not a TaskStatus value
    """
    return GITHUB_STATUS_LABELS[TaskStatus(status)]


def azure_state(status: str) -> Tuple[str, Optional[str]]:
    """Azure work item state, plus the extra tag the status needs (if any)."""
    status = TaskStatus(status)
    return AZURE_STATUS_STATES[status], AZURE_STATUS_TAGS.get(status)


def item_title(task: Task) -> str:
    return f"[{task.id}] {task.title}"


def is_status_tag(tag: str) -> bool:
    return tag.startswith(STATUS_TAG_PREFIX)


def replace_status_tag(tags: List[str], new_tag: Optional[str]) -> List[str]:
    """Drop every ``status: *`` entry from ``tags`` and append ``new_tag``."""
    kept = [tag for tag in tags if not is_status_tag(tag)]
    if new_tag:
        kept.append(new_tag)
    return kept


def github_issue_body(task: Task) -> str:
    """Markdown issue body for a task."""
    parts = [task.description or ""]
    if task.phase:
        parts.append(f"**Phase:** {task.phase}")
    if task.completion_criteria:
        parts.append("### Completion Criteria\n" + "\n".join(f"- [ ] {c}" for c in task.completion_criteria))
    if task.test_cases:
        parts.append("### Test Cases\n" + "\n".join(f"- {c}" for c in task.test_cases))
    return "\n\n".join(p for p in parts if p)


def azure_description(task: Task) -> str:
    """HTML work item description for a task."""
    html = f"<h2>{escape(task.title)}</h2>\n\n"
    if task.description:
        html += f"<p>{escape(task.description)}</p>\n\n"
    if task.phase:
        html += f"<p><strong>Phase:</strong> {escape(task.phase)}</p>\n"
    for heading, items in (("Completion Criteria", task.completion_criteria), ("Test Cases", task.test_cases)):
        if items:
            html += f"<h3>{heading}</h3>\n<ul>\n"
            html += "".join(f"  <li>{escape(item)}</li>\n" for item in items)
            html += "</ul>\n\n"
    return html


def _phase_label(task: Task) -> List[str]:
    return [f"phase: {task.phase}"] if task.phase else []


def github_labels(task: Task) -> List[str]:
    """Task tags plus the status and phase labels for a new issue."""
    return list(task.tags) + [github_label(task.status)] + _phase_label(task)


def azure_tags(task: Task) -> List[str]:
    """Task tags plus the status and phase tags Azure uses for filtering."""
    return list(task.tags) + [f"{STATUS_TAG_PREFIX}{task.status}"] + _phase_label(task)
