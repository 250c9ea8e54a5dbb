"""
Response formatting for ClickUp MCP tools.

Markdown for humans, JSON for programs. Durations are milliseconds
throughout and rendered compactly ("3h23m", "2m30s").
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from clickup_mcp.models import Task
from clickup_mcp.sync.diagnostics import DiagnosticReport

ElapsedFn = Callable[[str], int]


def format_duration(milliseconds: int | None, include_seconds: bool = False) -> str:
    """
    Format a millisecond duration as "3h23m", "3h", "45m" or "2m30s".

    Seconds are only shown with ``include_seconds`` and under one hour.
    Returns "" for empty or non-positive input.
    """
    if not milliseconds or milliseconds <= 0:
        return ""

    total_seconds = milliseconds // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    if include_seconds and hours == 0 and minutes < 1:
        return f"{seconds}s"
    if include_seconds and hours == 0:
        return f"{minutes}m{seconds}s"
    if hours > 0 and minutes > 0:
        return f"{hours}h{minutes}m"
    if hours > 0:
        return f"{hours}h"
    if minutes > 0:
        return f"{minutes}m"
    return ""


def format_time_display(task: Task, elapsed_ms: int = 0) -> str:
    """
    Build "[<live>+<tracked>/<estimate>]" for a task.

    Example: a task with a 2m30s local timer, 5m tracked and a 2h estimate
    renders as "[2m30s+5m/2h]". Returns "" when there is nothing to show.
    """
    live = elapsed_ms if task.is_currently_tracked else 0
    has_live = live > 0
    has_tracked = task.time_tracked > 0
    has_estimate = bool(task.time_estimate and task.time_estimate > 0)

    if not (has_live or has_tracked or has_estimate):
        return ""

    parts: list[str] = []
    if has_live:
        parts.append(format_duration(live, include_seconds=True))
    if has_tracked:
        tracked = format_duration(task.time_tracked)
        parts.append(f"+{tracked}" if has_live else tracked)
    elif has_live:
        parts.append("+0m")
    if has_estimate:
        parts.append(f"/{format_duration(task.time_estimate)}")
    return f"[{''.join(parts)}]"


# =============================================================================
# Tasks
# =============================================================================


def format_task_markdown(task: Task, elapsed_ms: int | None = None) -> str:
    elapsed = task.elapsed_ms if elapsed_ms is None else elapsed_ms
    time_display = format_time_display(task, elapsed)
    title = f"{task.name} {time_display}" if time_display else task.name
    recording = " (Recording)" if task.is_currently_tracked else ""

    lines = [f"## {title}", ""]
    lines.append(f"- **ID**: `{task.id}`")
    lines.append(f"- **Status**: {task.status.status or 'Unknown'}{recording}")
    location = " / ".join(ref.name for ref in (task.space, task.list_ref) if ref and ref.name)
    if location:
        lines.append(f"- **Location**: {location}")
    if task.assignees:
        lines.append(f"- **Assignees**: {', '.join(a.display_name for a in task.assignees)}")
    if task.time_tracked:
        lines.append(f"- **Time Tracked**: {format_duration(task.time_tracked)}")
    if task.time_estimate:
        lines.append(f"- **Estimate**: {format_duration(task.time_estimate)}")
    if task.url:
        lines.append(f"- **URL**: {task.url}")
    return "\n".join(lines)


def format_task_json(task: Task, elapsed_ms: int | None = None) -> dict[str, Any]:
    return {
        "id": task.id,
        "name": task.name,
        "status": task.status.status,
        "status_type": task.status.type,
        "url": task.url,
        "assignees": task.assignee_ids,
        "list": task.list_ref.model_dump() if task.list_ref else None,
        "space": task.space.model_dump() if task.space else None,
        "time_tracked_ms": task.time_tracked,
        "time_estimate_ms": task.time_estimate,
        "is_currently_tracked": task.is_currently_tracked,
        "elapsed_ms": task.elapsed_ms if elapsed_ms is None else elapsed_ms,
    }


def format_tasks_markdown(tasks: list[Task], elapsed: ElapsedFn | None = None) -> str:
    if not tasks:
        return 'No "In Progress" tasks assigned to you.'
    lines = [f"# In-Progress Tasks ({len(tasks)})", ""]
    for task in tasks:
        lines.append(format_task_markdown(task, elapsed(task.id) if elapsed else None))
        lines.append("")
    return "\n".join(lines).rstrip()


def format_tasks_json(tasks: list[Task], elapsed: ElapsedFn | None = None) -> str:
    return json.dumps(
        {
            "count": len(tasks),
            "tasks": [format_task_json(t, elapsed(t.id) if elapsed else None) for t in tasks],
        },
        indent=2,
    )


# =============================================================================
# Diagnostics
# =============================================================================


def format_diagnostics_markdown(report: DiagnosticReport, only_mine: bool = False) -> str:
    tasks = report.assigned_to() if only_mine else report.tasks
    lines = [
        "# ClickUp Diagnostics",
        "",
        f"- **User ID**: `{report.user_id}`",
        f"- **Team ID**: `{report.team_id}`",
        f"- **Lists scanned**: {report.lists_scanned}",
        f"- **Tasks**: {len(tasks)}",
        "",
        "## Statuses",
        "",
    ]
    for status in sorted(report.statuses.values(), key=lambda s: (s.orderindex or 0, s.key)):
        lines.append(f'- "{status.status}" (type: {status.type}, order: {status.orderindex})')

    groups: dict[str, list[Task]] = {}
    for task in tasks:
        groups.setdefault(task.status.status or "Unknown", []).append(task)

    lines.extend(["", "## Tasks by Status", ""])
    for label in sorted(groups):
        lines.append(f'### "{label}": {len(groups[label])} task(s)')
        for task in groups[label]:
            assignees = ", ".join(a.display_name for a in task.assignees) or "-"
            list_name = task.source_list.name if task.source_list else "-"
            space_name = task.space.name if task.space else "-"
            lines.append(f'- "{task.name}" (`{task.id}`)')
            lines.append(f"  List: {list_name} | Space: {space_name} | Assignees: {assignees}")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_diagnostics_json(report: DiagnosticReport, only_mine: bool = False) -> str:
    tasks = report.assigned_to() if only_mine else report.tasks
    return json.dumps(
        {
            "user_id": report.user_id,
            "team_id": report.team_id,
            "lists_scanned": report.lists_scanned,
            "statuses": [s.model_dump() for s in report.statuses.values()],
            "tasks": [format_task_json(t) for t in tasks],
        },
        indent=2,
    )


# =============================================================================
# Messages
# =============================================================================


def success_message(message: str) -> str:
    return f"**Success**: {message}"


def error_message(message: str, suggestion: str | None = None) -> str:
    text = f"**Error**: {message}"
    if suggestion:
        text += f"\n\n*Suggestion*: {suggestion}"
    return text
