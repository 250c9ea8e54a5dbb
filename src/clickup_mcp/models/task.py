"""
Task model.

Tasks are built fresh from every API response. The remote walk never
mutates them; only the timer reconciliation overlays
``is_currently_tracked`` and ``elapsed_ms`` afterwards.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from clickup_mcp.models.hierarchy import ContainerRef
from clickup_mcp.models.user import Assignee


def _parse_millis(value: Any) -> int:
    """Parse a millisecond count that may arrive as int, float or string."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def _parse_optional_millis(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return _parse_millis(value)


class TaskStatus(BaseModel):
    """Status of a task: label, classification and ordering hint."""

    status: str = ""
    type: str | None = None
    color: str | None = None
    orderindex: int | None = None

    @classmethod
    def from_api(cls, data: Any) -> TaskStatus:
        if isinstance(data, str):
            return cls(status=data)
        if not isinstance(data, dict):
            return cls()
        order = data.get("orderindex")
        try:
            order = int(order) if order is not None else None
        except (TypeError, ValueError):
            order = None
        return cls(
            status=str(data.get("status") or ""),
            type=data.get("type"),
            color=data.get("color"),
            orderindex=order,
        )

    @property
    def key(self) -> str:
        """Label used for matching: trimmed and lower-cased."""
        return self.status.strip().lower()


class Task(BaseModel):
    """A ClickUp task with canonical assignee identities."""

    id: str
    name: str = ""
    status: TaskStatus = Field(default_factory=TaskStatus)
    url: str | None = None
    assignees: list[Assignee] = Field(default_factory=list)
    list_ref: ContainerRef | None = None
    space: ContainerRef | None = None
    # List the walk discovered this task under (may differ from list_ref).
    source_list: ContainerRef | None = None
    parent_id: str | None = None
    time_tracked: int = 0
    time_estimate: int | None = None
    due_date: str | None = None
    priority: str | None = None
    subtasks: list[Task] = Field(default_factory=list)

    is_currently_tracked: bool = False
    elapsed_ms: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any], *, nested: bool = True) -> Task:
        """
        Build a Task from a ClickUp task payload.

        Args:
            data: Raw task dict from ``/list/{id}/task`` or ``/task/{id}``
            nested: Parse one level of ``subtasks``; sub-items of sub-items
                are ignored

        Returns:
            Task with assignees normalized to canonical identities
        """
        subtasks: list[Task] = []
        if nested and isinstance(data.get("subtasks"), list):
            subtasks = [
                cls.from_api(sub, nested=False)
                for sub in data["subtasks"]
                if isinstance(sub, dict) and sub.get("id")
            ]

        priority = data.get("priority")
        if isinstance(priority, dict):
            priority = priority.get("priority")

        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            status=TaskStatus.from_api(data.get("status")),
            url=data.get("url"),
            assignees=[Assignee.from_api(a) for a in data.get("assignees") or []],
            list_ref=ContainerRef.from_api(data.get("list")),
            space=ContainerRef.from_api(data.get("space")),
            parent_id=data.get("parent"),
            time_tracked=_parse_millis(data.get("time_spent")),
            time_estimate=_parse_optional_millis(data.get("time_estimate")),
            due_date=str(data["due_date"]) if data.get("due_date") else None,
            priority=priority,
            subtasks=subtasks,
        )

    @property
    def assignee_ids(self) -> list[str]:
        return [a.id for a in self.assignees if a.id]

    def is_assigned_to(self, user_id: str) -> bool:
        return bool(user_id) and user_id in self.assignee_ids

    def flattened(self) -> list[Task]:
        """This task followed by its direct sub-items, none carrying children."""
        head = self.model_copy(update={"subtasks": []})
        return [head] + [sub.model_copy(update={"subtasks": []}) for sub in self.subtasks]
