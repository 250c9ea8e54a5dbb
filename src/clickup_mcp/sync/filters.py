"""
In-progress task filter.

Both checks always run locally, even when the server was asked to filter
by assignee: the server-side filter is only an optimization hint.
"""

from __future__ import annotations

from collections.abc import Iterable

from clickup_mcp.constants import DEFAULT_IN_PROGRESS_STATUSES
from clickup_mcp.models import Task


def normalize_status(label: str) -> str:
    return label.strip().lower()


class InProgressFilter:
    """
    Keeps tasks assigned to a user whose status is one of a set.

    Args:
        user_id: Canonical id of the current user
        statuses: Status names counted as in progress (case-insensitive)
    """

    def __init__(
        self,
        user_id: str,
        statuses: Iterable[str] = DEFAULT_IN_PROGRESS_STATUSES,
    ) -> None:
        self.user_id = str(user_id).strip()
        self.statuses = frozenset(normalize_status(s) for s in statuses if s and s.strip())

    def is_assigned(self, task: Task) -> bool:
        return task.is_assigned_to(self.user_id)

    def has_in_progress_status(self, task: Task) -> bool:
        return task.status.key in self.statuses

    def __call__(self, task: Task) -> bool:
        return self.is_assigned(task) and self.has_in_progress_status(task)

    def apply(self, tasks: Iterable[Task]) -> list[Task]:
        return [t for t in tasks if self(t)]
