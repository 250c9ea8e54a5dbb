"""
Task deduplication across the hierarchy walk.

A task can show up in several lists (tasks in multiple lists) and as a
sub-item of another task. The collector keeps the first occurrence of each
id for the whole walk and stamps it with the space and list it was first
seen under.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from clickup_mcp.models import ContainerRef, Task


class TaskCollector:
    """Ordered, first-seen-wins set of tasks keyed by id."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def add(
        self,
        tasks: Iterable[Task],
        *,
        space: ContainerRef | None = None,
        source_list: ContainerRef | None = None,
    ) -> int:
        """
        Add tasks and their direct sub-items.

        Args:
            tasks: Tasks as returned by the API, possibly with ``subtasks``
            space: Space the tasks were found under
            source_list: List the tasks were found under

        Returns:
            Number of tasks that were new
        """
        added = 0
        for task in tasks:
            for item in task.flattened():
                if item.id in self._tasks:
                    continue
                update: dict[str, object] = {}
                if space is not None:
                    update["space"] = space
                if source_list is not None:
                    update["source_list"] = source_list
                    if item.list_ref is None:
                        update["list_ref"] = source_list
                self._tasks[item.id] = item.model_copy(update=update) if update else item
                added += 1
        return added

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())
