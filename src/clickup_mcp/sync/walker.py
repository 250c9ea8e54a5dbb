"""
Hierarchy walker and paginator.

Walks team -> spaces -> (folders -> lists, folder-less lists) -> task pages,
strictly sequentially so that the order tasks are discovered in is
reproducible for a fixed remote state. A failing container is logged and
treated as empty; the walk carries on with the rest.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from clickup_mcp.api.client import ClickUpAPIClient
from clickup_mcp.constants import MAX_PAGES
from clickup_mcp.exceptions import ClickUpAPIError
from clickup_mcp.models import Space, Task, TaskList

logger = logging.getLogger(__name__)


@dataclass
class ListTasks:
    """Tasks fetched from one list, with the containers they came from."""

    space: Space
    task_list: TaskList
    tasks: list[Task] = field(default_factory=list)
    pages: int = 0
    truncated: bool = False


class HierarchyWalker:
    """Enumerates every list of a team and pages through its tasks."""

    def __init__(self, api: ClickUpAPIClient, *, max_pages: int = MAX_PAGES) -> None:
        self._api = api
        self.max_pages = max_pages

    async def iter_lists(self, team_id: str) -> AsyncIterator[tuple[Space, TaskList]]:
        """
        Yield (space, list) for every list in the team.

        Per space the folder lists come first, folder by folder, followed by
        the folder-less lists. Failing to list the team's spaces propagates;
        failures below that level only skip the affected container.
        """
        spaces = await self._api.list_spaces(team_id)
        logger.debug("Team %s has %d spaces", team_id, len(spaces))

        for space in spaces:
            try:
                folders = await self._api.list_folders(space.id)
            except ClickUpAPIError as e:
                logger.warning("Error fetching folders of space %s: %s", space.id, e)
                folders = []

            for folder in folders:
                try:
                    lists = await self._api.list_folder_lists(folder.id)
                except ClickUpAPIError as e:
                    logger.warning("Error fetching lists of folder %s: %s", folder.id, e)
                    continue
                for task_list in lists:
                    yield space, task_list

            try:
                folderless = await self._api.list_space_lists(space.id)
            except ClickUpAPIError as e:
                logger.warning("Error fetching folder-less lists of space %s: %s", space.id, e)
                continue
            for task_list in folderless:
                yield space, task_list

    async def fetch_list(
        self,
        space: Space,
        task_list: TaskList,
        *,
        assignee_ids: Sequence[str] | None = None,
        include_closed: bool = True,
    ) -> ListTasks:
        """
        Read every page of a list's tasks.

        Pages are requested from 0 while the previous page was full, up to
        ``max_pages`` requests. Any API error makes the list yield no tasks.
        """
        result = ListTasks(space=space, task_list=task_list)
        tasks: list[Task] = []
        page = 0
        try:
            while True:
                page_tasks, is_last = await self._api.list_tasks_page(
                    task_list.id,
                    page,
                    assignee_ids=assignee_ids,
                    include_closed=include_closed,
                )
                tasks.extend(page_tasks)
                page += 1
                logger.debug(
                    "List %r: fetched %d tasks (page %d)", task_list.name, len(page_tasks), page
                )
                if is_last:
                    break
                if page >= self.max_pages:
                    logger.warning(
                        "Reached pagination limit of %d pages for list %s", self.max_pages, task_list.id
                    )
                    result.truncated = True
                    break
        except ClickUpAPIError as e:
            logger.warning("Error fetching tasks from list %s: %s", task_list.id, e)
            result.pages = page
            return result

        result.tasks = tasks
        result.pages = page
        return result

    async def walk(
        self,
        team_id: str,
        *,
        assignee_ids: Sequence[str] | None = None,
        include_closed: bool = True,
    ) -> AsyncIterator[ListTasks]:
        """Yield the tasks of every list in the team, in walk order."""
        async for space, task_list in self.iter_lists(team_id):
            yield await self.fetch_list(
                space,
                task_list,
                assignee_ids=assignee_ids,
                include_closed=include_closed,
            )
