"""
Diagnostic dump of everything the walk can see.

Used for troubleshooting status configuration: lists every task and every
status declared on every list, without the assignment/status filter.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from clickup_mcp.api.client import ClickUpAPIClient
from clickup_mcp.exceptions import ClickUpAPIError
from clickup_mcp.models import Task, TaskStatus
from clickup_mcp.sync.collector import TaskCollector
from clickup_mcp.sync.walker import HierarchyWalker

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticReport:
    """Unfiltered view of tasks and statuses in a team."""

    user_id: str
    team_id: str
    statuses: dict[str, TaskStatus] = field(default_factory=dict)
    tasks: list[Task] = field(default_factory=list)
    lists_scanned: int = 0

    def by_status(self) -> dict[str, list[Task]]:
        """Tasks grouped by status label, labels sorted."""
        groups: dict[str, list[Task]] = defaultdict(list)
        for task in self.tasks:
            groups[task.status.status or "Unknown"].append(task)
        return {label: groups[label] for label in sorted(groups)}

    def assigned_to(self, user_id: str | None = None) -> list[Task]:
        uid = user_id if user_id is not None else self.user_id
        return [t for t in self.tasks if t.is_assigned_to(uid)]


async def collect_diagnostics(
    api: ClickUpAPIClient,
    team_id: str,
    *,
    walker: HierarchyWalker | None = None,
) -> DiagnosticReport:
    """
    Walk the whole team and record every task and declared status.

    Closed tasks are included and no assignee hint is sent. A failure to
    read one list's statuses is logged and that list's tasks are still read.
    """
    walker = walker or HierarchyWalker(api)
    user_id = await api.get_current_user_id()
    report = DiagnosticReport(user_id=user_id, team_id=team_id)
    collector = TaskCollector()

    async for space, task_list in walker.iter_lists(team_id):
        report.lists_scanned += 1
        try:
            for status in await api.get_list_statuses(task_list.id):
                report.statuses.setdefault(status.key, status)
        except ClickUpAPIError as e:
            logger.warning("Error getting statuses of list %s: %s", task_list.id, e)

        fetched = await walker.fetch_list(space, task_list, include_closed=True)
        collector.add(fetched.tasks, space=space.ref(), source_list=task_list.ref())

    report.tasks = collector.tasks
    logger.info(
        "Diagnostics: %d lists, %d tasks, %d statuses, %d assigned to user %s",
        report.lists_scanned,
        len(report.tasks),
        len(report.statuses),
        len(report.assigned_to()),
        user_id,
    )
    return report
