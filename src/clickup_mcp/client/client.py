"""
ClickUp Tasks Client.

ClickUpTasksClient is the entry point used by the MCP tools. It ties the
API adapter, hierarchy walker, deduplicator, in-progress filter and timer
reconciliation together and keeps the last task snapshot in memory.

Nothing is persisted: the snapshot and the local timer registry are rebuilt
from ClickUp on demand.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import TracebackType
from typing import TypeVar

from clickup_mcp.api.client import ClickUpAPIClient
from clickup_mcp.constants import DEFAULT_BASE_URL, DEFAULT_IN_PROGRESS_STATUSES, DEFAULT_TIMEOUT
from clickup_mcp.exceptions import ClickUpError
from clickup_mcp.models import Task
from clickup_mcp.settings import Settings, get_settings
from clickup_mcp.sync.collector import TaskCollector
from clickup_mcp.sync.diagnostics import DiagnosticReport, collect_diagnostics
from clickup_mcp.sync.filters import InProgressFilter
from clickup_mcp.sync.timers import Clock, TimerRegistry, TimeTracker, now_ms
from clickup_mcp.sync.walker import HierarchyWalker

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ClickUpTasksClient")


class ClickUpTasksClient:
    """
    In-progress tasks and time tracking for the current ClickUp user.

    Usage:
        async with ClickUpTasksClient(api_token="pk_...") as client:
            tasks = await client.get_in_progress_tasks()
            await client.start_tracking(tasks[0].id)
            stopped = await client.stop_tracking()
            await client.refresh_task(stopped)
    """

    def __init__(
        self,
        api_token: str | None = None,
        *,
        team_id: str | None = None,
        in_progress_statuses: Iterable[str] | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Clock = now_ms,
    ) -> None:
        self._api = ClickUpAPIClient(api_token, base_url=base_url, timeout=timeout)
        self._team_id = team_id
        self.in_progress_statuses = list(
            in_progress_statuses if in_progress_statuses is not None else DEFAULT_IN_PROGRESS_STATUSES
        )
        self._registry = TimerRegistry(clock)
        self._tasks: list[Task] = []
        self._connected = False

    @classmethod
    def from_settings(cls: type[T], settings: Settings | None = None) -> T:
        """Create a client from Settings (environment / .env)."""
        settings = settings or get_settings()
        if not settings.has_credentials:
            logger.warning("ClickUp API token not configured; remote operations will fail")
        return cls(
            api_token=settings.api_token,
            team_id=settings.team_id,
            in_progress_statuses=settings.in_progress_statuses,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Warm the identity cache when a token is configured."""
        if self._api.is_configured:
            user_id = await self._api.get_current_user_id()
            logger.info("Connected to ClickUp as user %s", user_id)
        self._connected = True

    async def disconnect(self) -> None:
        await self._api.close()
        self._connected = False

    async def __aenter__(self: T) -> T:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._connected

    def set_api_token(self, api_token: str | None) -> None:
        """
        Switch credentials.

        Cached identity, team and HTTP session are dropped by the adapter;
        the snapshot and local timers belonged to the previous user and are
        dropped here.
        """
        previous = self._api.generation
        self._api.api_token = api_token
        if self._api.generation != previous:
            self._tasks = []
            self._registry.clear()

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def api(self) -> ClickUpAPIClient:
        return self._api

    @property
    def registry(self) -> TimerRegistry:
        return self._registry

    @property
    def tasks(self) -> list[Task]:
        """Last snapshot of in-progress tasks."""
        return list(self._tasks)

    def _tracker(self) -> TimeTracker:
        return TimeTracker(self._api, self._registry)

    def _walker(self) -> HierarchyWalker:
        return HierarchyWalker(self._api)

    async def get_team_id(self) -> str:
        return await self._api.resolve_team_id(self._team_id)

    # =========================================================================
    # Full Refresh
    # =========================================================================

    async def get_in_progress_tasks(self) -> list[Task]:
        """
        Walk the team, keep tasks assigned to the current user with an
        in-progress status, and reconcile local timers.

        The result replaces the snapshot. When two refreshes overlap, the one
        that completes last wins.

        Returns:
            Filtered tasks with ``is_currently_tracked`` and ``elapsed_ms`` set
        """
        user_id = await self._api.get_current_user_id()
        team_id = await self.get_team_id()
        task_filter = InProgressFilter(user_id, self.in_progress_statuses)
        logger.info(
            "Refreshing tasks for user %s in team %s (statuses: %s)",
            user_id,
            team_id,
            ", ".join(sorted(task_filter.statuses)),
        )

        collector = TaskCollector()
        async for fetched in self._walker().walk(team_id, assignee_ids=[user_id]):
            collector.add(
                fetched.tasks,
                space=fetched.space.ref(),
                source_list=fetched.task_list.ref(),
            )

        tasks = task_filter.apply(collector)
        remote_id = await self._tracker().reconcile(team_id, tasks)
        if remote_id:
            logger.info("Currently tracked task: %s", remote_id)

        logger.info("Found %d in-progress tasks out of %d collected", len(tasks), len(collector))
        self._tasks = tasks
        return list(tasks)

    # =========================================================================
    # Single-Task Refresh
    # =========================================================================

    async def refresh_task(self, task_id: str) -> Task | None:
        """
        Refresh one task of the snapshot without a full walk.

        A task that no longer exists is dropped from the snapshot. Tasks not
        in the snapshot are left to the next full refresh. If the fetch
        fails, a full refresh runs instead.

        Returns:
            The merged task, or None if it was removed or is not in the snapshot
        """
        try:
            fetched = await self._api.get_task(task_id)
        except ClickUpError as e:
            logger.warning("Error updating task %s, falling back to full refresh: %s", task_id, e)
            await self.get_in_progress_tasks()
            return self._find(task_id)

        if fetched is None:
            before = len(self._tasks)
            self._tasks = [t for t in self._tasks if t.id != task_id]
            if len(self._tasks) != before:
                logger.info("Removed task %s from snapshot (no longer found)", task_id)
            return None

        for index, existing in enumerate(self._tasks):
            if existing.id != task_id:
                continue
            merged = fetched.model_copy(
                update={
                    "list_ref": existing.list_ref or fetched.list_ref,
                    "space": existing.space or fetched.space,
                    "source_list": existing.source_list,
                    "is_currently_tracked": task_id in self._registry,
                    "elapsed_ms": self._registry.elapsed(task_id),
                }
            )
            self._tasks[index] = merged
            return merged
        return None

    async def refresh_after_timer_change(self, task_id: str | None) -> None:
        """Refresh just the affected task when known, else everything."""
        if task_id:
            await self.refresh_task(task_id)
        else:
            await self.get_in_progress_tasks()

    def _find(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.id == task_id), None)

    def _overlay_registry(self) -> None:
        for task in self._tasks:
            task.is_currently_tracked = task.id in self._registry
            task.elapsed_ms = self._registry.elapsed(task.id)

    # =========================================================================
    # Time Tracking
    # =========================================================================

    async def start_tracking(self, task_id: str) -> str:
        """Start the remote timer for a task. Returns the task id."""
        team_id = await self.get_team_id()
        started = await self._tracker().start(team_id, task_id)
        self._overlay_registry()
        return started

    async def stop_tracking(self, task_id: str | None = None) -> str | None:
        """Stop the remote timer. Returns the id of the task that was tracked."""
        team_id = await self.get_team_id()
        stopped = await self._tracker().stop(team_id, task_id)
        self._overlay_registry()
        return stopped

    def elapsed(self, task_id: str) -> int:
        """Live local elapsed time in milliseconds (0 when not tracked)."""
        return self._registry.elapsed(task_id)

    def is_tracking(self, task_id: str) -> bool:
        return task_id in self._registry

    # =========================================================================
    # Diagnostics
    # =========================================================================

    async def collect_diagnostics(self) -> DiagnosticReport:
        """Every task and status in the team, unfiltered."""
        team_id = await self.get_team_id()
        return await collect_diagnostics(self._api, team_id, walker=self._walker())
