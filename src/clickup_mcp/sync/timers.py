"""
Local timer registry and reconciliation against the remote timer.

ClickUp runs at most one timer per user and is the only source of truth for
tracked time: when a timer stops, the task's ``time_spent`` absorbs it. The
local registry only remembers when *we* noticed a timer start so a live
elapsed counter can be shown on top of the remote total.

Every reconciliation trusts the remote "current timer" answer and resyncs
the registry to it:

    remote says A, registry {A}      -> unchanged
    remote says A, registry {B}      -> {A: now}   (B's time is folded remotely)
    remote says A, registry {}       -> {A: now}   (started elsewhere)
    remote says none, registry {...} -> {}

A timer started elsewhere is registered at the instant it was detected, so
its elapsed counter undercounts by however long it had already been
running. The true start is not guessed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator

from clickup_mcp.api.client import ClickUpAPIClient
from clickup_mcp.exceptions import ClickUpTimerAlreadyRunningError
from clickup_mcp.models import Task

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class TimerRegistry:
    """Map of task id -> local tracking start instant (ms since epoch)."""

    def __init__(self, clock: Clock = now_ms) -> None:
        self._clock = clock
        self._started: dict[str, int] = {}

    def now(self) -> int:
        return self._clock()

    def start(self, task_id: str, at: int | None = None) -> int:
        """Record a start instant, overwriting any previous one for the task."""
        started = self._clock() if at is None else at
        self._started[task_id] = started
        return started

    def stop(self, task_id: str) -> bool:
        """Forget a task's timer. Returns whether one existed."""
        return self._started.pop(task_id, None) is not None

    def clear(self) -> list[str]:
        """Forget all timers. Returns the ids that were cleared."""
        cleared = list(self._started)
        self._started.clear()
        return cleared

    def started_at(self, task_id: str) -> int | None:
        return self._started.get(task_id)

    def elapsed(self, task_id: str) -> int:
        """Milliseconds since the task's local start, or 0 if not tracked."""
        started = self._started.get(task_id)
        if started is None:
            return 0
        return max(0, self._clock() - started)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._started

    def __len__(self) -> int:
        return len(self._started)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._started))

    def snapshot(self) -> dict[str, int]:
        return dict(self._started)


class TimeTracker:
    """
    Start/stop operations and reconciliation over a TimerRegistry.

    Every method that awaits re-reads the registry after the await rather
    than relying on what it saw before, since another operation may have
    run in between.
    """

    def __init__(self, api: ClickUpAPIClient, registry: TimerRegistry | None = None) -> None:
        self._api = api
        self.registry = registry if registry is not None else TimerRegistry()

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def apply_remote_timer(self, remote_task_id: str | None, tasks: Iterable[Task] = ()) -> None:
        """
        Resync the registry to the remote current-timer id and flag tasks.

        Args:
            remote_task_id: Task the remote timer runs for, or None
            tasks: Freshly fetched tasks; ``is_currently_tracked`` and
                ``elapsed_ms`` are overwritten on each
        """
        registry = self.registry
        if remote_task_id is None:
            cleared = registry.clear()
            if cleared:
                logger.info(
                    "Cleared local timers for %s (no task currently tracked)", ", ".join(cleared)
                )
        else:
            for task_id in registry:
                if task_id != remote_task_id:
                    registry.stop(task_id)
                    logger.info(
                        "Cleared local timer for %s (tracking switched to %s)",
                        task_id,
                        remote_task_id,
                    )
            if remote_task_id not in registry:
                registry.start(remote_task_id)
                logger.info(
                    "Synced local timer for %s (started externally; elapsed excludes time "
                    "before detection)",
                    remote_task_id,
                )

        for task in tasks:
            task.is_currently_tracked = remote_task_id is not None and task.id == remote_task_id
            task.elapsed_ms = registry.elapsed(task.id) if task.is_currently_tracked else 0

    async def reconcile(self, team_id: str, tasks: Iterable[Task] = ()) -> str | None:
        """Query the remote timer and resync. Returns the remote task id."""
        remote_task_id = await self._api.get_current_timer_task_id(team_id)
        self.apply_remote_timer(remote_task_id, tasks)
        return remote_task_id

    # =========================================================================
    # Start / Stop
    # =========================================================================

    async def start(self, team_id: str, task_id: str) -> str:
        """
        Start tracking a task.

        If another timer is running it is stopped first and the start is
        retried once; a second refusal propagates.
        """
        try:
            await self._api.start_timer(team_id, task_id)
        except ClickUpTimerAlreadyRunningError:
            logger.info("Timer already running, stopping current timer first...")
            await self.stop(team_id)
            await self._api.start_timer(team_id, task_id)

        self.registry.start(task_id)
        logger.info("Started time tracking for task %s", task_id)
        return task_id

    async def stop(self, team_id: str, task_id: str | None = None) -> str | None:
        """
        Stop the running timer.

        Args:
            team_id: Team scope of the timer
            task_id: Task the caller believes is running; informational only,
                the remote answer decides which local timer is cleared

        Returns:
            Id of the task that was tracked, or None
        """
        tracked_id = await self._api.stop_timer(team_id)

        registry = self.registry
        if tracked_id is not None:
            registry.stop(tracked_id)
            logger.info(
                "Stopped and cleared local timer for task %s (time_spent updated remotely)",
                tracked_id,
            )
        elif len(registry) > 0:
            cleared = registry.clear()
            logger.info(
                "Stopped and cleared all local timers %s (tracked task unknown)", ", ".join(cleared)
            )
        elif task_id is not None:
            logger.debug("No remote timer was running for task %s", task_id)
        return tracked_id

    def elapsed(self, task_id: str) -> int:
        return self.registry.elapsed(task_id)

    def is_tracking(self, task_id: str) -> bool:
        return task_id in self.registry
