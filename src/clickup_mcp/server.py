#!/usr/bin/env python3
"""
ClickUp MCP Server.

This server exposes the ClickUp "in progress" task view and time tracking
as MCP tools.

Features:
    - In-progress tasks assigned to you, with live timer state
    - Single-task refresh
    - Start/stop time tracking
    - Diagnostic dump of all tasks and statuses
    - Optional background auto-refresh

Environment Variables:
    CLICKUP_API_TOKEN (or CLICKUP_API_KEY)
    CLICKUP_TEAM_ID (optional, defaults to first team)
    CLICKUP_IN_PROGRESS_STATUSES (optional, comma-separated)
    CLICKUP_AUTO_REFRESH / CLICKUP_REFRESH_INTERVAL (optional)
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from mcp.server.fastmcp import Context, FastMCP

from clickup_mcp.client import ClickUpTasksClient
from clickup_mcp.exceptions import ClickUpError
from clickup_mcp.settings import get_settings
from clickup_mcp.tools.formatting import (
    error_message,
    format_diagnostics_json,
    format_diagnostics_markdown,
    format_task_json,
    format_task_markdown,
    format_tasks_json,
    format_tasks_markdown,
    success_message,
)
from clickup_mcp.tools.inputs import (
    DiagnosticsInput,
    ResponseFormat,
    TaskListInput,
    TaskRefreshInput,
    TimerStartInput,
    TimerStopInput,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Management
# =============================================================================


async def auto_refresh_loop(client: ClickUpTasksClient, interval: float) -> None:
    """Refresh the snapshot every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            tasks = await client.get_in_progress_tasks()
            logger.debug("Auto refresh: %d tasks", len(tasks))
        except ClickUpError as e:
            logger.warning("Auto refresh failed: %s", e)


@asynccontextmanager
async def lifespan(mcp: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """
    Manage the ClickUp client lifecycle.

    Creates the client on startup, optionally starts the auto refresh loop,
    and closes everything on shutdown.
    """
    logger.info("Initializing ClickUp MCP Server...")
    settings = get_settings()
    client = ClickUpTasksClient.from_settings(settings)
    refresher: asyncio.Task[None] | None = None

    try:
        try:
            await client.connect()
        except ClickUpError as e:
            # Keep serving so tools can report the problem.
            logger.error("Failed to connect to ClickUp: %s", e)
        if settings.auto_refresh and settings.has_credentials:
            refresher = asyncio.create_task(auto_refresh_loop(client, settings.refresh_interval))
            logger.info("Auto refresh every %d seconds", settings.refresh_interval)
        yield {"client": client}
    finally:
        if refresher is not None:
            refresher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await refresher
        await client.disconnect()
        logger.info("ClickUp client disconnected")


# Initialize FastMCP server
mcp = FastMCP(
    "clickup_mcp",
    lifespan=lifespan,
)


def get_client(ctx: Context) -> ClickUpTasksClient:
    """Get the ClickUp client from context."""
    return ctx.request_context.lifespan_context["client"]


# =============================================================================
# Error Handling
# =============================================================================


def handle_error(e: Exception, operation: str) -> str:
    """Handle exceptions and return user-friendly error messages."""
    logger.exception("Error in %s: %s", operation, e)

    error_type = type(e).__name__

    if "Authentication" in error_type:
        return error_message(
            f"Authentication failed: {e}",
            "Set CLICKUP_API_TOKEN (or CLICKUP_API_KEY) to a valid personal API token.",
        )
    elif "NotFound" in error_type:
        return error_message(
            f"Resource not found: {e}",
            "Verify the ID is correct and the resource exists.",
        )
    elif "Configuration" in error_type:
        return error_message(
            f"Configuration error: {e}",
            "Check your environment variables and settings.",
        )
    elif "APIError" in error_type or "AlreadyRunning" in error_type:
        return error_message(f"ClickUp API error: {e}")
    else:
        return error_message(f"Unexpected error: {e}")


# =============================================================================
# Task Tools
# =============================================================================


@mcp.tool(
    name="clickup_list_in_progress_tasks",
    annotations={
        "title": "List In-Progress Tasks",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def clickup_list_in_progress_tasks(params: TaskListInput, ctx: Context) -> str:
    """
    List tasks assigned to you whose status counts as "in progress".

    Walks every space, folder and list of the team, deduplicates tasks that
    appear in several lists, and marks the task currently being timed.

    Args:
        params: Query parameters including:
            - refresh (bool): Walk ClickUp again (default) or reuse last result
            - response_format (str): 'markdown' or 'json'

    Returns:
        Formatted task list with time display "[live+tracked/estimate]".
    """
    try:
        client = get_client(ctx)
        tasks = await client.get_in_progress_tasks() if params.refresh else client.tasks

        if params.response_format == ResponseFormat.MARKDOWN:
            return format_tasks_markdown(tasks, client.elapsed)
        return format_tasks_json(tasks, client.elapsed)

    except Exception as e:
        return handle_error(e, "list_in_progress_tasks")


@mcp.tool(
    name="clickup_refresh_task",
    annotations={
        "title": "Refresh Task",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def clickup_refresh_task(params: TaskRefreshInput, ctx: Context) -> str:
    """
    Re-fetch one task and merge it into the current task list.

    A task that no longer exists is removed from the list.

    Args:
        params: Parameters including:
            - task_id (str): Task identifier (required)
            - response_format (str): 'markdown' or 'json'

    Returns:
        The refreshed task, or a note that it is no longer listed.
    """
    try:
        client = get_client(ctx)
        task = await client.refresh_task(params.task_id)

        if task is None:
            return success_message(f"Task `{params.task_id}` is not in the in-progress list.")
        if params.response_format == ResponseFormat.MARKDOWN:
            return format_task_markdown(task, client.elapsed(task.id))
        return json.dumps(format_task_json(task, client.elapsed(task.id)), indent=2)

    except Exception as e:
        return handle_error(e, "refresh_task")


# =============================================================================
# Timer Tools
# =============================================================================


@mcp.tool(
    name="clickup_start_timer",
    annotations={
        "title": "Start Time Tracking",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def clickup_start_timer(params: TimerStartInput, ctx: Context) -> str:
    """
    Start tracking time on a task.

    If another timer is running it is stopped first.

    Args:
        params: Parameters including:
            - task_id (str): Task to track (required)

    Returns:
        Confirmation message or error.
    """
    try:
        client = get_client(ctx)
        task_id = await client.start_tracking(params.task_id)
        await client.refresh_after_timer_change(task_id)
        return success_message(f"Started time tracking for task `{task_id}`.")

    except Exception as e:
        return handle_error(e, "start_timer")


@mcp.tool(
    name="clickup_stop_timer",
    annotations={
        "title": "Stop Time Tracking",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def clickup_stop_timer(params: TimerStopInput, ctx: Context) -> str:
    """
    Stop the running timer.

    Args:
        params: Parameters including:
            - task_id (str): Task believed to be running (optional)

    Returns:
        Confirmation naming the stopped task, or a note that none was running.
    """
    try:
        client = get_client(ctx)
        stopped = await client.stop_tracking(params.task_id)
        await client.refresh_after_timer_change(stopped or params.task_id)

        if stopped:
            return success_message(f"Stopped time tracking for task `{stopped}`.")
        return success_message("No timer was running.")

    except Exception as e:
        return handle_error(e, "stop_timer")


# =============================================================================
# Diagnostics
# =============================================================================


@mcp.tool(
    name="clickup_debug_tasks",
    annotations={
        "title": "Diagnose Tasks and Statuses",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def clickup_debug_tasks(params: DiagnosticsInput, ctx: Context) -> str:
    """
    Dump every task and status visible in the team, unfiltered.

    Useful when expected tasks are missing: shows the exact status names
    used by each list so CLICKUP_IN_PROGRESS_STATUSES can be adjusted.

    Args:
        params: Parameters including:
            - only_mine (bool): Only tasks assigned to you
            - response_format (str): 'markdown' or 'json'

    Returns:
        Statuses and tasks grouped by status.
    """
    try:
        client = get_client(ctx)
        report = await client.collect_diagnostics()

        if params.response_format == ResponseFormat.MARKDOWN:
            return format_diagnostics_markdown(report, params.only_mine)
        return format_diagnostics_json(report, params.only_mine)

    except Exception as e:
        return handle_error(e, "debug_tasks")


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Main entry point for the ClickUp MCP server."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
