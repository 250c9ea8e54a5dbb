"""
ClickUp MCP Server - in-progress tasks and time tracking for ClickUp.

This package collects the tasks assigned to the current user that sit in an
"in progress" status anywhere in a ClickUp team, and keeps a local live
timer consistent with ClickUp's single remote timer.

Architecture:
    MCP Tools Layer
         │
         ▼
    ClickUpTasksClient (snapshot, single-task refresh)
         │
    ┌────┴───────────────┬───────────────┐
    ▼                    ▼               ▼
  HierarchyWalker   TaskCollector    TimeTracker
  (pagination)      + InProgress     (registry +
         │            Filter          reconciliation)
         └──────────┬─────────────────────┘
                    ▼
            ClickUpAPIClient (httpx)
"""

__version__ = "0.1.0"
__author__ = "ClickUp MCP Contributors"

from clickup_mcp.exceptions import (
    ClickUpError,
    ClickUpAuthenticationError,
    ClickUpAPIError,
    ClickUpConfigurationError,
    ClickUpNotFoundError,
    ClickUpTimerAlreadyRunningError,
)

__all__ = [
    "__version__",
    "ClickUpError",
    "ClickUpAuthenticationError",
    "ClickUpAPIError",
    "ClickUpConfigurationError",
    "ClickUpNotFoundError",
    "ClickUpTimerAlreadyRunningError",
]
