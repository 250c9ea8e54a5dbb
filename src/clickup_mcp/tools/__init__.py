"""
ClickUp MCP Tools Package.

Input models and response formatting for the MCP tools:
    - Task tools (list in-progress tasks, refresh one task)
    - Timer tools (start, stop)
    - Diagnostics (unfiltered task and status dump)
"""

from clickup_mcp.tools.inputs import (
    DiagnosticsInput,
    ResponseFormat,
    TaskListInput,
    TaskRefreshInput,
    TimerStartInput,
    TimerStopInput,
)

__all__ = [
    "ResponseFormat",
    "TaskListInput",
    "TaskRefreshInput",
    "TimerStartInput",
    "TimerStopInput",
    "DiagnosticsInput",
]
