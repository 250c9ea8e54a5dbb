"""
Task aggregation and timer reconciliation.

    HierarchyWalker -> TaskCollector -> InProgressFilter -> TimeTracker
"""

from clickup_mcp.sync.collector import TaskCollector
from clickup_mcp.sync.diagnostics import DiagnosticReport, collect_diagnostics
from clickup_mcp.sync.filters import InProgressFilter, normalize_status
from clickup_mcp.sync.timers import TimeTracker, TimerRegistry, now_ms
from clickup_mcp.sync.walker import HierarchyWalker, ListTasks

__all__ = [
    "HierarchyWalker",
    "ListTasks",
    "TaskCollector",
    "InProgressFilter",
    "normalize_status",
    "TimerRegistry",
    "TimeTracker",
    "now_ms",
    "DiagnosticReport",
    "collect_diagnostics",
]
