"""
ClickUp Data Models.

Canonical Pydantic models built at the API boundary. Raw payload shapes
never travel past these constructors.

Models:
    - Task: Task with status, assignees, tracked time and timer overlay
    - TaskStatus: Status label, type and order
    - Assignee / User: Canonical user identities
    - Team, Space, Folder, TaskList: Container hierarchy
    - ContainerRef: Lightweight id/name reference
"""

from clickup_mcp.models.hierarchy import ContainerRef, Folder, Space, TaskList, Team
from clickup_mcp.models.task import Task, TaskStatus
from clickup_mcp.models.user import Assignee, User, normalize_identity

__all__ = [
    "Task",
    "TaskStatus",
    "Assignee",
    "User",
    "normalize_identity",
    "ContainerRef",
    "Team",
    "Space",
    "Folder",
    "TaskList",
]
