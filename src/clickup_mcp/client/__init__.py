"""ClickUp tasks client."""

from clickup_mcp.client.client import ClickUpTasksClient

__all__ = ["ClickUpTasksClient"]
