"""ClickUp REST API access."""

from clickup_mcp.api.client import ClickUpAPIClient, serialize_params

__all__ = ["ClickUpAPIClient", "serialize_params"]
