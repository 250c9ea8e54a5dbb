"""
Pydantic Input Models for ClickUp MCP Tools.

This module defines the input validation models used by the MCP tools.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResponseFormat(str, Enum):
    """Output format for tool responses."""

    MARKDOWN = "markdown"
    JSON = "json"


class BaseMCPInput(BaseModel):
    """Base input model with common configuration."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )


def _task_id_field(description: str):
    return Field(
        ...,
        description=description,
        min_length=1,
        max_length=64,
        pattern=r"^[A-Za-z0-9_\-#]+$",
    )


# =============================================================================
# Task Input Models
# =============================================================================


class TaskListInput(BaseMCPInput):
    """Input for listing in-progress tasks."""

    refresh: bool = Field(
        default=True,
        description="Walk ClickUp again (true) or return the last snapshot (false)",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )


class TaskRefreshInput(BaseMCPInput):
    """Input for refreshing a single task."""

    task_id: str = _task_id_field("Task identifier (e.g., '86b0x1abc')")
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )


# =============================================================================
# Timer Input Models
# =============================================================================


class TimerStartInput(BaseMCPInput):
    """Input for starting time tracking."""

    task_id: str = _task_id_field("Task to start tracking")


class TimerStopInput(BaseMCPInput):
    """Input for stopping time tracking."""

    task_id: Optional[str] = Field(
        default=None,
        description="Task believed to be running; used to refresh it if ClickUp cannot tell",
        max_length=64,
    )

    @field_validator("task_id")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


# =============================================================================
# Diagnostics Input Model
# =============================================================================


class DiagnosticsInput(BaseMCPInput):
    """Input for the diagnostic task dump."""

    only_mine: bool = Field(
        default=False,
        description="Only list tasks assigned to the current user",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )
