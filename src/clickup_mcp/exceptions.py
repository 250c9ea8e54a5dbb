"""
ClickUp Exception Hierarchy.

All errors raised by this package derive from ClickUpError so callers can
catch a single type at the outer boundary.

Hierarchy:
    ClickUpError
    ├── ClickUpConfigurationError
    ├── ClickUpAuthenticationError
    └── ClickUpAPIError
        ├── ClickUpNotFoundError
        └── ClickUpTimerAlreadyRunningError

"No timer running" and "task not found" are not errors at the public
surface: the client converts them to None before they reach callers.
"""

from __future__ import annotations

from typing import Any


class ClickUpError(Exception):
    """Base exception for all ClickUp errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ClickUpConfigurationError(ClickUpError):
    """Raised when configuration is missing or unusable."""


class ClickUpAuthenticationError(ClickUpError):
    """Raised when no API token is configured or the remote rejects it."""

    def __init__(
        self,
        message: str = "ClickUp API token not configured. Set CLICKUP_API_TOKEN.",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class ClickUpAPIError(ClickUpError):
    """Raised for any non-2xx response (or transport failure) from ClickUp."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        remote_message: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.remote_message = remote_message
        self.operation = operation

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class ClickUpNotFoundError(ClickUpAPIError):
    """Raised when a resource does not exist (HTTP 404)."""


class ClickUpTimerAlreadyRunningError(ClickUpAPIError):
    """Raised when starting a timer while another one is running."""
