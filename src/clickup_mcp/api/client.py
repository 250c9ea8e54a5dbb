"""
ClickUp REST API client.

This module provides ClickUpAPIClient, the only component that talks HTTP.
It authenticates, issues typed requests against the hierarchy and time
tracking endpoints, maps error responses onto the exception hierarchy and
converts payloads into canonical models.

Caching is scoped to the API token: the HTTP client, the current user id
and the resolved team id are tagged with a generation counter that is
bumped whenever the token changes, and anything tagged with an older
generation is discarded on next use.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from types import TracebackType
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from clickup_mcp.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    PAGE_SIZE,
    TIMER_ALREADY_RUNNING_MARKER,
)
from clickup_mcp.exceptions import (
    ClickUpAPIError,
    ClickUpAuthenticationError,
    ClickUpConfigurationError,
    ClickUpNotFoundError,
    ClickUpTimerAlreadyRunningError,
)
from clickup_mcp.models import Folder, Space, Task, TaskList, TaskStatus, Team, User

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ClickUpAPIClient")

# Responses on the timer endpoints that mean "no timer is running".
_NO_TIMER_STATUSES = frozenset({400, 404})


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def serialize_params(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """
    Serialize query parameters the way ClickUp expects them.

    Sequence values become repeated ``key[]=value`` pairs, booleans become
    ``true``/``false`` and None values are dropped. Order is preserved.

    Example:
        >>> serialize_params({"assignees": [1, 2], "page": 0})
        [('assignees[]', '1'), ('assignees[]', '2'), ('page', '0')]
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            pairs.extend((f"{key}[]", _format_param(item)) for item in value)
        else:
            pairs.append((key, _format_param(value)))
    return pairs


def _remote_message(response: httpx.Response) -> str:
    """Extract ClickUp's error message (``err``) from a response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("err") or body.get("error") or body.get("message")
        if message:
            return str(message)
    return response.reason_phrase or f"HTTP {response.status_code}"


@contextmanager
def _parsing(operation: str) -> Iterator[None]:
    """Report a payload that does not fit the models as an API error."""
    try:
        yield
    except (ValidationError, KeyError, TypeError, AttributeError, ValueError) as e:
        raise ClickUpAPIError(
            f"Failed to {operation}: malformed response ({type(e).__name__})",
            operation=operation,
        ) from e


class ClickUpAPIClient:
    """
    Async client for the ClickUp v2 REST API.

    Usage:
        async with ClickUpAPIClient(api_token="pk_...") as api:
            user_id = await api.get_current_user_id()
            team_id = await api.resolve_team_id()
            spaces = await api.list_spaces(team_id)
    """

    def __init__(
        self,
        api_token: str | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        page_size: int = PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_token = api_token or None
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self.page_size = page_size

        self._generation = 0
        self._http: httpx.AsyncClient | None = None
        self._http_generation = -1

        # (generation, value) pairs
        self._user_id: tuple[int, str] | None = None
        self._team_id: tuple[int, str] | None = None

    # =========================================================================
    # Credential & Lifecycle
    # =========================================================================

    @property
    def api_token(self) -> str | None:
        return self._api_token

    @api_token.setter
    def api_token(self, value: str | None) -> None:
        value = value or None
        if value != self._api_token:
            self._api_token = value
            self._generation += 1
            logger.info("API token changed; cached session state invalidated")

    @property
    def generation(self) -> int:
        """Counter bumped on every credential change."""
        return self._generation

    @property
    def is_configured(self) -> bool:
        return self._api_token is not None

    async def _http_client(self) -> httpx.AsyncClient:
        """Get the HTTP client for the current token, recreating it if stale."""
        if self._api_token is None:
            raise ClickUpAuthenticationError()

        if self._http is None or self._http_generation != self._generation:
            if self._http is not None:
                await self._http.aclose()
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Authorization": self._api_token,
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
                transport=self._transport,
            )
            self._http_generation = self._generation
        return self._http

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            self._http_generation = -1

    async def __aenter__(self: T) -> T:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # =========================================================================
    # Request Plumbing
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: Mapping[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        http = await self._http_client()
        try:
            response = await http.request(
                method,
                path,
                params=serialize_params(params) if params else None,
                json=json,
            )
        except httpx.TransportError as e:
            raise ClickUpAPIError(
                f"Failed to {operation}: {e}",
                operation=operation,
            ) from e

        if response.is_success:
            if not response.content:
                return {}
            try:
                body = response.json()
            except ValueError as e:
                raise ClickUpAPIError(
                    f"Failed to {operation}: response is not valid JSON",
                    status_code=response.status_code,
                    operation=operation,
                ) from e
            return body if isinstance(body, dict) else {"data": body}

        raise self._error_for(response, operation)

    @staticmethod
    def _error_for(response: httpx.Response, operation: str) -> Exception:
        message = _remote_message(response)
        status = response.status_code
        if status == 401:
            return ClickUpAuthenticationError(
                f"Invalid ClickUp API token: {message}",
                status_code=status,
            )
        error_cls = ClickUpNotFoundError if status == 404 else ClickUpAPIError
        return error_cls(
            f"Failed to {operation}: {message}",
            status_code=status,
            remote_message=message,
            operation=operation,
        )

    # =========================================================================
    # Identity & Teams
    # =========================================================================

    async def get_current_user(self) -> User:
        operation = "get current user"
        data = await self._request("GET", "/user", operation=operation)
        with _parsing(operation):
            return User.from_api(data)

    async def get_current_user_id(self) -> str:
        """Get the canonical id of the token's user, cached per token."""
        generation = self._generation
        if self._user_id is not None and self._user_id[0] == generation:
            return self._user_id[1]

        user = await self.get_current_user()
        if not user.id:
            raise ClickUpAPIError("Failed to get current user: response has no id")
        self._user_id = (generation, user.id)
        return user.id

    async def list_teams(self) -> list[Team]:
        operation = "list teams"
        data = await self._request("GET", "/team", operation=operation)
        with _parsing(operation):
            return [Team.from_api(t) for t in data.get("teams") or []]

    async def resolve_team_id(self, preferred: str | None = None) -> str:
        """
        Resolve the team to operate on.

        Args:
            preferred: Explicitly configured team id, returned as-is

        Returns:
            The preferred id, or the first team visible to the token
        """
        if preferred:
            return preferred

        generation = self._generation
        if self._team_id is not None and self._team_id[0] == generation:
            return self._team_id[1]

        teams = await self.list_teams()
        if not teams:
            raise ClickUpConfigurationError("No teams found in your ClickUp account")
        self._team_id = (generation, teams[0].id)
        return teams[0].id

    # =========================================================================
    # Hierarchy
    # =========================================================================

    async def list_spaces(self, team_id: str) -> list[Space]:
        operation = f"list spaces of team {team_id}"
        data = await self._request("GET", f"/team/{team_id}/space", operation=operation)
        with _parsing(operation):
            return [Space.from_api(s) for s in data.get("spaces") or []]

    async def list_folders(self, space_id: str) -> list[Folder]:
        operation = f"list folders of space {space_id}"
        data = await self._request("GET", f"/space/{space_id}/folder", operation=operation)
        with _parsing(operation):
            return [Folder.from_api(f) for f in data.get("folders") or []]

    async def list_folder_lists(self, folder_id: str) -> list[TaskList]:
        operation = f"list lists of folder {folder_id}"
        data = await self._request("GET", f"/folder/{folder_id}/list", operation=operation)
        with _parsing(operation):
            return [
                TaskList.from_api(item, folder_id=folder_id) for item in data.get("lists") or []
            ]

    async def list_space_lists(self, space_id: str) -> list[TaskList]:
        """Lists attached directly to a space (folder-less lists)."""
        operation = f"list lists of space {space_id}"
        data = await self._request("GET", f"/space/{space_id}/list", operation=operation)
        with _parsing(operation):
            return [TaskList.from_api(item) for item in data.get("lists") or []]

    async def get_list_statuses(self, list_id: str) -> list[TaskStatus]:
        """Statuses declared on a list."""
        operation = f"get list {list_id}"
        data = await self._request("GET", f"/list/{list_id}", operation=operation)
        with _parsing(operation):
            return [TaskStatus.from_api(s) for s in data.get("statuses") or []]

    # =========================================================================
    # Tasks
    # =========================================================================

    async def list_tasks_page(
        self,
        list_id: str,
        page: int,
        *,
        assignee_ids: Sequence[str] | None = None,
        include_closed: bool = True,
        subtasks: bool = True,
        include_timl: bool = True,
    ) -> tuple[list[Task], bool]:
        """
        Fetch one page of a list's tasks.

        Args:
            list_id: List to read
            page: Zero-based page number
            assignee_ids: Server-side assignee hint (not authoritative)
            include_closed: Include tasks in closed statuses
            subtasks: Include one level of sub-items
            include_timl: Include tasks that live in multiple lists

        Returns:
            (tasks, is_last_page). A short page is always the last one; a
            full page may or may not be followed by more data.
        """
        params: dict[str, Any] = {
            "include_closed": include_closed,
            "subtasks": subtasks,
            "include_timl": include_timl,
        }
        if assignee_ids:
            params["assignees"] = list(assignee_ids)
        params["page"] = page

        operation = f"list tasks of list {list_id}"
        data = await self._request(
            "GET",
            f"/list/{list_id}/task",
            operation=operation,
            params=params,
        )
        with _parsing(operation):
            raw = data.get("tasks") or []
            tasks = [Task.from_api(t) for t in raw if isinstance(t, dict) and t.get("id")]
            return tasks, len(raw) < self.page_size

    async def get_task(self, task_id: str) -> Task | None:
        """Get a single task, or None if it does not exist."""
        operation = f"get task {task_id}"
        try:
            data = await self._request("GET", f"/task/{task_id}", operation=operation)
        except ClickUpNotFoundError:
            logger.info("Task %s not found", task_id)
            return None
        with _parsing(operation):
            return Task.from_api(data)

    # =========================================================================
    # Time Tracking
    # =========================================================================

    async def get_current_timer_task_id(self, team_id: str) -> str | None:
        """Id of the task the running timer belongs to, or None."""
        try:
            body = await self._request(
                "GET",
                f"/team/{team_id}/time_entries/current",
                operation="get current time entry",
            )
        except ClickUpAPIError as e:
            if e.status_code in _NO_TIMER_STATUSES:
                return None
            raise

        entry = body.get("data") or body
        if not isinstance(entry, dict):
            return None
        task = entry.get("task")
        task_id = (
            (task.get("id") if isinstance(task, dict) else None)
            or entry.get("task_id")
            or entry.get("taskId")
        )
        return str(task_id) if task_id else None

    async def start_timer(self, team_id: str, task_id: str) -> None:
        """
        Start the remote timer for a task.

        Raises:
            ClickUpTimerAlreadyRunningError: Another timer is running
            ClickUpAPIError: Any other failure
        """
        try:
            await self._request(
                "POST",
                f"/team/{team_id}/time_entries/start",
                operation="start time tracking",
                json={"tid": task_id},
            )
        except ClickUpAPIError as e:
            if (
                e.status_code == 400
                and TIMER_ALREADY_RUNNING_MARKER in (e.remote_message or "").lower()
            ):
                raise ClickUpTimerAlreadyRunningError(
                    e.message,
                    status_code=e.status_code,
                    remote_message=e.remote_message,
                    operation=e.operation,
                ) from e
            raise

    async def stop_timer(self, team_id: str) -> str | None:
        """
        Stop the running remote timer.

        The stop endpoint does not say which task it stopped, so the current
        timer is resolved first.

        Returns:
            Id of the task the lookup found tracked, or None if no timer ran
        """
        tracked_id = await self.get_current_timer_task_id(team_id)
        try:
            await self._request(
                "POST",
                f"/team/{team_id}/time_entries/stop",
                operation="stop time tracking",
            )
        except ClickUpAPIError as e:
            if e.status_code not in _NO_TIMER_STATUSES:
                raise
            # Timer ended between the lookup and the stop.
            logger.info("No timer running to stop (last tracked: %s)", tracked_id)
        return tracked_id
