"""
Pytest Configuration and Fixtures for ClickUp Client Tests.

This module provides fixtures, mock factories, and shared utilities for
testing the ClickUp tasks client.

Architecture:
    - MockClickUpAPI: In-memory fake of ClickUpAPIClient
    - Factories: Generate raw ClickUp payloads and Task models
    - FakeClock: Deterministic millisecond clock for timer tests
    - Fixtures: Provide configured clients and mock data
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable

import httpx
import pytest

from clickup_mcp.api.client import ClickUpAPIClient
from clickup_mcp.client import ClickUpTasksClient
from clickup_mcp.constants import PAGE_SIZE
from clickup_mcp.exceptions import (
    ClickUpAPIError,
    ClickUpAuthenticationError,
    ClickUpConfigurationError,
    ClickUpTimerAlreadyRunningError,
)
from clickup_mcp.models import Folder, Space, Task, TaskList, TaskStatus, Team


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "api: HTTP adapter tests")
    config.addinivalue_line("markers", "walker: Hierarchy walk and pagination tests")
    config.addinivalue_line("markers", "filters: Deduplication and filter tests")
    config.addinivalue_line("markers", "timers: Timer registry and reconciliation tests")
    config.addinivalue_line("markers", "refresh: Snapshot refresh tests")
    config.addinivalue_line("markers", "errors: Error handling tests")


# =============================================================================
# Time Utilities
# =============================================================================


class FakeClock:
    """Callable millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


# =============================================================================
# ID Generators
# =============================================================================


class IDGenerator:
    """Sequential ID generator for test objects."""

    _counter: int = 0

    @classmethod
    def reset(cls) -> None:
        """Reset counter (call in fixtures)."""
        cls._counter = 0

    @classmethod
    def next_id(cls, prefix: str = "") -> str:
        """Generate next unique ID."""
        cls._counter += 1
        return f"{prefix}{cls._counter:07d}"

    @classmethod
    def task_id(cls) -> str:
        cls._counter += 1
        return f"86b{cls._counter:05x}"

    @classmethod
    def container_id(cls) -> str:
        return cls.next_id("9")


CURRENT_USER_ID = "4242"
OTHER_USER_ID = "1717"


# =============================================================================
# Test Data Factories
# =============================================================================


class TaskPayloadFactory:
    """Factory for raw ClickUp task payloads (as returned by the API)."""

    @staticmethod
    def create(
        id: str | None = None,
        name: str = "Test Task",
        status: str | dict[str, Any] = "in progress",
        assignees: list[Any] | None = None,
        time_spent: int | str | None = None,
        time_estimate: int | None = None,
        subtasks: list[dict[str, Any]] | None = None,
        list_id: str | None = None,
        **kwargs,
    ) -> dict[str, Any]:
        """Create a task payload assigned to the current user by default."""
        payload: dict[str, Any] = {
            "id": id or IDGenerator.task_id(),
            "name": name,
            "status": (
                status
                if isinstance(status, dict)
                else {"status": status, "type": "custom", "color": "#4194f6", "orderindex": 1}
            ),
            "url": "https://app.clickup.com/t/test",
            "assignees": (
                assignees
                if assignees is not None
                else [{"id": int(CURRENT_USER_ID), "username": "me"}]
            ),
        }
        if time_spent is not None:
            payload["time_spent"] = time_spent
        if time_estimate is not None:
            payload["time_estimate"] = time_estimate
        if subtasks is not None:
            payload["subtasks"] = subtasks
        if list_id is not None:
            payload["list"] = {"id": list_id, "name": f"List {list_id}"}
        payload.update(kwargs)
        return payload

    @staticmethod
    def create_unassigned(**kwargs) -> dict[str, Any]:
        return TaskPayloadFactory.create(assignees=[], **kwargs)

    @staticmethod
    def create_for_other_user(**kwargs) -> dict[str, Any]:
        return TaskPayloadFactory.create(
            assignees=[{"id": int(OTHER_USER_ID), "username": "someone"}], **kwargs
        )

    @staticmethod
    def create_batch(count: int, **kwargs) -> list[dict[str, Any]]:
        return [TaskPayloadFactory.create(name=f"Task {i+1}", **kwargs) for i in range(count)]


class TaskFactory:
    """Factory for Task models, built through the real payload parser."""

    @staticmethod
    def create(**kwargs) -> Task:
        return Task.from_api(TaskPayloadFactory.create(**kwargs))

    @staticmethod
    def create_batch(count: int, **kwargs) -> list[Task]:
        return [Task.from_api(p) for p in TaskPayloadFactory.create_batch(count, **kwargs)]


# =============================================================================
# Mock API
# =============================================================================


class MockClickUpAPI:
    """
    In-memory fake of ClickUpAPIClient.

    Holds a small hierarchy (spaces, folders, lists, task payloads) plus a
    single remote timer, and records every call for verification.
    """

    def __init__(self, page_size: int = PAGE_SIZE):
        self.page_size = page_size
        self._api_token: str | None = "test_token"
        self.generation = 0
        self.user_id = CURRENT_USER_ID
        self.teams: list[Team] = [Team(id="team1", name="Team One")]

        self.spaces: list[Space] = []
        self.folders: dict[str, list[Folder]] = {}
        self.folder_lists: dict[str, list[TaskList]] = {}
        self.space_lists: dict[str, list[TaskList]] = {}
        self.list_tasks: dict[str, list[dict[str, Any]]] = {}
        self.list_statuses: dict[str, list[TaskStatus]] = {}
        self.tasks_by_id: dict[str, dict[str, Any]] = {}

        self.current_timer: str | None = None

        # Track method calls for verification
        self.call_history: list[tuple[str, tuple, dict]] = []

        # Configurable behaviors
        self.should_fail: dict[str, Exception | None] = {}
        self.container_failures: dict[str, Exception] = {}
        self.page_provider: Callable[[str, int], list[dict[str, Any]]] | None = None

    def _record_call(self, method: str, args: tuple, kwargs: dict) -> None:
        self.call_history.append((method, args, kwargs))

    def _check_failure(self, method: str, container_id: str | None = None) -> None:
        if self.api_token is None:
            raise ClickUpAuthenticationError()
        if method in self.should_fail and self.should_fail[method]:
            raise self.should_fail[method]
        if container_id is not None and container_id in self.container_failures:
            raise self.container_failures[container_id]

    @property
    def api_token(self) -> str | None:
        return self._api_token

    @api_token.setter
    def api_token(self, value: str | None) -> None:
        value = value or None
        if value != self._api_token:
            self._api_token = value
            self.generation += 1

    @property
    def is_configured(self) -> bool:
        return self.api_token is not None

    async def close(self) -> None:
        self._record_call("close", (), {})

    # -------------------------------------------------------------------------
    # Identity & Teams
    # -------------------------------------------------------------------------

    async def get_current_user_id(self) -> str:
        self._record_call("get_current_user_id", (), {})
        self._check_failure("get_current_user_id")
        return self.user_id

    async def list_teams(self) -> list[Team]:
        self._record_call("list_teams", (), {})
        self._check_failure("list_teams")
        return list(self.teams)

    async def resolve_team_id(self, preferred: str | None = None) -> str:
        self._record_call("resolve_team_id", (preferred,), {})
        self._check_failure("resolve_team_id")
        if preferred:
            return preferred
        if not self.teams:
            raise ClickUpConfigurationError("No teams found in your ClickUp account")
        return self.teams[0].id

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------

    async def list_spaces(self, team_id: str) -> list[Space]:
        self._record_call("list_spaces", (team_id,), {})
        self._check_failure("list_spaces", team_id)
        return list(self.spaces)

    async def list_folders(self, space_id: str) -> list[Folder]:
        self._record_call("list_folders", (space_id,), {})
        self._check_failure("list_folders", f"folders:{space_id}")
        return list(self.folders.get(space_id, []))

    async def list_folder_lists(self, folder_id: str) -> list[TaskList]:
        self._record_call("list_folder_lists", (folder_id,), {})
        self._check_failure("list_folder_lists", folder_id)
        return list(self.folder_lists.get(folder_id, []))

    async def list_space_lists(self, space_id: str) -> list[TaskList]:
        self._record_call("list_space_lists", (space_id,), {})
        self._check_failure("list_space_lists", f"lists:{space_id}")
        return list(self.space_lists.get(space_id, []))

    async def get_list_statuses(self, list_id: str) -> list[TaskStatus]:
        self._record_call("get_list_statuses", (list_id,), {})
        self._check_failure("get_list_statuses", f"statuses:{list_id}")
        return list(self.list_statuses.get(list_id, []))

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    async def list_tasks_page(
        self,
        list_id: str,
        page: int,
        *,
        assignee_ids=None,
        include_closed: bool = True,
        subtasks: bool = True,
        include_timl: bool = True,
    ) -> tuple[list[Task], bool]:
        self._record_call(
            "list_tasks_page",
            (list_id, page),
            {"assignee_ids": assignee_ids, "include_closed": include_closed},
        )
        self._check_failure("list_tasks_page", list_id)

        if self.page_provider is not None:
            raw = self.page_provider(list_id, page)
        else:
            everything = self.list_tasks.get(list_id, [])
            raw = everything[page * self.page_size:(page + 1) * self.page_size]
        return [Task.from_api(t) for t in raw], len(raw) < self.page_size

    async def get_task(self, task_id: str) -> Task | None:
        self._record_call("get_task", (task_id,), {})
        self._check_failure("get_task")
        payload = self.tasks_by_id.get(task_id)
        return Task.from_api(payload) if payload is not None else None

    # -------------------------------------------------------------------------
    # Time Tracking
    # -------------------------------------------------------------------------

    async def get_current_timer_task_id(self, team_id: str) -> str | None:
        self._record_call("get_current_timer_task_id", (team_id,), {})
        self._check_failure("get_current_timer_task_id")
        return self.current_timer

    async def start_timer(self, team_id: str, task_id: str) -> None:
        self._record_call("start_timer", (team_id, task_id), {})
        self._check_failure("start_timer")
        if self.current_timer is not None:
            raise ClickUpTimerAlreadyRunningError(
                "Failed to start time tracking: Timer already running",
                status_code=400,
                remote_message="Timer already running",
            )
        self.current_timer = task_id

    async def stop_timer(self, team_id: str) -> str | None:
        self._record_call("stop_timer", (team_id,), {})
        self._check_failure("stop_timer")
        tracked, self.current_timer = self.current_timer, None
        return tracked

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def add_space(self, name: str = "Space") -> Space:
        space = Space(id=IDGenerator.container_id(), name=name)
        self.spaces.append(space)
        return space

    def add_folder(self, space: Space, name: str = "Folder") -> Folder:
        folder = Folder(id=IDGenerator.container_id(), name=name)
        self.folders.setdefault(space.id, []).append(folder)
        return folder

    def add_list(
        self,
        parent: Space | Folder,
        name: str = "List",
        tasks: list[dict[str, Any]] | None = None,
    ) -> TaskList:
        if isinstance(parent, Folder):
            task_list = TaskList(id=IDGenerator.container_id(), name=name, folder_id=parent.id)
            self.folder_lists.setdefault(parent.id, []).append(task_list)
        else:
            task_list = TaskList(id=IDGenerator.container_id(), name=name)
            self.space_lists.setdefault(parent.id, []).append(task_list)
        self.list_tasks[task_list.id] = list(tasks or [])
        for payload in tasks or []:
            self.tasks_by_id.setdefault(payload["id"], payload)
            for sub in payload.get("subtasks") or []:
                self.tasks_by_id.setdefault(sub["id"], sub)
        return task_list

    def seed_data(self) -> dict[str, Any]:
        """Seed one space with a folder list and a folder-less list."""
        space = self.add_space("Engineering")
        folder = self.add_folder(space, "Sprint")
        doing = TaskPayloadFactory.create(name="Implement walker", time_spent=300_000)
        review = TaskPayloadFactory.create(name="Code review", status="review")
        other = TaskPayloadFactory.create_for_other_user(name="Someone else's work")
        folder_list = self.add_list(folder, "Backlog", [doing, review, other])
        loose = TaskPayloadFactory.create(name="Fix docs", status="Active", time_estimate=7_200_000)
        space_list = self.add_list(space, "Misc", [loose])
        return {
            "space": space,
            "folder": folder,
            "folder_list": folder_list,
            "space_list": space_list,
            "doing": doing,
            "review": review,
            "other": other,
            "loose": loose,
        }

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def clear_call_history(self) -> None:
        self.call_history.clear()

    def get_calls(self, method_name: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for name, args, kwargs in self.call_history if name == method_name]

    def assert_called(self, method_name: str, times: int | None = None) -> None:
        calls = self.get_calls(method_name)
        if times is not None:
            assert len(calls) == times, f"Expected {method_name} to be called {times} times, got {len(calls)}"
        else:
            assert len(calls) > 0, f"Expected {method_name} to be called at least once"

    def assert_not_called(self, method_name: str) -> None:
        calls = self.get_calls(method_name)
        assert len(calls) == 0, f"Expected {method_name} not to be called, but was called {len(calls)} times"


def remote_error(status: int = 500, message: str = "Internal error") -> ClickUpAPIError:
    return ClickUpAPIError(f"Failed: {message}", status_code=status, remote_message=message)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def id_generator():
    """Reset and provide ID generator."""
    IDGenerator.reset()
    return IDGenerator


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_api() -> MockClickUpAPI:
    """Create a fresh mock API instance."""
    return MockClickUpAPI()


@pytest.fixture
def seeded_mock_api() -> MockClickUpAPI:
    """Create a mock API instance with a small seeded hierarchy."""
    api = MockClickUpAPI()
    api.seed = api.seed_data()
    return api


@pytest.fixture
async def client(mock_api: MockClickUpAPI, clock: FakeClock) -> AsyncIterator[ClickUpTasksClient]:
    """Create a ClickUpTasksClient backed by the mock API."""
    client = ClickUpTasksClient(api_token="test_token", clock=clock)
    client._api = mock_api

    await client.connect()
    yield client
    await client.disconnect()


@pytest.fixture
async def seeded_client(
    seeded_mock_api: MockClickUpAPI, clock: FakeClock
) -> AsyncIterator[ClickUpTasksClient]:
    """Create a ClickUpTasksClient with seeded test data."""
    client = ClickUpTasksClient(api_token="test_token", clock=clock)
    client._api = seeded_mock_api

    await client.connect()
    yield client
    await client.disconnect()


# =============================================================================
# HTTP Fixtures
# =============================================================================


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording)


@pytest.fixture
def make_http_api() -> Callable[..., tuple[ClickUpAPIClient, RecordingTransport]]:
    """Build a real ClickUpAPIClient over a recording mock transport."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        api_token: str | None = "pk_test",
    ) -> tuple[ClickUpAPIClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        return ClickUpAPIClient(api_token, transport=transport), transport

    return factory
