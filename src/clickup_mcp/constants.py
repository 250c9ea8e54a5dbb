"""
ClickUp API constants.

Values here mirror the remote service's behaviour and defaults; they are not
tuning knobs unless noted.
"""

from __future__ import annotations

DEFAULT_BASE_URL = "https://api.clickup.com/api/v2"
DEFAULT_TIMEOUT = 30.0

# The list task endpoint returns at most this many tasks per page.
PAGE_SIZE = 100

# Upper bound on pages requested for a single list.
MAX_PAGES = 100

DEFAULT_IN_PROGRESS_STATUSES: tuple[str, ...] = (
    "in progress",
    "active",
    "working",
    "in-progress",
)

# Substring of the 400 error message returned when starting a second timer.
TIMER_ALREADY_RUNNING_MARKER = "already running"

# Seconds between background refreshes when auto refresh is enabled.
DEFAULT_REFRESH_INTERVAL = 300
