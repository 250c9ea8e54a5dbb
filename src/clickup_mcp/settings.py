"""
Settings for the ClickUp MCP server.

Values come from the environment (prefix ``CLICKUP_``) or a local ``.env``
file. Only the server and ``ClickUpTasksClient.from_settings`` read this
module; everything else receives plain values.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from clickup_mcp.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_IN_PROGRESS_STATUSES,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_TIMEOUT,
)


class Settings(BaseSettings):
    """ClickUp connection and behaviour settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLICKUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CLICKUP_API_TOKEN", "CLICKUP_API_KEY"),
        description="Personal API token sent in the Authorization header",
    )
    team_id: str | None = Field(
        default=None,
        description="Team (workspace) to use; the first team is used when unset",
    )
    in_progress_statuses: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_IN_PROGRESS_STATUSES),
        description="Case-insensitive status names treated as in progress",
    )
    auto_refresh: bool = True
    refresh_interval: int = Field(default=DEFAULT_REFRESH_INTERVAL, ge=10)
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"

    @field_validator("api_token", "team_id", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("in_progress_statuses", mode="before")
    @classmethod
    def split_statuses(cls, v: Any) -> Any:
        # Accept "in progress, review" as well as a JSON list.
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads them."""
    get_settings.cache_clear()
