"""
User identity model.

ClickUp reports the same person in several shapes depending on the
endpoint: a flat ``id``, a nested ``user.id``, or ``user_id``, and ids may
be numbers or strings. Everything past the API boundary compares the
canonical string produced by normalize_identity().
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


def _present(value: Any) -> bool:
    return value is not None and value != "" and value != 0


def normalize_identity(raw: Any) -> str:
    """
    Reduce an assignee/user payload to its canonical identity string.

    Shapes are tried in order: ``id``, ``user.id``, ``user_id``. Scalars are
    taken as the id itself. Returns "" when no id can be found.
    """
    if raw is None:
        return ""
    if isinstance(raw, (int, str)) and not isinstance(raw, bool):
        return str(raw).strip()
    if not isinstance(raw, dict):
        return ""

    candidate = raw.get("id")
    if not _present(candidate):
        nested = raw.get("user")
        candidate = nested.get("id") if isinstance(nested, dict) else None
    if not _present(candidate):
        candidate = raw.get("user_id")
    if not _present(candidate):
        return ""
    return str(candidate).strip()


class User(BaseModel):
    """The authenticated ClickUp user."""

    id: str
    username: str | None = None
    email: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> User:
        """Build from a ``GET /user`` payload (``{"user": {...}}`` or the inner dict)."""
        inner = data.get("user", data)
        return cls(
            id=normalize_identity(inner),
            username=inner.get("username"),
            email=inner.get("email"),
        )


class Assignee(BaseModel):
    """An assignee reduced to its canonical identity."""

    id: str
    username: str | None = None
    email: str | None = Field(default=None, repr=False)

    @classmethod
    def from_api(cls, data: Any) -> Assignee:
        if isinstance(data, dict):
            nested = data.get("user") if isinstance(data.get("user"), dict) else {}
            return cls(
                id=normalize_identity(data),
                username=data.get("username") or nested.get("username"),
                email=data.get("email") or nested.get("email"),
            )
        return cls(id=normalize_identity(data))

    @property
    def display_name(self) -> str:
        return self.username or self.id
