"""
Container hierarchy models.

Team -> Space -> Folder -> List, plus lists attached directly to a space.
Each level only needs an id and a name here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ContainerRef(BaseModel):
    """Reference to a container (space or list) a task belongs to."""

    id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: Any) -> ContainerRef | None:
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            return None
        return cls(id=str(data["id"]), name=data.get("name") or "")


class _Container(BaseModel):
    id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]):
        return cls(id=str(data["id"]), name=data.get("name") or "")

    def ref(self) -> ContainerRef:
        return ContainerRef(id=self.id, name=self.name)


class Team(_Container):
    """A ClickUp team (workspace), the root scope."""


class Space(_Container):
    """A space inside a team."""


class Folder(_Container):
    """A folder inside a space."""


class TaskList(_Container):
    """A list of tasks, inside a folder or directly in a space."""

    folder_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any], folder_id: str | None = None) -> TaskList:
        return cls(id=str(data["id"]), name=data.get("name") or "", folder_id=folder_id)

    @property
    def is_folderless(self) -> bool:
        return self.folder_id is None
