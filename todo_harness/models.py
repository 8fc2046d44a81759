"""
Value types for the ToDo API harness.

The harness does not own the ToDo resource; these types only describe the
shape the remote service exchanges so that assertions can compare fields
by name instead of poking at raw dictionaries.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


def _field(data: Mapping[str, Any], camel: str, pascal: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(pascal, default)


@dataclass(frozen=True)
class ToDoItem:
    """One ToDo item as returned by the service."""

    id: int
    title: str
    description: str
    is_completed: bool

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ToDoItem":
        """
        Build an item from a response body.

        The service answers in camelCase; PascalCase keys are accepted as
        well because ASP.NET model binding is case-insensitive and some
        clients echo that style back.

        Raises:
            ValueError: If the body is not an object or has no integer id.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected a ToDo item object, got {type(data).__name__}")

        item_id = _field(data, "id", "Id")
        if not isinstance(item_id, int) or isinstance(item_id, bool):
            raise ValueError(f"ToDo item is missing an integer id: {dict(data)!r}")

        return cls(
            id=item_id,
            title=_field(data, "title", "Title", ""),
            description=_field(data, "description", "Description", ""),
            is_completed=bool(_field(data, "isCompleted", "IsCompleted", False)),
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the writable fields in the service's request format."""
        return item_payload(self.title, self.description, self.is_completed)


def item_payload(title: str, description: str, is_completed: bool) -> dict[str, Any]:
    """Build a create/update request body."""
    return {
        "title": title,
        "description": description,
        "isCompleted": is_completed,
    }


@dataclass(frozen=True)
class Credentials:
    """Login credentials for ``POST /api/Auth/login``."""

    email: str
    password: str

    def to_payload(self) -> dict[str, str]:
        return {"email": self.email, "password": self.password}

    def __repr__(self) -> str:
        return f"Credentials(email={self.email!r}, password='***')"


@dataclass
class FixtureSlot:
    """
    The one resource instance a scenario creates and tracks.

    ``item_id`` stays ``None`` until a create succeeds, which is how
    teardown knows there is nothing to clean up.
    """

    item_id: int | None = None
    title: str | None = None
    description: str | None = None
    is_completed: bool | None = None

    @property
    def is_set(self) -> bool:
        return self.item_id is not None

    def capture(self, item: ToDoItem) -> None:
        """Record the server's view of the fixture item."""
        self.item_id = item.id
        self.title = item.title
        self.description = item.description
        self.is_completed = item.is_completed
