"""
Resource Client for ``/api/ToDoItems``.

A thin wrapper that turns each CRUD/search operation into one HTTP call.
It deliberately does not retry, raise on error statuses, or interpret
the response: a 400, 401 or 404 is exactly what a negative test wants to
observe, so the calling scenario decides what is expected.
"""

from __future__ import annotations

from typing import Any

from todo_harness.models import ToDoItem, item_payload
from todo_harness.session import ApiResponse, ApiSession

ITEMS_PATH = "/api/ToDoItems"
SEARCH_PATH = f"{ITEMS_PATH}/search"


def item_path(item_id: int) -> str:
    return f"{ITEMS_PATH}/{item_id}"


class ToDoItemClient:
    """CRUD and search operations against the ToDo resource."""

    def __init__(self, session: ApiSession):
        self.session = session

    def create(self, title: str, description: str, is_completed: bool = False) -> ApiResponse:
        """``POST /api/ToDoItems`` -- 201 on success, 400 for an empty title."""
        return self.session.request(
            "POST",
            ITEMS_PATH,
            json=item_payload(title, description, is_completed),
        )

    def get(self, item_id: int) -> ApiResponse:
        """``GET /api/ToDoItems/{id}`` -- 404 when the id does not exist."""
        return self.session.request("GET", item_path(item_id))

    def list(self, *, authenticated: bool = True, token: str | None = None) -> ApiResponse:
        """
        ``GET /api/ToDoItems`` for the authenticated user.

        Args:
            authenticated: ``False`` omits the Authorization header.
            token: Send this bearer token instead of the session's.
        """
        return self.session.request(
            "GET",
            ITEMS_PATH,
            authenticated=authenticated,
            token=token,
        )

    def search(self, title_term: str) -> ApiResponse:
        """``GET /api/ToDoItems/search?Title=<term>`` (server-side filter)."""
        return self.session.request("GET", SEARCH_PATH, params={"Title": title_term})

    def update(
        self,
        item_id: int,
        title: str,
        description: str,
        is_completed: bool,
    ) -> ApiResponse:
        """``PUT /api/ToDoItems/{id}`` -- 404 when the id does not exist."""
        return self.session.request(
            "PUT",
            item_path(item_id),
            json=item_payload(title, description, is_completed),
        )

    def delete(self, item_id: int) -> ApiResponse:
        """``DELETE /api/ToDoItems/{id}`` -- 200 or 204 are both success."""
        return self.session.request("DELETE", item_path(item_id))


def items(response: ApiResponse) -> list[ToDoItem]:
    """
    Convert an array response body into items.

    Raises:
        ValueError: If the body is not a JSON array of item objects.
    """
    body: Any = response.body
    if not isinstance(body, list):
        raise ValueError(f"{response.describe()}: expected a JSON array, got {response.text[:200]!r}")
    return [ToDoItem.from_json(entry) for entry in body]


def item(response: ApiResponse) -> ToDoItem:
    """Convert a single-object response body into an item."""
    return ToDoItem.from_json(response.body)
