"""
Assertion helpers for ToDo API responses.

Every helper raises a plain ``AssertionError`` whose message carries the
request label and a slice of the response body, so a failing step reads
like ``POST /api/ToDoItems -> 500: expected 201; body: ...`` instead of
``assert 500 == 201``.

:func:`wait_for_status` is the finer-grained, per-assertion timeout: it
polls for a status for at most a few seconds, then fails rather than
hanging the test.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable

from todo_harness.models import ToDoItem
from todo_harness.session import ApiResponse

CREATE_SUCCESS_STATUSES = (200, 201)
DELETE_SUCCESS_STATUSES = (200, 204)

_UNSET = object()


def _context(response: ApiResponse) -> str:
    return f"{response.describe()}; body: {response.text[:300]!r}"


def assert_status(response: ApiResponse, expected: int) -> None:
    """Fail unless *response* has exactly the *expected* status."""
    if response.status != expected:
        raise AssertionError(f"expected status {expected}, got {_context(response)}")


def assert_status_in(response: ApiResponse, accepted: Iterable[int]) -> None:
    """Fail unless *response* has one of the *accepted* statuses."""
    accepted = tuple(accepted)
    if response.status not in accepted:
        raise AssertionError(f"expected one of {list(accepted)}, got {_context(response)}")


def assert_not_server_error(response: ApiResponse) -> None:
    """Fail on any 5xx status -- the service must never crash on client input."""
    if response.status >= 500:
        raise AssertionError(f"unexpected server error: {_context(response)}")


def assert_item_matches(
    item: ToDoItem,
    *,
    item_id: object = _UNSET,
    title: object = _UNSET,
    description: object = _UNSET,
    is_completed: object = _UNSET,
) -> None:
    """Compare only the fields that were passed in."""
    expected = {
        "id": item_id,
        "title": title,
        "description": description,
        "is_completed": is_completed,
    }
    mismatches = [
        f"{field}: expected {want!r}, got {getattr(item, field)!r}"
        for field, want in expected.items()
        if want is not _UNSET and getattr(item, field) != want
    ]
    if mismatches:
        raise AssertionError(f"item {item.id} mismatch: " + "; ".join(mismatches))


def find_item(items: Iterable[ToDoItem], item_id: int) -> ToDoItem | None:
    """Return the item with *item_id*, or ``None``."""
    return next((candidate for candidate in items if candidate.id == item_id), None)


def assert_contains_item(
    items: Iterable[ToDoItem], item_id: int, title: str | None = None
) -> ToDoItem:
    """Fail unless *item_id* is present (with *title*, when given)."""
    items = list(items)
    found = find_item(items, item_id)
    if found is None:
        raise AssertionError(f"item {item_id} not found among {len(items)} returned items")
    if title is not None and found.title != title:
        raise AssertionError(f"item {item_id} has title {found.title!r}, expected {title!r}")
    return found


def title_matches(title: str, term: str) -> bool:
    """Case-insensitive substring match, the search endpoint's contract."""
    return term.casefold() in (title or "").casefold()


def assert_search_results(
    items: Iterable[ToDoItem], term: str, *, require_all: bool = False
) -> None:
    """
    Validate a search result set for *term*.

    The set must be non-empty and contain at least one matching title; with
    ``require_all`` every returned title must match.
    """
    items = list(items)
    if not items:
        raise AssertionError(f"search for {term!r} returned no items")

    matching = [candidate for candidate in items if title_matches(candidate.title, term)]
    if not matching:
        raise AssertionError(f"no title among {len(items)} results contains {term!r}")
    if require_all and len(matching) != len(items):
        strays = [candidate.title for candidate in items if candidate not in matching]
        raise AssertionError(f"search for {term!r} returned non-matching titles: {strays[:5]}")


def wait_for_status(
    fetch: Callable[[], ApiResponse],
    expected: int,
    *,
    timeout: float = 5.0,
    interval: float = 0.25,
) -> ApiResponse:
    """
    Poll *fetch* until it returns *expected* or *timeout* seconds elapse.

    Returns:
        The first response with the expected status.

    Raises:
        AssertionError: With the last observed response when time runs out.
    """
    deadline = time.monotonic() + timeout
    response = fetch()
    while response.status != expected:
        if time.monotonic() >= deadline:
            raise AssertionError(
                f"expected status {expected} within {timeout}s, last was {_context(response)}"
            )
        time.sleep(interval)
        response = fetch()
    return response
