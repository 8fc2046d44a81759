"""
Scenario Runner for the ToDo API.

Two kinds of scenario live here:

- **CRUD flow** -- an ordered state machine over one fixture slot::

      UNSET -> CREATED -> READ_VERIFIED -> UPDATED
            -> SEARCH_VERIFIED -> DELETED -> VERIFIED_GONE

  Each step checks that the previous step left the scenario in the state
  it needs, asserts its own postcondition, then advances the state.  The
  steps share a :class:`CrudContext` that is passed in explicitly, never
  held in module globals, so two scenario instances (two fixture ids) can
  run side by side.

- **Negative checks** -- independent request/assert pairs that share only
  the read-only session and can run concurrently.

Reporting granularity is a wrapper, not a second copy of the scenario:
:func:`step` logs each step and attributes any failure inside it to the
step's name.

Key Concepts Demonstrated:
- Explicit state machine with precondition checks between dependent steps
- Scoped cleanup that runs on every exit path and never masks a failure
- Thread-pool fan-out for order-insensitive checks
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field

import requests

from todo_harness.assertions import (
    CREATE_SUCCESS_STATUSES,
    DELETE_SUCCESS_STATUSES,
    assert_contains_item,
    assert_item_matches,
    assert_not_server_error,
    assert_search_results,
    assert_status,
    assert_status_in,
    wait_for_status,
)
from todo_harness.client import ToDoItemClient, item, items
from todo_harness.errors import ScenarioTimeout, StepFailure
from todo_harness.models import FixtureSlot
from todo_harness.session import ApiResponse
from todo_harness.test_data import (
    NON_EXISTENT_ITEM_ID,
    NON_EXISTENT_UPDATE_ID,
    SQL_INJECTION_TITLE,
    generate_unique_title,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE_BASE = "Harness CRUD item"
DEFAULT_DESCRIPTION = "Created by the ToDo API harness"
UPDATED_DESCRIPTION = "Updated by the ToDo API harness"
INVALID_TOKEN = "invalid.bearer.token"


# -----------------------------------------------------------------------------
# Step wrapper
# -----------------------------------------------------------------------------

@contextmanager
def step(name: str) -> Iterator[None]:
    """
    Run a block as the named step.

    ``AssertionError``, ``ValueError`` (malformed bodies) and
    ``requests.RequestException`` raised inside the block are re-raised
    as :class:`StepFailure` so the report names the step that broke.
    """
    logger.info("STEP %s: started", name)
    try:
        yield
    except StepFailure as exc:
        logger.error("STEP %s: failed: %s", name, exc)
        raise
    except (AssertionError, ValueError, requests.RequestException) as exc:
        logger.error("STEP %s: failed: %s", name, exc)
        raise StepFailure(name, str(exc) or type(exc).__name__) from exc
    logger.info("STEP %s: passed", name)


# -----------------------------------------------------------------------------
# CRUD scenario
# -----------------------------------------------------------------------------

class ScenarioState(enum.Enum):
    """Where the CRUD fixture stands on the remote service."""

    UNSET = "unset"
    CREATED = "created"
    READ_VERIFIED = "read_verified"
    UPDATED = "updated"
    SEARCH_VERIFIED = "search_verified"
    DELETED = "deleted"
    VERIFIED_GONE = "verified_gone"


@dataclass
class CrudContext:
    """
    Everything one CRUD scenario instance shares between its steps.

    Attributes:
        client: Resource client bound to the run's session.
        create_title: Unique title used by the create step.
        update_title: Unique title the update step switches to.
        search_term: Substring the search step looks for; defaults to the
            current title with its case swapped, which is unique to this
            fixture and exercises case-insensitive matching.
        slot: The fixture item; ``slot.item_id`` is ``None`` until create
            succeeds.
        state: Current position in the state machine.
        deadline: ``time.monotonic()`` value after which no step may start
            or complete, or ``None`` for no limit.
        assertion_timeout: Seconds polling assertions wait.
        completed_steps: Names of steps that passed, in order.
        cleanup_warnings: Messages recorded by the best-effort cleanup.
    """

    client: ToDoItemClient
    create_title: str
    update_title: str
    search_term: str | None = None
    slot: FixtureSlot = field(default_factory=FixtureSlot)
    state: ScenarioState = ScenarioState.UNSET
    deadline: float | None = None
    assertion_timeout: float = 5.0
    completed_steps: list[str] = field(default_factory=list)
    cleanup_warnings: list[str] = field(default_factory=list)

    def require(self, step_name: str, expected: ScenarioState) -> int:
        """Fail *step_name* unless the scenario is in *expected*; return the item id."""
        if self.state is not expected:
            raise StepFailure(
                step_name,
                f"requires state {expected.name}, scenario is {self.state.name}",
            )
        if expected is not ScenarioState.UNSET and self.slot.item_id is None:
            raise StepFailure(step_name, "no item id was captured by the create step")
        return self.slot.item_id

    def check_deadline(self, step_name: str, when: str = "before the step started") -> None:
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise ScenarioTimeout(step_name, f"scenario timeout elapsed {when}")


def new_crud_context(
    client: ToDoItemClient,
    *,
    title_base: str = DEFAULT_TITLE_BASE,
    search_term: str | None = None,
    timeout: float | None = None,
    assertion_timeout: float = 5.0,
) -> CrudContext:
    """Create a fresh context with newly generated unique titles."""
    context = CrudContext(
        client=client,
        create_title=generate_unique_title(title_base),
        update_title=generate_unique_title(f"{title_base} UPDATED"),
        search_term=search_term,
        deadline=time.monotonic() + timeout if timeout is not None else None,
        assertion_timeout=assertion_timeout,
    )
    logger.info("Unique create title: %s", context.create_title)
    logger.info("Unique update title: %s", context.update_title)
    return context


def create_item(context: CrudContext) -> None:
    """UNSET -> CREATED: create with a unique title and capture the id."""
    context.require("create", ScenarioState.UNSET)

    response = context.client.create(context.create_title, DEFAULT_DESCRIPTION, False)
    assert_status(response, 201)
    created = item(response)
    context.slot.capture(created)
    context.state = ScenarioState.CREATED
    assert_item_matches(created, title=context.create_title)
    logger.info("CREATE - Item created with ID: %s", created.id)


def verify_read(context: CrudContext) -> None:
    """CREATED -> READ_VERIFIED: the item is visible by id and in the list."""
    item_id = context.require("read", ScenarioState.CREATED)

    response = context.client.get(item_id)
    assert_status(response, 200)
    assert_item_matches(
        item(response),
        item_id=item_id,
        title=context.create_title,
        description=DEFAULT_DESCRIPTION,
        is_completed=False,
    )

    listing = context.client.list()
    assert_status(listing, 200)
    assert_contains_item(items(listing), item_id, title=context.create_title)

    context.state = ScenarioState.READ_VERIFIED
    logger.info("READ - Item %s found by id and in list", item_id)


def update_item(context: CrudContext) -> None:
    """READ_VERIFIED -> UPDATED: new title, flipped completion, exact echo."""
    item_id = context.require("update", ScenarioState.READ_VERIFIED)

    current_response = context.client.get(item_id)
    assert_status(current_response, 200)
    current = item(current_response)
    new_completed = not current.is_completed

    response = context.client.update(
        item_id, context.update_title, UPDATED_DESCRIPTION, new_completed
    )
    assert_status(response, 200)
    updated = item(response)
    assert_item_matches(
        updated,
        item_id=item_id,
        title=context.update_title,
        description=UPDATED_DESCRIPTION,
        is_completed=new_completed,
    )

    reread = context.client.get(item_id)
    assert_status(reread, 200)
    assert_item_matches(
        item(reread),
        title=context.update_title,
        description=UPDATED_DESCRIPTION,
        is_completed=new_completed,
    )

    context.slot.capture(updated)
    context.state = ScenarioState.UPDATED
    logger.info("UPDATE - New title: %s", updated.title)


def verify_search(context: CrudContext) -> None:
    """UPDATED -> SEARCH_VERIFIED: search finds the item case-insensitively."""
    item_id = context.require("search", ScenarioState.UPDATED)
    term = context.search_term or context.slot.title.swapcase()

    response = context.client.search(term)
    assert_status(response, 200)
    results = items(response)
    assert_search_results(results, term)
    assert_contains_item(results, item_id)

    context.state = ScenarioState.SEARCH_VERIFIED
    logger.info("SEARCH - Found item %s with term %r", item_id, term)


def delete_item(context: CrudContext) -> None:
    """SEARCH_VERIFIED -> DELETED: either accepted success code."""
    item_id = context.require("delete", ScenarioState.SEARCH_VERIFIED)

    response = context.client.delete(item_id)
    assert_status_in(response, DELETE_SUCCESS_STATUSES)

    context.state = ScenarioState.DELETED
    logger.info("DELETE - status %s for item %s", response.status, item_id)


def verify_gone(context: CrudContext) -> None:
    """DELETED -> VERIFIED_GONE: the id now answers 404."""
    item_id = context.require("verify_gone", ScenarioState.DELETED)

    wait_for_status(
        lambda: context.client.get(item_id),
        404,
        timeout=context.assertion_timeout,
    )

    context.state = ScenarioState.VERIFIED_GONE
    logger.info("Item %s successfully deleted and verified", item_id)


CRUD_STEPS: tuple[tuple[str, Callable[[CrudContext], None]], ...] = (
    ("create", create_item),
    ("read", verify_read),
    ("update", update_item),
    ("search", verify_search),
    ("delete", delete_item),
    ("verify_gone", verify_gone),
)


def run_step(context: CrudContext, name: str, action: Callable[[CrudContext], None]) -> None:
    """
    Run one CRUD step under the step wrapper and the scenario deadline.

    The deadline is checked before the step starts and again once it
    returns, so a step that overran it fails even if its assertions held.
    A step that never returns is cut off by the per-test timeout.
    """
    context.check_deadline(name)
    with step(name):
        action(context)
    context.check_deadline(name, "while the step was running")
    context.completed_steps.append(name)


def discard_item(client: ToDoItemClient, item_id: int) -> str | None:
    """
    Delete *item_id* without ever raising.

    Returns:
        ``None`` when the item is gone (deleted now or already missing),
        otherwise a warning message describing what went wrong.
    """
    try:
        response = client.delete(item_id)
    except Exception as exc:
        message = f"Cleanup failed for item {item_id}: {exc}"
        logger.warning(message)
        return message

    if response.status in DELETE_SUCCESS_STATUSES or response.status == 404:
        logger.info("Cleanup removed item %s (status %s)", item_id, response.status)
        return None

    message = f"Cleanup failed for item {item_id}: status {response.status}"
    logger.warning(message)
    return message


def cleanup(context: CrudContext) -> list[str]:
    """
    Best-effort delete of the fixture item.

    Skipped when no id was captured or the scenario already deleted it.
    Failures are logged and returned as warnings; they are never raised.
    """
    if not context.slot.is_set:
        return []
    if context.state in (ScenarioState.DELETED, ScenarioState.VERIFIED_GONE):
        return []

    warning = discard_item(context.client, context.slot.item_id)
    warnings = [warning] if warning else []
    context.cleanup_warnings.extend(warnings)
    return warnings


@contextmanager
def crud_fixture(client: ToDoItemClient, **options) -> Iterator[CrudContext]:
    """
    Yield a fresh :class:`CrudContext` and always clean it up.

    Cleanup runs on success, on assertion failure and on interruption.
    """
    context = new_crud_context(client, **options)
    try:
        yield context
    finally:
        cleanup(context)


def run_crud_scenario(client: ToDoItemClient, **options) -> CrudContext:
    """
    Run every CRUD step in order against one new fixture.

    Stops at the first failing step; cleanup still runs.

    Raises:
        StepFailure: From the first failing step (``ScenarioTimeout`` when
            the deadline passed).
    """
    with crud_fixture(client, **options) as context:
        for name, action in CRUD_STEPS:
            run_step(context, name, action)
    return context


# -----------------------------------------------------------------------------
# Negative checks
# -----------------------------------------------------------------------------

def check_empty_title_rejected(client: ToDoItemClient) -> ApiResponse:
    """Creating with an empty title is a validation error (400)."""
    response = client.create("", "Valid description", False)
    if response.status in CREATE_SUCCESS_STATUSES and isinstance(response.body, dict):
        created_id = response.body.get("id")
        if isinstance(created_id, int):
            discard_item(client, created_id)
    assert_status(response, 400)
    return response


def check_missing_item_not_found(
    client: ToDoItemClient, item_id: int = NON_EXISTENT_ITEM_ID
) -> ApiResponse:
    """Fetching an id that was never issued answers 404."""
    response = client.get(item_id)
    assert_status(response, 404)
    return response


def check_unauthenticated_list_rejected(client: ToDoItemClient) -> ApiResponse:
    """Listing without an Authorization header answers 401."""
    response = client.list(authenticated=False)
    assert_status(response, 401)
    return response


def check_invalid_token_rejected(client: ToDoItemClient) -> ApiResponse:
    """Listing with a forged bearer token answers 401."""
    response = client.list(token=INVALID_TOKEN)
    assert_status(response, 401)
    return response


def check_update_missing_item_not_found(
    client: ToDoItemClient, item_id: int = NON_EXISTENT_UPDATE_ID
) -> ApiResponse:
    """Updating an id that was never issued answers 404."""
    response = client.update(
        item_id,
        "Trying to update non-existent item",
        "This should fail",
        True,
    )
    assert_status(response, 404)
    return response


def check_sql_injection_title_handled(client: ToDoItemClient) -> ApiResponse:
    """
    A SQL-metacharacter title must not produce a 5xx.

    Any 2xx/4xx is acceptable.  An item created by this check is removed.
    """
    response = client.create(SQL_INJECTION_TITLE, "SQL injection test", False)
    if response.status in CREATE_SUCCESS_STATUSES and isinstance(response.body, dict):
        created_id = response.body.get("id")
        if isinstance(created_id, int):
            discard_item(client, created_id)
    assert_not_server_error(response)
    logger.info("SQL injection handled with status: %s", response.status)
    return response


def check_repeated_delete_is_safe(client: ToDoItemClient) -> ApiResponse:
    """Deleting the same id twice never produces a server error."""
    created = client.create(generate_unique_title("Harness repeated delete"), "", False)
    assert_status(created, 201)
    item_id = item(created).id

    try:
        first = client.delete(item_id)
        assert_status_in(first, DELETE_SUCCESS_STATUSES)
        second = client.delete(item_id)
        assert_not_server_error(second)
        assert_status(client.get(item_id), 404)
    finally:
        discard_item(client, item_id)
    return second


NEGATIVE_CHECKS: dict[str, Callable[[ToDoItemClient], ApiResponse]] = {
    "empty_title_rejected": check_empty_title_rejected,
    "missing_item_not_found": check_missing_item_not_found,
    "unauthenticated_list_rejected": check_unauthenticated_list_rejected,
    "invalid_token_rejected": check_invalid_token_rejected,
    "update_missing_item_not_found": check_update_missing_item_not_found,
    "sql_injection_title_handled": check_sql_injection_title_handled,
    "repeated_delete_is_safe": check_repeated_delete_is_safe,
}


def run_check(client: ToDoItemClient, name: str) -> StepFailure | None:
    """Run one named negative check, returning its failure instead of raising."""
    try:
        with step(name):
            NEGATIVE_CHECKS[name](client)
    except StepFailure as exc:
        return exc
    return None


def run_negative_checks(
    client: ToDoItemClient,
    names: list[str] | None = None,
    max_workers: int = 4,
) -> dict[str, StepFailure | None]:
    """
    Run negative checks concurrently.

    Returns:
        Mapping of check name to its :class:`StepFailure`, or ``None`` for
        checks that passed.
    """
    selected = list(names or NEGATIVE_CHECKS)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        outcomes = pool.map(lambda name: run_check(client, name), selected)
        return dict(zip(selected, outcomes))
