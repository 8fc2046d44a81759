"""
Fixtures for the live ToDo API suites.

Everything here talks to a running service.  The suites are marked
``live`` and deselected by default; run them with::

    pytest -m auth_setup      # once, persists the token
    pytest -m live            # everything, auth setup ordered first

Key Concepts Demonstrated:
- Session-scoped token load and HTTP session, disposed once at the end
- Class-scoped CRUD context shared by ordered step tests
- Incremental classes: later steps xfail once an earlier step failed
- Factory fixture with best-effort teardown of everything it created
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

import pytest

from todo_harness.auth import load_token
from todo_harness.client import ToDoItemClient, item
from todo_harness.config import Config, load_config
from todo_harness.errors import MissingAuthTokenError
from todo_harness.models import ToDoItem
from todo_harness.scenarios import CrudContext, crud_fixture, discard_item
from todo_harness.session import ApiSession
from todo_harness.test_data import generate_unique_title

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Collection hooks
# -----------------------------------------------------------------------------

def pytest_collection_modifyitems(config, items):
    """Run auth setup before anything that needs its token."""
    items.sort(key=lambda test: 0 if test.get_closest_marker("auth_setup") else 1)


def pytest_runtest_makereport(item, call):
    if "incremental" in item.keywords and call.excinfo is not None:
        item.parent._previousfailed = item


def pytest_runtest_setup(item):
    if "incremental" in item.keywords:
        previous = getattr(item.parent, "_previousfailed", None)
        if previous is not None:
            pytest.xfail(f"previous step failed ({previous.name})")


# -----------------------------------------------------------------------------
# Session fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def harness_config() -> Config:
    """Configuration from the environment and ``.env``."""
    return load_config()


@pytest.fixture(scope="session")
def auth_token(harness_config: Config) -> str:
    """
    The token persisted by the auth setup step.

    Fails (not errors) with a pointer to the setup step when it is absent.
    """
    try:
        return load_token(harness_config)
    except MissingAuthTokenError as exc:
        pytest.fail(str(exc), pytrace=False)


@pytest.fixture(scope="session")
def api_session(harness_config: Config, auth_token: str) -> Iterator[ApiSession]:
    with ApiSession.from_config(harness_config, auth_token) as session:
        yield session


@pytest.fixture(scope="session")
def todo_client(api_session: ApiSession) -> ToDoItemClient:
    return ToDoItemClient(api_session)


# -----------------------------------------------------------------------------
# Scenario fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="class")
def crud_context(todo_client: ToDoItemClient, harness_config: Config) -> Iterator[CrudContext]:
    """One CRUD fixture item shared by the step tests of a class."""
    with crud_fixture(
        todo_client,
        timeout=harness_config.scenario_timeout,
        assertion_timeout=harness_config.assertion_timeout,
    ) as context:
        yield context

    for warning in context.cleanup_warnings:
        logger.warning(warning)


@pytest.fixture
def item_factory(todo_client: ToDoItemClient) -> Iterator[Callable[..., ToDoItem]]:
    """
    Create items with unique titles; every one is deleted after the test.

    The factory asserts a 201 and returns the parsed item.
    """
    created: list[int] = []

    def _create(
        base_title: str = "Harness item",
        description: str = "Created by the ToDo API harness",
        is_completed: bool = False,
        *,
        title: str | None = None,
    ) -> ToDoItem:
        response = todo_client.create(
            title if title is not None else generate_unique_title(base_title),
            description,
            is_completed,
        )
        assert response.status == 201, f"create failed: {response.describe()} {response.text}"
        created_item = item(response)
        created.append(created_item.id)
        return created_item

    yield _create

    for item_id in created:
        warning = discard_item(todo_client, item_id)
        if warning:
            logger.warning(warning)
