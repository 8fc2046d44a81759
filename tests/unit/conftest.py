"""
Fixtures for offline harness tests.

Nothing here touches the network: HTTP traffic goes to a
:class:`~tests.unit.fakes.FakeHttpSession` and scenario tests drive an
:class:`~tests.unit.fakes.InMemoryToDoClient`.

Key SDET Concepts Demonstrated:
- Dependency injection of a fake transport instead of patching globals
- Factory fixtures for per-test configuration
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from tests.unit.fakes import BASE_URL, VALID_TOKEN, FakeHttpSession, InMemoryToDoClient
from todo_harness.client import ToDoItemClient
from todo_harness.config import Config, TestingConfig
from todo_harness.session import ApiSession


@pytest.fixture
def make_config(tmp_path) -> Callable[..., Config]:
    """Return a factory building a TestingConfig from explicit values."""

    def _make(**overrides: str) -> Config:
        environ = {
            "BASE_URL": BASE_URL,
            "API_EMAIL": "user@example.com",
            "API_PASSWORD": "User123!",
            "AUTH_TOKEN_PATH": str(tmp_path / ".auth" / "token.json"),
        }
        environ.update(overrides)
        return TestingConfig({key: value for key, value in environ.items() if value is not None})

    return _make


@pytest.fixture
def fake_http() -> FakeHttpSession:
    """An empty fake transport; tests queue responses onto ``fake_http.queue``."""
    return FakeHttpSession()


@pytest.fixture
def api_session(fake_http) -> ApiSession:
    """An authenticated session wired to the fake transport."""
    with ApiSession(BASE_URL, VALID_TOKEN, timeout=5, http=fake_http) as session:
        yield session


@pytest.fixture
def http_client(api_session) -> ToDoItemClient:
    """A real ToDoItemClient over the fake transport."""
    return ToDoItemClient(api_session)


@pytest.fixture
def fake_client() -> InMemoryToDoClient:
    """An in-memory stand-in for the ToDo service client."""
    return InMemoryToDoClient(valid_token=VALID_TOKEN)
