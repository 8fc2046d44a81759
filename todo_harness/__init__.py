"""
ToDo API end-to-end and load-testing harness.

The package drives an externally owned ToDo REST service: it logs in once
and shares the token between suites (:mod:`.auth`), issues CRUD and search
calls (:mod:`.client`), and sequences them into verified scenarios
(:mod:`.scenarios`).  pytest suites under ``tests/api`` and Locust
workloads under ``tests/performance`` are its consumers.
"""

from todo_harness.auth import TokenStore, authenticate, load_token, login
from todo_harness.client import ToDoItemClient
from todo_harness.config import Config, get_config, load_config
from todo_harness.errors import (
    AuthenticationError,
    HarnessConfigError,
    HarnessError,
    MissingAuthTokenError,
    ScenarioTimeout,
    StepFailure,
)
from todo_harness.models import Credentials, FixtureSlot, ToDoItem
from todo_harness.session import ApiResponse, ApiSession

__all__ = [
    "ApiResponse",
    "ApiSession",
    "AuthenticationError",
    "Config",
    "Credentials",
    "FixtureSlot",
    "HarnessConfigError",
    "HarnessError",
    "MissingAuthTokenError",
    "ScenarioTimeout",
    "StepFailure",
    "ToDoItem",
    "ToDoItemClient",
    "TokenStore",
    "authenticate",
    "get_config",
    "load_config",
    "load_token",
    "login",
]
