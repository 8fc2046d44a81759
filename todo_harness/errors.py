"""
Exception taxonomy for the ToDo API harness.

The harness separates four kinds of failure so that a red test run can be
read at a glance:

- **Setup/config errors** (:class:`HarnessConfigError`,
  :class:`MissingAuthTokenError`) -- raised before any request is sent.
- **Authentication errors** (:class:`AuthenticationError`) -- the login
  call answered, but not with a usable token.
- **Step failures** (:class:`StepFailure`) -- an assertion or transport
  error attributed to one named scenario step.
- **Network errors** -- ``requests.RequestException`` is never wrapped by
  the client itself, so "the service is down" stays distinguishable from
  "run the login step first".
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for all harness-raised errors."""


class HarnessConfigError(HarnessError):
    """A required configuration value is missing or invalid."""


class MissingAuthTokenError(HarnessConfigError):
    """The persisted auth token could not be loaded."""

    def __init__(self, path: str, details: str):
        self.path = path
        self.details = details
        super().__init__(
            f"Authentication token not found. Run the auth setup step first "
            f"(todo-harness-login or pytest -m auth_setup). "
            f"Path: {path}. Details: {details}"
        )


class AuthenticationError(HarnessError):
    """The login endpoint did not return a usable bearer token."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class StepFailure(AssertionError):
    """
    An assertion failure attributed to a specific scenario step.

    Subclasses ``AssertionError`` so pytest reports it as a regular test
    failure rather than an error in the harness.
    """

    def __init__(self, step: str, message: str):
        self.step = step
        self.message = message
        super().__init__(f"[{step}] {message}")


class ScenarioTimeout(StepFailure):
    """The scenario deadline elapsed before the named step could start."""
