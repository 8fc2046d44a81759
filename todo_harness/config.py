"""
Harness Configuration.

Defines environment-specific configuration classes for the ToDo API
harness.  Each class captures where the service lives, which credentials
the login step uses, where the shared token is persisted, and the timeouts
that keep a misbehaving service from hanging a test run.  The
``get_config`` factory selects the right class based on the
``HARNESS_ENV`` environment variable (or an explicit key).

Values are read when a config object is *instantiated*, not at import
time, so tests can pass an explicit mapping instead of patching
``os.environ``.  A ``.env`` file in the working directory is honoured via
``python-dotenv``; variables already set in the process take precedence.

Key Concepts Demonstrated:
- Class-based configuration with inheritance for DRY defaults
- Environment-variable overrides for 12-factor deployability
- Fail-fast accessors that name the missing precondition
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from todo_harness.errors import HarnessConfigError
from todo_harness.models import Credentials

TRUTHY_VALUES = {"1", "true", "yes", "on"}


def _read_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise HarnessConfigError(f"{name} must be a number, got {raw!r}") from exc


class Config:
    """
    Base (shared) configuration for the harness.

    Attributes:
        base_url: Root URL of the ToDo API without a trailing slash, or
            ``None`` when ``BASE_URL`` is unset.
        email: Login email (``API_EMAIL``), only needed by the login step.
        password: Login password (``API_PASSWORD``).
        token_path: File the login step writes and every suite reads.
        request_timeout: Seconds before a single HTTP request is abandoned.
        assertion_timeout: Seconds a polling assertion keeps retrying.
        scenario_timeout: Seconds an ordered scenario may run in total.
        verify_tls: Whether TLS certificates are verified.  Off by default
            because local ToDo API instances use a dev certificate.
    """

    REQUEST_TIMEOUT: float = 30.0
    ASSERTION_TIMEOUT: float = 5.0
    SCENARIO_TIMEOUT: float = 120.0
    DEFAULT_TOKEN_PATH: str = ".auth/token.json"

    def __init__(self, environ: Mapping[str, str] | None = None):
        if environ is None:
            load_dotenv(find_dotenv(usecwd=True), override=False)
            environ = os.environ

        base_url = (environ.get("BASE_URL") or "").strip().rstrip("/")
        self.base_url: str | None = base_url or None
        self.email: str | None = environ.get("API_EMAIL") or None
        self.password: str | None = environ.get("API_PASSWORD") or None
        self.token_path = Path(environ.get("AUTH_TOKEN_PATH") or self.DEFAULT_TOKEN_PATH)
        self.request_timeout = _read_float(environ, "REQUEST_TIMEOUT", self.REQUEST_TIMEOUT)
        self.assertion_timeout = _read_float(
            environ, "ASSERTION_TIMEOUT", self.ASSERTION_TIMEOUT
        )
        self.scenario_timeout = _read_float(environ, "SCENARIO_TIMEOUT", self.SCENARIO_TIMEOUT)
        self.verify_tls = (environ.get("VERIFY_TLS") or "").strip().lower() in TRUTHY_VALUES

    def require_base_url(self) -> str:
        """Return the base URL or fail before any request is attempted."""
        if not self.base_url:
            raise HarnessConfigError("BASE_URL is not defined in environment variables")
        return self.base_url

    def require_credentials(self) -> Credentials:
        """Return login credentials or name every missing variable."""
        missing = [
            name
            for name, value in (("API_EMAIL", self.email), ("API_PASSWORD", self.password))
            if not value
        ]
        if missing:
            raise HarnessConfigError(
                f"Login credentials are not configured: {', '.join(missing)} not set"
            )
        return Credentials(email=self.email, password=self.password)


class DevelopmentConfig(Config):
    """Local runs against a developer's ToDo API instance."""


class TestingConfig(Config):
    """
    Offline harness self-tests.

    Short timeouts keep tests that simulate a slow or silent service fast.
    """

    __test__ = False

    REQUEST_TIMEOUT: float = 5.0
    ASSERTION_TIMEOUT: float = 1.0
    SCENARIO_TIMEOUT: float = 30.0


class ProductionConfig(Config):
    """Runs against a shared deployed environment (CI)."""

    REQUEST_TIMEOUT: float = 15.0


# Lookup table mapping environment name strings to their config classes.
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Return the configuration class for the given environment.

    Args:
        env: One of ``"development"``, ``"testing"``, or
            ``"production"``.  When *None*, the ``HARNESS_ENV``
            environment variable is consulted, falling back to
            ``"development"`` if unset.

    Returns:
        The ``Config`` subclass matching the requested environment,
        or ``DevelopmentConfig`` if the key is unrecognised.
    """
    if env is None:
        env = os.environ.get("HARNESS_ENV", "development")
    return config.get(env, config["default"])


def load_config(env: str | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """Instantiate the configuration for *env* from *environ* (or the process)."""
    return get_config(env)(environ)
