"""
Helper utilities for Locust performance scenarios.

Every workload logs in exactly once per run, on Locust's ``test_start``
event, and shares that bearer token read-only with all virtual users.
Users that find no token skip their iteration instead of hammering the
API with requests that can only fail with 401.

Key Concepts Demonstrated:
- One-time setup shared across virtual users (no per-user login storm)
- Reusing the harness ``login`` so load and functional suites
  authenticate identically
- Safe JSON parsing inside ``catch_response`` blocks
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from todo_harness.auth import login, token_preview
from todo_harness.config import Config, load_config
from todo_harness.errors import AuthenticationError, HarnessConfigError
from todo_harness.session import ApiSession
from todo_harness.test_data import random_item_payload

logger = logging.getLogger(__name__)


class SharedToken:
    """Holder for the run's bearer token; written once by ``test_start``."""

    def __init__(self) -> None:
        self._value: str | None = None

    @property
    def value(self) -> str | None:
        return self._value

    def set(self, value: str | None) -> None:
        self._value = value


SHARED_TOKEN = SharedToken()


def fetch_shared_token(environment: Any, config: Config | None = None) -> str | None:
    """
    Log in once and publish the token to :data:`SHARED_TOKEN`.

    ``environment.host`` (Locust's ``--host``) wins over ``BASE_URL``.
    Failures are logged and leave the holder empty so the run continues
    with every user no-op'ing, the same way a failed setup behaves in CI.

    Returns:
        The token, or ``None`` when login was not possible.
    """
    SHARED_TOKEN.set(None)
    config = config or load_config()
    base_url = environment.host or config.base_url
    if not base_url:
        logger.error("No target host: pass --host or set BASE_URL")
        return None

    try:
        credentials = config.require_credentials()
        with ApiSession(
            base_url,
            timeout=config.request_timeout,
            verify=config.verify_tls,
        ) as session:
            token = login(session, credentials)
    except (HarnessConfigError, AuthenticationError, requests.RequestException) as exc:
        logger.error("Login failed, virtual users will skip their tasks: %s", exc)
        return None

    SHARED_TOKEN.set(token)
    logger.info("Shared token acquired: %s", token_preview(token))
    return token


def auth_header(token: str) -> dict[str, str]:
    """Bearer auth headers for JSON requests."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def safe_json(response: Any) -> Any:
    """Return the parsed body, or ``None`` if it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


def write_payload() -> dict[str, Any]:
    """Create payload with a title unique across users, iterations and runs."""
    return random_item_payload("Zadatak")
