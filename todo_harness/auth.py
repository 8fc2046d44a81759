"""
Auth Token Provider.

Logging in is the one expensive, stateful step of a harness run, so it is
split in two:

1. :func:`authenticate` -- performs ``POST /api/Auth/login`` once and
   persists ``{"token": ...}`` to :class:`TokenStore`'s path.
2. :func:`load_token` -- cheap reload used by every later suite, even
   when that suite runs in a different process or pytest invocation.

A token is assumed to stay valid for the whole run; it is never refreshed.

Run the login step on its own with::

    todo-harness-login            # or: pytest -m auth_setup

Key Concepts Demonstrated:
- Durable shared state between independent test processes
- Failing with a "missing setup" error that cannot be confused with a
  network failure
- Logging only a truncated token prefix
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import requests

from todo_harness.config import Config, load_config
from todo_harness.errors import AuthenticationError, HarnessConfigError, MissingAuthTokenError
from todo_harness.models import Credentials
from todo_harness.session import ApiSession

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/Auth/login"

# CLI exit codes: "bad credentials" and "not configured" need different fixes.
EXIT_OK = 0
EXIT_AUTH_FAILED = 1
EXIT_CONFIG_ERROR = 2


def token_preview(token: str, length: int = 20) -> str:
    """Return a log-safe prefix of *token*."""
    return f"{token[:length]}..."


class TokenStore:
    """
    JSON file holding the bearer token shared between suites.

    Args:
        path: Location of the token file.  Its parent directory is created
            on :meth:`save` if absent.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, token: str) -> Path:
        """Write ``{"token": token}`` and return the file path."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")
        return self.path

    def load(self) -> str:
        """
        Read the persisted token.

        Raises:
            MissingAuthTokenError: If the file is absent, unreadable, not
                valid JSON, or lacks a non-empty string ``token``.
        """
        if not self.path.is_file():
            raise MissingAuthTokenError(str(self.path), f"Auth file not found at: {self.path}")

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise MissingAuthTokenError(str(self.path), f"Auth file unreadable: {exc}") from exc
        except ValueError as exc:
            raise MissingAuthTokenError(str(self.path), f"Auth file is not valid JSON: {exc}") from exc

        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise MissingAuthTokenError(str(self.path), "Token not found in auth file")
        return token


def login(session: ApiSession, credentials: Credentials) -> str:
    """
    Exchange *credentials* for a bearer token.

    Args:
        session: An anonymous (or any) session; no Authorization header is
            sent with the login call.
        credentials: Email and password for the ToDo API account.

    Returns:
        The bearer token string.

    Raises:
        AuthenticationError: If the status is not 200 or the body has no
            token.  Transport errors propagate as ``requests`` exceptions.
    """
    response = session.request(
        "POST",
        LOGIN_PATH,
        json=credentials.to_payload(),
        authenticated=False,
    )
    if response.status != 200:
        raise AuthenticationError(
            f"Login failed with status {response.status}: {response.text[:200]}",
            status=response.status,
        )

    token = response.body.get("token") if isinstance(response.body, dict) else None
    if not isinstance(token, str) or not token:
        raise AuthenticationError(
            "No authentication token received from login response",
            status=response.status,
        )
    return token


def authenticate(config: Config, session: ApiSession | None = None) -> str:
    """
    Log in once and persist the token for later suites.

    Configuration is validated before any request is sent.

    Returns:
        The freshly issued token.
    """
    base_url = config.require_base_url()
    credentials = config.require_credentials()
    logger.info("Starting authentication against %s", base_url)

    owns_session = session is None
    active = session or ApiSession.from_config(config)
    try:
        token = login(active, credentials)
    finally:
        if owns_session:
            active.dispose()

    path = TokenStore(config.token_path).save(token)
    logger.info("Authentication completed. Token saved to %s: %s", path, token_preview(token))
    return token


def load_token(config: Config) -> str:
    """Reload the token written by :func:`authenticate`."""
    token = TokenStore(config.token_path).load()
    logger.info("Using saved authentication token from %s", config.token_path)
    return token


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the login step."""
    parser = argparse.ArgumentParser(
        description="Log in to the ToDo API once and persist the bearer token."
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Harness environment (development, testing, production)",
    )
    parser.add_argument(
        "--token-path",
        type=Path,
        default=None,
        help="Override AUTH_TOKEN_PATH for this run",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for ``todo-harness-login``.

    Returns:
        ``EXIT_OK`` on success, ``EXIT_AUTH_FAILED`` if the service
        rejected the login or was unreachable, ``EXIT_CONFIG_ERROR`` if a
        required setting is missing.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)

    try:
        config = load_config(args.env)
        if args.token_path is not None:
            config.token_path = args.token_path
        authenticate(config)
    except HarnessConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except (AuthenticationError, requests.RequestException) as exc:
        print(f"Authentication failed: {exc}", file=sys.stderr)
        return EXIT_AUTH_FAILED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
