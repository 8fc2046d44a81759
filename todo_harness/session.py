"""
Session/Context Manager for the ToDo API.

An :class:`ApiSession` holds the three things every request needs -- the
base URL, the bearer token, and a pooled HTTP connection -- and hands out
plain :class:`ApiResponse` values.  It is created before a suite runs and
disposed afterwards, either explicitly or by using it as a context
manager.

The session is shared read-only by everything in a run: once constructed,
neither the base URL nor the token change, so concurrent negative checks
can use the same instance.

Key Concepts Demonstrated:
- Scoped acquisition/release of an HTTP connection pool
- Header builders that make "authenticated vs. anonymous" explicit
- Returning raw status/body pairs instead of raising on 4xx/5xx
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import requests
import urllib3

if TYPE_CHECKING:
    from todo_harness.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """
    Raw outcome of one HTTP call.

    Attributes:
        method: HTTP verb that produced the response.
        path: Request path relative to the base URL.
        status: HTTP status code.
        body: Parsed JSON body, or ``None`` if the body was empty or not
            JSON.
        text: Raw response text, kept for failure messages.
    """

    method: str
    path: str
    status: int
    body: Any
    text: str = ""

    @classmethod
    def from_requests(cls, method: str, path: str, response: Any) -> "ApiResponse":
        text = response.text or ""
        body: Any = None
        if text.strip():
            try:
                body = response.json()
            except ValueError:
                body = None
        return cls(method=method, path=path, status=response.status_code, body=body, text=text)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def describe(self) -> str:
        """Short ``METHOD path -> status`` label for logs and assertion messages."""
        return f"{self.method} {self.path} -> {self.status}"


class ApiSession:
    """
    Base URL, bearer token and connection pool for one test run.

    Args:
        base_url: Root URL of the ToDo API.
        token: Bearer token, or ``None`` for anonymous use (login).
        timeout: Seconds before a single request is abandoned.
        verify: Whether to verify TLS certificates.
        http: Optional pre-built ``requests.Session`` (injected by tests).
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 30.0,
        verify: bool = False,
        http: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.verify = verify
        self._http = http if http is not None else requests.Session()
        self._http.headers.update({"Accept": "application/json"})
        self._disposed = False

        if not verify:
            # Dev certificates are expected; one warning per request is noise.
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @classmethod
    def from_config(cls, config: "Config", token: str | None = None) -> "ApiSession":
        """Build a session from a harness config, failing fast without a base URL."""
        return cls(
            config.require_base_url(),
            token,
            timeout=config.request_timeout,
            verify=config.verify_tls,
        )

    def __enter__(self) -> "ApiSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Close the connection pool.  Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        self._http.close()
        logger.info("API session for %s disposed", self.base_url)

    def headers(self, authenticated: bool = True, token: str | None = None) -> dict[str, str]:
        """
        Build JSON request headers, adding bearer auth when requested.

        Args:
            authenticated: When ``False`` the ``Authorization`` header is
                omitted entirely.
            token: Overrides the session token for this one call (used to
                exercise the service with a forged token).
        """
        headers = {"Content-Type": "application/json"}
        bearer = token if token is not None else self.token
        if authenticated and bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
        token: str | None = None,
    ) -> ApiResponse:
        """
        Send one request and return its raw outcome.

        Transport errors (``requests.RequestException``) propagate to the
        caller unchanged; HTTP error statuses never raise.

        Raises:
            RuntimeError: If the session was already disposed.
        """
        if self._disposed:
            raise RuntimeError("API session has been disposed")

        response = self._http.request(
            method=method,
            url=f"{self.base_url}{path}",
            json=json,
            params=params,
            headers=self.headers(authenticated, token),
            timeout=self.timeout,
            verify=self.verify,
        )
        result = ApiResponse.from_requests(method, path, response)
        logger.debug("%s", result.describe())
        return result
