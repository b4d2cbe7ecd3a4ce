"""Synchronous HTTP client with cancellation-aware retry and backoff.

This module provides :class:`ApiClient`, the blocking HTTP client used by the
pairing transport and the credential verifier.  It wraps
:class:`httpx.Client` and layers on:

- **Retry with backoff** -- retries on 5xx and network errors following a
  :class:`~beecli.client.retry.RetryPolicy` (1 s, 2 s, 4 s, ... capped).
- **Cancellation** -- every backoff sleep waits on a
  :class:`~beecli.auth.cancel.CancellationToken`, and the token is checked
  before each attempt.
- **Outer deadline** -- an optional wall-clock deadline stops retrying once
  the next backoff would start past it, so a caller's own time budget is
  overrun by at most one retry cycle.

Unlike a general-purpose client, :meth:`ApiClient.request` returns non-5xx
error responses as-is: the pairing protocol gives 404 and 4xx bodies their
own meaning, so status mapping is left to the caller.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx

from beecli.client.retry import RetryPolicy
from beecli.exceptions import NetworkError, ServerError
from beecli.output import get_output

if TYPE_CHECKING:
    from beecli.auth.cancel import CancellationToken

Clock = Callable[[], datetime]

NETWORK_FAILURE_MESSAGE = (
    "Unable to connect to Bee services. "
    "Please check your internet connection and try again."
)
SERVER_FAILURE_MESSAGE = (
    "Bee servers are currently experiencing issues. Please try again later."
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiClient:
    """Synchronous HTTP client for one base URL.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        base_url: Scheme and host that request paths are appended to.
        policy: Retry budget for transient failures.
        cancel: Token checked before every attempt and used for every sleep.
        timeout: Per-request timeout in seconds.
        transport: Optional :mod:`httpx` transport (tests pass
            :class:`httpx.MockTransport`).
        clock: Returns the current aware UTC time; compared against the
            *deadline* given to :meth:`request`.

    Example::

        with ApiClient("https://api.example.com", RetryPolicy(), token) as client:
            response = client.request("GET", "/v1/me")
    """

    def __init__(
        self,
        base_url: str,
        policy: RetryPolicy,
        cancel: CancellationToken,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._policy = policy
        self._cancel = cancel
        self._timeout = timeout
        self._transport = transport
        self._clock = clock
        self._client: Optional[httpx.Client] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        deadline: Optional[datetime] = None,
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Args:
            method: HTTP method.
            path: URL path appended to the base URL.
            headers: Extra request headers.
            json_body: JSON-serialisable body.
            deadline: Optional aware datetime after which no new backoff
                cycle is started.

        Returns:
            The first response that is not a 5xx.

        Raises:
            NetworkError: If the last attempt failed at the network level.
            ServerError: If the last attempt returned a 5xx status.
            CancelledError: If the cancellation token fires.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        merged_headers: dict[str, str] = {"Accept": "application/json"}
        merged_headers.update(headers or {})

        output = get_output()
        max_attempts = self._policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            self._cancel.raise_if_cancelled()
            try:
                kwargs: dict[str, Any] = {
                    "method": method,
                    "url": path,
                    "headers": merged_headers,
                }
                if json_body is not None:
                    kwargs["json"] = json_body
                response = self._client.request(**kwargs)
            except httpx.TransportError as exc:
                output.debug(f"{method} {self._base_url}{path} failed: {exc!r}")
                if not self._should_retry(attempt, deadline):
                    raise NetworkError(NETWORK_FAILURE_MESSAGE) from exc
                output.info(
                    f"Network connection issue, retrying... "
                    f"(attempt {attempt} of {max_attempts})"
                )
                self._backoff(attempt)
                continue

            if 500 <= response.status_code < 600:
                output.debug(
                    f"{method} {self._base_url}{path} returned {response.status_code}"
                )
                if not self._should_retry(attempt, deadline):
                    raise ServerError(SERVER_FAILURE_MESSAGE)
                output.info(
                    f"Server is temporarily unavailable, retrying... "
                    f"(attempt {attempt} of {max_attempts})"
                )
                self._backoff(attempt)
                continue

            return response

        # The loop always returns or raises on its last attempt.
        raise ServerError(SERVER_FAILURE_MESSAGE)  # pragma: no cover

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request. See :meth:`request`."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a POST request. See :meth:`request`."""
        return self.request("POST", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _should_retry(self, attempt: int, deadline: Optional[datetime]) -> bool:
        if attempt >= self._policy.max_attempts:
            return False
        if deadline is None:
            return True
        delay = timedelta(seconds=self._policy.delay_for(attempt))
        return self._clock() + delay < deadline

    def _backoff(self, attempt: int) -> None:
        self._cancel.sleep(self._policy.delay_for(attempt))


def error_code(response: httpx.Response) -> Optional[str]:
    """Return the ``error`` string from a JSON error body, if there is one."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return None
