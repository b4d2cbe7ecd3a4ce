"""HTTP transport for the pairing endpoint.

The same call both creates a pairing request and polls it: the server keys
attempts on ``(app_id, publicKey)``, so re-sending the body returns the
current state of the attempt.

Request::

    POST <base>/apps/pairing/request
    {"app_id": "<app id>", "publicKey": "<base64 X25519 public key>"}

Response (HTTP 2xx)::

    {"ok": true, "status": "pending",   "requestId": "...", "expiresAt": "<ISO 8601>"}
    {"ok": true, "status": "completed", "requestId": "...", "result": {"encryptedToken": "..."}}
    {"ok": true, "status": "expired",   "requestId": "..."}

Decoded responses become one of the :data:`~beecli.models.PairingAttempt`
variants. Anything else is a :class:`~beecli.exceptions.ProtocolError` and
is never retried.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import httpx
from pydantic import ValidationError

from beecli.auth.cancel import CancellationToken
from beecli.client.http import ApiClient, Clock, error_code, utc_now
from beecli.client.retry import RetryPolicy
from beecli.exceptions import EndpointNotFoundError, ProtocolError
from beecli.models import EnvironmentConfig, PairingAttempt, pairing_attempt_adapter
from beecli.output import debug

PAIRING_PATH = "/apps/pairing/request"
INVALID_RESPONSE = "Invalid response from pairing API."
ENDPOINT_NOT_FOUND = "Pairing endpoint not found."


class PairingTransport:
    """Issue pairing requests and polls against an environment's pairing API.

    Transient failures are retried by :class:`~beecli.client.http.ApiClient`
    under *policy*. A bare 404 from a candidate base URL means "wrong base
    URL", so the transport moves on to the environment's next candidate. The
    first URL that answers is remembered for later polls.

    Args:
        environment: Supplies the candidate pairing base URLs.
        policy: Retry budget per call.
        cancel: Cancellation token shared with the orchestrator.
        timeout: Per-request timeout in seconds.
        http_transport: Optional :mod:`httpx` transport (tests pass
            :class:`httpx.MockTransport`).
        clock: Current-time source used for the retry deadline check.
    """

    def __init__(
        self,
        environment: EnvironmentConfig,
        policy: RetryPolicy,
        cancel: CancellationToken,
        timeout: float = 30.0,
        http_transport: Optional[httpx.BaseTransport] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._environment = environment
        self._policy = policy
        self._cancel = cancel
        self._timeout = timeout
        self._http_transport = http_transport
        self._clock = clock
        self._active_url: Optional[str] = None

    def request_or_poll(
        self,
        app_id: str,
        public_key: str,
        deadline: Optional[datetime] = None,
    ) -> PairingAttempt:
        """Create or poll the pairing attempt for *public_key*.

        Args:
            app_id: The environment's app identifier.
            public_key: Base64 X25519 public key of this attempt.
            deadline: Optional outer deadline handed to the retry loop.

        Returns:
            A :class:`~beecli.models.PendingAttempt`,
            :class:`~beecli.models.CompletedAttempt`, or
            :class:`~beecli.models.ExpiredAttempt`.

        Raises:
            NetworkError: Network failures persisted through every retry.
            ServerError: 5xx responses persisted through every retry.
            ProtocolError: The response was malformed or rejected, or no
                candidate base URL serves the pairing endpoint.
            CancelledError: The cancellation token fired.
        """
        candidates = [self._active_url] if self._active_url else self._environment.pairing_urls
        for base_url in candidates:
            try:
                attempt = self._send(base_url, app_id, public_key, deadline)
            except EndpointNotFoundError:
                debug(f"No pairing endpoint at {base_url}; trying the next candidate")
                continue
            self._active_url = base_url
            return attempt
        raise ProtocolError(ENDPOINT_NOT_FOUND)

    def _send(
        self,
        base_url: str,
        app_id: str,
        public_key: str,
        deadline: Optional[datetime],
    ) -> PairingAttempt:
        with ApiClient(
            base_url,
            self._policy,
            self._cancel,
            timeout=self._timeout,
            transport=self._http_transport,
            clock=self._clock,
        ) as client:
            response = client.post(
                PAIRING_PATH,
                headers={"Content-Type": "application/json"},
                json_body={"app_id": app_id, "publicKey": public_key},
                deadline=deadline,
            )
        return parse_pairing_response(response)


def parse_pairing_response(response: httpx.Response) -> PairingAttempt:
    """Classify a non-5xx pairing response into a :data:`~beecli.models.PairingAttempt`.

    Raises:
        EndpointNotFoundError: On a 404 without an error code, or with the
            code ``"Not Found"``.
        ProtocolError: On any other error status, a body without
            ``ok: true``, an unknown ``status``, or missing fields.
    """
    if not response.is_success:
        code = error_code(response)
        if response.status_code == 404 and (code is None or code == "Not Found"):
            raise EndpointNotFoundError(ENDPOINT_NOT_FOUND)
        raise ProtocolError(code or f"Request failed with status {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        raise ProtocolError(INVALID_RESPONSE) from exc

    if not isinstance(data, dict) or data.get("ok") is not True:
        raise ProtocolError(INVALID_RESPONSE)

    try:
        return pairing_attempt_adapter.validate_python(data)
    except ValidationError as exc:
        raise ProtocolError(INVALID_RESPONSE) from exc
