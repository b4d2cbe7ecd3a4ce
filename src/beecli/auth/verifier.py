"""Confirm a candidate credential against the identity endpoint."""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from beecli.auth.cancel import CancellationToken
from beecli.client.http import ApiClient, Clock, error_code, utc_now
from beecli.client.retry import RetryPolicy
from beecli.exceptions import ProtocolError, VerificationError
from beecli.models import EnvironmentConfig, IdentityProfile

IDENTITY_PATH = "/v1/me"


class CredentialVerifier:
    """Resolve a bearer token to the :class:`~beecli.models.IdentityProfile` behind it.

    Uses the same retry policy as the pairing transport, so a flaky network
    surfaces as :class:`~beecli.exceptions.NetworkError` rather than as a
    rejected token.
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

    def verify(self, token: str) -> IdentityProfile:
        """Call ``GET /v1/me`` with *token* and return the decoded profile.

        Raises:
            VerificationError: The endpoint answered with a non-2xx status.
            ProtocolError: The body lacks an integer ``id`` or a string
                ``first_name``.
            NetworkError: Network failures persisted through every retry.
            ServerError: 5xx responses persisted through every retry.
        """
        with ApiClient(
            self._environment.api_url,
            self._policy,
            self._cancel,
            timeout=self._timeout,
            transport=self._http_transport,
            clock=self._clock,
        ) as client:
            response = client.get(
                IDENTITY_PATH,
                headers={"Authorization": f"Bearer {token}"},
            )

        if not response.is_success:
            reason = error_code(response) or f"Request failed with status {response.status_code}"
            raise VerificationError(f"Invalid token: {reason}")

        try:
            return IdentityProfile.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ProtocolError("Invalid response from identity endpoint.") from exc
