"""Device-pairing login: the state machine from "no credential" to a verified one.

A login attempt moves through these states::

    Idle -> Resuming -> Polling -> Succeeded
      |                   |   \\-> Expired   (server said so)
      \\--> Starting ------/    \\-> TimedOut  (local deadline passed)

* **Resuming** -- a stored :class:`~beecli.models.PairingState` that has not
  expired is polled again with its original keypair. An expired one is
  cleared and the login falls through to Starting (shown as ``reset``).
* **Starting** -- a fresh keypair is generated and one pairing request is
  sent. A ``completed`` answer skips polling; ``expired`` fails at once;
  ``pending`` is persisted and presented to the user.
* **Polling** -- the transport is called every ``poll_interval`` seconds
  until the attempt completes, the server expires it, or the deadline from
  ``expiresAt`` (or the fallback window) passes.
* **Succeeded** -- the token is decrypted and verified, and only then saved.

Pairing state is cleared on every terminal outcome, including failures.
Two kinds of failure keep it so the next run can resume: network or 5xx
errors that outlasted their retries, and cancellation before a terminal
outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from beecli.auth.cancel import CancellationToken
from beecli.auth.credentials import CredentialStore
from beecli.auth.crypto import decrypt_token
from beecli.auth.keys import PairingKeyPair, generate_keypair
from beecli.auth.pairing_state import PairingStateStore
from beecli.auth.presenter import PairingPresenter, SessionStatus
from beecli.auth.transport import PairingTransport
from beecli.auth.verifier import CredentialVerifier
from beecli.client.http import Clock, utc_now
from beecli.exceptions import (
    BeeError,
    CancelledError,
    CryptoError,
    NetworkError,
    PairingExpiredError,
    PairingTimeoutError,
    ServerError,
)
from beecli.models import (
    CompletedAttempt,
    EnvironmentConfig,
    ExpiredAttempt,
    IdentityProfile,
    PairingSettings,
    PairingState,
    parse_timestamp,
)
from beecli.output import debug, info

EXPIRED_MESSAGE = "Pairing request expired. Please try again."
TIMED_OUT_MESSAGE = "Login timed out. Please try again."

# Failures that leave a pending attempt resumable.
_PRESERVING_ERRORS = (NetworkError, ServerError, CancelledError)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful pairing login."""

    token: str = field(repr=False)
    profile: IdentityProfile
    status: SessionStatus


class PairingOrchestrator:
    """Drive one device-pairing login for a single environment.

    Args:
        environment: The resolved environment; supplies the app id and the
            pairing URL host.
        transport: Pairing request/poll transport.
        state_store: Persists the in-flight attempt between runs.
        credential_store: Receives the verified credential.
        verifier: Checks the decrypted credential before it is saved.
        presenter: Shows the pairing link and instructions.
        settings: Poll interval and fallback window.
        cancel: Token checked before every call and used for every sleep.
        clock: Current-time source.
        keypair_factory: Produces the ephemeral keypair for a new attempt.
    """

    def __init__(
        self,
        environment: EnvironmentConfig,
        transport: PairingTransport,
        state_store: PairingStateStore,
        credential_store: CredentialStore,
        verifier: CredentialVerifier,
        presenter: PairingPresenter,
        settings: Optional[PairingSettings] = None,
        cancel: Optional[CancellationToken] = None,
        clock: Clock = utc_now,
        keypair_factory: Callable[[], PairingKeyPair] = generate_keypair,
    ) -> None:
        self._environment = environment
        self._transport = transport
        self._state_store = state_store
        self._credential_store = credential_store
        self._verifier = verifier
        self._presenter = presenter
        self._settings = settings or PairingSettings()
        self._cancel = cancel or CancellationToken()
        self._clock = clock
        self._keypair_factory = keypair_factory

    def login(self) -> LoginResult:
        """Resume or start a pairing attempt and return the verified login.

        Raises:
            PairingExpiredError: The server expired the attempt.
            PairingTimeoutError: The local deadline passed first.
            CryptoError: The delivered token could not be decrypted.
            VerificationError: The identity endpoint rejected the token.
            ProtocolError: A pairing or identity response was malformed.
            NetworkError: The network kept failing (state kept).
            ServerError: The server kept failing (state kept).
            CancelledError: The cancellation token fired (state kept).
            KeyboardInterrupt: Ctrl-C during a blocking call (state kept).
        """
        env = self._environment.name
        try:
            stored = self._state_store.load(env)
            status = SessionStatus.NEW
            if stored is not None:
                keypair = self._resumable_keypair(env, stored)
                if keypair is not None:
                    return self._resume(env, stored, keypair)
                status = SessionStatus.RESET
            return self._start(env, status)
        except KeyboardInterrupt:
            self._cancel.cancel()
            debug("Login interrupted; pairing state kept for the next run")
            raise

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def _resumable_keypair(self, env: str, stored: PairingState) -> Optional[PairingKeyPair]:
        """Return the stored keypair, or clear *stored* and return ``None``."""
        if stored.is_expired(self._clock()):
            info("Previous pairing request has expired; starting a new one.")
            self._state_store.clear(env)
            return None
        try:
            return PairingKeyPair.from_b64(stored.public_key, stored.secret_key)
        except CryptoError as exc:
            debug(f"Discarding stored pairing state: {exc}")
            self._state_store.clear(env)
            return None

    def _resume(self, env: str, stored: PairingState, keypair: PairingKeyPair) -> LoginResult:
        debug(f"Resuming pairing request {stored.request_id}")
        deadline = self._deadline_for(stored.expires_at)
        self._presenter.present(
            SessionStatus.RESUMED, stored.pairing_url, deadline, keypair.fingerprint()
        )
        completed = self._poll_until_terminal(env, stored.app_id, keypair, deadline)
        return self._finish(env, completed, keypair, SessionStatus.RESUMED)

    def _start(self, env: str, status: SessionStatus) -> LoginResult:
        keypair = self._keypair_factory()
        app_id = self._environment.app_id
        attempt = self._transport.request_or_poll(app_id, keypair.public_key_b64)

        if isinstance(attempt, CompletedAttempt):
            debug(f"Pairing request {attempt.request_id} was already approved")
            return self._finish(env, attempt, keypair, status)
        if isinstance(attempt, ExpiredAttempt):
            raise PairingExpiredError(EXPIRED_MESSAGE)

        state = PairingState(
            app_id=app_id,
            public_key=keypair.public_key_b64,
            secret_key=keypair.secret_key_b64,
            request_id=attempt.request_id,
            pairing_url=self._environment.pairing_url_for(attempt.request_id),
            expires_at=attempt.expires_at,
        )
        self._state_store.save(env, state)

        deadline = self._deadline_for(attempt.expires_at)
        self._presenter.present(status, state.pairing_url, deadline, keypair.fingerprint())
        completed = self._poll_until_terminal(env, app_id, keypair, deadline)
        return self._finish(env, completed, keypair, status)

    def _poll_until_terminal(
        self,
        env: str,
        app_id: str,
        keypair: PairingKeyPair,
        deadline: datetime,
    ) -> CompletedAttempt:
        try:
            return self._poll(app_id, keypair, deadline)
        except _PRESERVING_ERRORS:
            raise
        except BeeError:
            self._state_store.clear(env)
            raise

    def _poll(self, app_id: str, keypair: PairingKeyPair, deadline: datetime) -> CompletedAttempt:
        while self._clock() < deadline:
            self._cancel.raise_if_cancelled()
            attempt = self._transport.request_or_poll(
                app_id, keypair.public_key_b64, deadline=deadline
            )
            if isinstance(attempt, CompletedAttempt):
                return attempt
            if isinstance(attempt, ExpiredAttempt):
                raise PairingExpiredError(EXPIRED_MESSAGE)
            self._cancel.sleep(self._settings.poll_interval)
        raise PairingTimeoutError(TIMED_OUT_MESSAGE)

    def _finish(
        self,
        env: str,
        attempt: CompletedAttempt,
        keypair: PairingKeyPair,
        status: SessionStatus,
    ) -> LoginResult:
        try:
            token = decrypt_token(attempt.encrypted_token, keypair.secret_key)
            profile = self._verifier.verify(token)
        finally:
            self._state_store.clear(env)
        self._credential_store.save(env, token)
        return LoginResult(token=token, profile=profile, status=status)

    def _deadline_for(self, expires_at: Optional[str]) -> datetime:
        parsed = parse_timestamp(expires_at)
        if parsed is not None:
            return parsed
        debug("Pairing expiry is unreadable; using the fallback window")
        return self._clock() + timedelta(seconds=self._settings.fallback_window)
