"""Auth commands -- connect this machine to a Bee account.

Provides the top-level ``login``, ``logout``, ``status`` and ``me``
commands. Login pairs with an already signed-in device by default, or
accepts a credential directly with ``--token`` / ``--token-stdin``.

Typical workflow::

    bee login           # pair, then approve on your phone
    bee status          # show environment and masked credential
    bee me              # print the verified profile as JSON
    bee logout          # forget the credential
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import httpx
import typer

from beecli.auth import (
    CancellationToken,
    CredentialStore,
    CredentialVerifier,
    PairingOrchestrator,
    PairingPresenter,
    PairingStateStore,
    PairingTransport,
    SecretStore,
    create_secret_store,
    mask_token,
)
from beecli.client import RetryPolicy
from beecli.config import fingerprint_enabled, resolve_settings
from beecli.exceptions import (
    AuthError,
    CancelledError,
    InvalidUsageError,
    NetworkError,
    ProtocolError,
    ServerError,
    VerificationError,
)
from beecli.models import EnvironmentConfig, GlobalConfig, IdentityProfile
from beecli.output import (
    OutputFormat,
    debug,
    get_output,
    print_data,
    print_json,
    success,
    suggest,
)


@dataclass
class AuthSession:
    """Collaborators for one command invocation, built from ``ctx.obj``."""

    config: GlobalConfig
    environment: EnvironmentConfig
    secrets: SecretStore
    cancel: CancellationToken
    http_transport: Optional[httpx.BaseTransport] = None

    @classmethod
    def from_context(cls, ctx: typer.Context) -> AuthSession:
        obj = ctx.obj or {}
        config, environment = resolve_settings(obj.get("environment"))
        return cls(
            config=config,
            environment=environment,
            secrets=obj.get("secrets") or create_secret_store(config.secret_backend),
            cancel=CancellationToken(),
            http_transport=obj.get("http_transport"),
        )

    @property
    def env(self) -> str:
        return self.environment.name

    @property
    def policy(self) -> RetryPolicy:
        return RetryPolicy.from_settings(self.config.pairing)

    def credentials(self) -> CredentialStore:
        return CredentialStore(self.secrets)

    def pairing_states(self) -> PairingStateStore:
        return PairingStateStore(self.secrets)

    def verifier(self) -> CredentialVerifier:
        return CredentialVerifier(
            self.environment,
            self.policy,
            self.cancel,
            timeout=self.config.pairing.request_timeout,
            http_transport=self.http_transport,
        )

    def orchestrator(self, show_qr: bool, open_browser: bool) -> PairingOrchestrator:
        transport = PairingTransport(
            self.environment,
            self.policy,
            self.cancel,
            timeout=self.config.pairing.request_timeout,
            http_transport=self.http_transport,
        )
        presenter = PairingPresenter(
            show_qr=show_qr,
            open_browser=open_browser,
            show_fingerprint=fingerprint_enabled(),
        )
        return PairingOrchestrator(
            self.environment,
            transport,
            self.pairing_states(),
            self.credentials(),
            self.verifier(),
            presenter,
            settings=self.config.pairing,
            cancel=self.cancel,
        )


@contextmanager
def _cancel_on_interrupt() -> Iterator[None]:
    """Report Ctrl-C during a blocking call as a cancellation."""
    try:
        yield
    except KeyboardInterrupt:
        raise CancelledError("Cancelled.") from None


def _json_mode() -> bool:
    return get_output().format == OutputFormat.JSON


def _read_token_stdin() -> str:
    if sys.stdin.isatty():
        raise InvalidUsageError("--token-stdin requires input via stdin.")
    return sys.stdin.read().strip()


def _profile_summary(profile: IdentityProfile, environment: EnvironmentConfig) -> dict[str, Any]:
    return {
        "environment": environment.name,
        "id": profile.id,
        "name": profile.display_name,
    }


def _verify_stored(session: AuthSession, token: str) -> Optional[IdentityProfile]:
    """Return the profile for a stored token, or ``None`` if it cannot be confirmed.

    Any failure, including an unreachable server, falls through to pairing.
    """
    try:
        return session.verifier().verify(token)
    except (VerificationError, ProtocolError, NetworkError, ServerError) as exc:
        debug(f"Stored credential was not accepted: {exc}")
        return None


def login_command(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(
        None, "--token", help="Use this API token instead of device pairing."
    ),
    token_stdin: bool = typer.Option(
        False, "--token-stdin", help="Read the API token from standard input."
    ),
    qr: bool = typer.Option(False, "--qr", help="Show the pairing link as a QR code."),
    browser: bool = typer.Option(
        False, "--browser", help="Open the pairing link in the default browser."
    ),
) -> None:
    """Authenticate the CLI with your Bee account.

    Without options, requests a pairing link that the account owner
    approves in the Bee app. An interrupted login resumes on the next run
    as long as the request has not expired.

    Example::

        bee login
        bee login --qr
        bee login --token <token>
        echo "$TOKEN" | bee login --token-stdin
    """
    if token is not None and token_stdin:
        raise InvalidUsageError("Use either --token or --token-stdin, not both.")

    session = AuthSession.from_context(ctx)
    credentials = session.credentials()

    if token_stdin:
        token = _read_token_stdin()
    if token is not None:
        token = token.strip()
        if not token:
            raise InvalidUsageError("Missing token.")
        with _cancel_on_interrupt():
            profile = session.verifier().verify(token)
        credentials.save(session.env, token)
        _report_connected(profile, session.environment)
        return

    existing = credentials.load(session.env)
    if existing:
        with _cancel_on_interrupt():
            current = _verify_stored(session, existing)
        if current is not None:
            if _json_mode():
                print_json({**_profile_summary(current, session.environment), "status": "connected"})
                return
            success(f"You're already connected to Bee as {current.display_name}.")
            suggest("To switch to a different account, run 'bee logout' first.")
            return

    orchestrator = session.orchestrator(show_qr=qr, open_browser=browser)
    with _cancel_on_interrupt():
        result = orchestrator.login()
    _report_connected(result.profile, session.environment)


def _report_connected(profile: IdentityProfile, environment: EnvironmentConfig) -> None:
    if _json_mode():
        print_json({**_profile_summary(profile, environment), "status": "connected"})
        return
    print_data(f"Great news! I'm now connected to the Bee account of {profile.display_name}.")


def logout_command(ctx: typer.Context) -> None:
    """Forget the stored credential and any unfinished pairing request.

    Example::

        bee logout
        bee --staging logout
    """
    session = AuthSession.from_context(ctx)
    session.credentials().clear(session.env)
    session.pairing_states().clear(session.env)
    success("Logged out.")


def status_command(ctx: typer.Context) -> None:
    """Show the active environment and, when logged in, who you are.

    The credential is always masked.
    """
    session = AuthSession.from_context(ctx)
    environment = session.environment
    token = session.credentials().load(session.env)

    if token is None:
        if _json_mode():
            print_json(
                {"environment": environment.name, "api_url": environment.api_url, "logged_in": False}
            )
            return
        print_data("Not logged in.")
        print_data(f"API: {environment.label} ({environment.api_url})")
        return

    with _cancel_on_interrupt():
        profile = session.verifier().verify(token)
    if _json_mode():
        print_json(
            {
                "environment": environment.name,
                "api_url": environment.api_url,
                "logged_in": True,
                "token": mask_token(token),
                "user": {"id": profile.id, "name": profile.display_name},
            }
        )
        return
    print_data(f"API: {environment.label} ({environment.api_url})")
    print_data(f"Token: {mask_token(token)}")
    print_data(f"Verified as {profile.display_name} (id {profile.id}).")


def me_command(ctx: typer.Context) -> None:
    """Print the profile behind the stored credential as JSON."""
    session = AuthSession.from_context(ctx)
    token = session.credentials().load(session.env)
    if token is None:
        raise AuthError("Not logged in. Run 'bee login' first.")
    with _cancel_on_interrupt():
        profile = session.verifier().verify(token)
    print_json(profile.model_dump(mode="json"))
