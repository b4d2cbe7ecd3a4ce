"""Exception hierarchy for beecli.

All exceptions inherit from :class:`BeeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`beecli.exit_codes`.
The top-level error handler in :func:`beecli.app.main` catches
``BeeError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Only :class:`NetworkError` and :class:`ServerError` are transient: the HTTP
layer retries them with bounded exponential backoff before letting them
propagate.  Everything else is raised immediately.

Subclass hierarchy::

    BeeError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- AuthError              (exit 3)
    |   +-- VerificationError  (exit 3)
    +-- ServerError            (exit 5)
    +-- NetworkError           (exit 6)
    +-- ProtocolError          (exit 8)
    |   +-- EndpointNotFoundError
    +-- CryptoError            (exit 8)
    +-- PairingExpiredError    (exit 9)
    +-- PairingTimeoutError    (exit 9)
    +-- CancelledError         (exit 130)
    +-- ConfigError            (exit 1)
"""

from beecli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PAIRING_EXPIRED,
    EXIT_PROTOCOL_ERROR,
    EXIT_SERVER_ERROR,
)


class BeeError(Exception):
    """Base exception for all beecli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`beecli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Messages are printed verbatim to stderr, so they must never contain key
    material or unmasked tokens.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(BeeError):
    """Raised for invalid CLI arguments (e.g. ``--token`` with ``--token-stdin``)."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(BeeError):
    """Raised when no credential is stored for the active environment."""

    exit_code = EXIT_AUTH_FAILURE


class VerificationError(AuthError):
    """Raised when the identity endpoint rejects a candidate credential."""


class ServerError(BeeError):
    """Raised when the API keeps returning HTTP 5xx after all retries."""

    exit_code = EXIT_SERVER_ERROR


class NetworkError(BeeError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)
    that persist after all retries."""

    exit_code = EXIT_CONNECTION_ERROR


class ProtocolError(BeeError):
    """Raised when a response has an unexpected shape. Never retried."""

    exit_code = EXIT_PROTOCOL_ERROR


class EndpointNotFoundError(ProtocolError):
    """Raised on a bare HTTP 404 from a pairing base URL.

    Signals "wrong base URL for this environment" rather than "attempt not
    found", so callers holding several candidate URLs move on to the next.
    """


class CryptoError(BeeError):
    """Raised when an encrypted pairing payload cannot be decoded or authenticated."""

    exit_code = EXIT_PROTOCOL_ERROR


class PairingExpiredError(BeeError):
    """Raised when the server reports the pairing request as expired."""

    exit_code = EXIT_PAIRING_EXPIRED


class PairingTimeoutError(BeeError):
    """Raised when the local poll deadline passes before the pairing completes."""

    exit_code = EXIT_PAIRING_EXPIRED


class CancelledError(BeeError):
    """Raised when the active :class:`~beecli.auth.cancel.CancellationToken` fires.

    Named to match the pairing vocabulary; unrelated to
    :class:`asyncio.CancelledError`.
    """

    exit_code = EXIT_CANCELLED


class ConfigError(BeeError):
    """Raised for configuration problems (invalid JSON, unknown environment or backend)."""

    exit_code = EXIT_GENERIC_FAILURE
