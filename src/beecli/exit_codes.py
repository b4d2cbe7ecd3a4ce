"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~beecli.exceptions.BeeError` subclass.
Shell wrappers can inspect the exit code to tell a rejected token apart from
an unreachable server without parsing stderr.

Example::

    $ bee login
    $ echo $?
    9   # EXIT_PAIRING_EXPIRED -- the pairing request was not approved in time
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""Not logged in, or the credential was rejected by the identity endpoint."""

EXIT_SERVER_ERROR = 5
"""The remote API kept returning HTTP 5xx after all retries."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error persisted after all retries (timeout, DNS, refused)."""

EXIT_PROTOCOL_ERROR = 8
"""The server answered with a malformed or undecryptable response."""

EXIT_PAIRING_EXPIRED = 9
"""The pairing request expired or the local poll deadline was reached."""

EXIT_CANCELLED = 130
"""The user interrupted the command (Ctrl-C)."""
