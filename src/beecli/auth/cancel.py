"""Cooperative cancellation for the pairing flow.

A :class:`CancellationToken` is created once per command and handed to every
component that blocks: the HTTP retry loop, the poll loop, and the sleeps in
between. Each of those checks the token before doing work and waits on it
instead of calling :func:`time.sleep`, so that cancelling wakes a sleeping
component immediately.

A Ctrl-C arriving while a request is in flight surfaces as
:class:`KeyboardInterrupt` from inside :mod:`httpx`, which aborts the request;
callers treat it the same way as a fired token.
"""

from __future__ import annotations

import threading

from beecli.exceptions import CancelledError


class CancellationToken:
    """A one-shot, thread-safe cancellation flag.

    Example::

        token = CancellationToken()
        token.sleep(2.0)        # returns after 2 s, or raises if cancelled
        token.cancel()
        token.raise_if_cancelled()  # raises CancelledError
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Whether :meth:`cancel` has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the token. Idempotent."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`~beecli.exceptions.CancelledError` if the token has fired."""
        if self._event.is_set():
            raise CancelledError("Cancelled.")

    def sleep(self, seconds: float) -> None:
        """Block for *seconds*, waking early if the token fires.

        Raises:
            CancelledError: If the token fires before or during the wait.
        """
        self.raise_if_cancelled()
        if seconds > 0 and self._event.wait(seconds):
            raise CancelledError("Cancelled.")
