"""User-facing instructions for an in-flight pairing attempt.

Everything here goes to stderr through :mod:`beecli.output`, keeping stdout
free for command data. The pairing link itself is printed even under
``--quiet``: without it the user cannot approve the login.
"""

from __future__ import annotations

import math
import webbrowser
from datetime import datetime
from enum import Enum
from typing import Optional

from beecli.client.http import Clock, utc_now
from beecli.output import debug, print_text, warning
from beecli.qr import render_qr


class SessionStatus(str, Enum):
    """How the current login relates to any stored pairing attempt."""

    NEW = "new"
    RESUMED = "resumed"
    RESET = "reset"


_BANNERS = {
    SessionStatus.NEW: "[Starting new authentication session]",
    SessionStatus.RESUMED: "[Resuming previous authentication session]",
    SessionStatus.RESET: "[Previous authentication expired - starting a new session]",
}


def minutes_remaining(deadline: datetime, now: datetime) -> int:
    """Whole minutes until *deadline*, rounded up and never less than 1."""
    seconds = (deadline - now).total_seconds()
    return max(1, math.ceil(seconds / 60))


class PairingPresenter:
    """Print the welcome block, pairing link, and optional QR code.

    Args:
        show_qr: Render the pairing link as a terminal QR code.
        open_browser: Try to open the pairing link in the default browser.
        show_fingerprint: Print the public-key fingerprint under the link.
        clock: Current-time source for the "expires in" line.
    """

    def __init__(
        self,
        show_qr: bool = False,
        open_browser: bool = False,
        show_fingerprint: bool = True,
        clock: Clock = utc_now,
    ) -> None:
        self._show_qr = show_qr
        self._open_browser = open_browser
        self._show_fingerprint = show_fingerprint
        self._clock = clock

    def present(
        self,
        status: SessionStatus,
        pairing_url: str,
        deadline: datetime,
        fingerprint: Optional[str] = None,
    ) -> None:
        minutes = minutes_remaining(deadline, self._clock())
        plural = "" if minutes == 1 else "s"

        print_text(
            "\n".join(
                [
                    "Welcome to Bee AI!",
                    "",
                    _BANNERS[status],
                    "",
                    "This is an authentication flow for Bee CLI to connect a Bee account to it.",
                    "",
                    "To complete authentication, the device owner must authorize this connection.",
                    "There are two ways to do this:",
                    "",
                    "  1. Click on the authentication link below to open it in a browser",
                    "  2. Or visit the link on any device and scan the QR code shown on the page",
                    "",
                ]
            )
        )
        print_text(f"Authentication link: {pairing_url}", force=True)
        if fingerprint and self._show_fingerprint:
            print_text(f"Key fingerprint: {fingerprint}")

        if self._show_qr:
            print_text("")
            print_text(render_qr(pairing_url), force=True)

        if self._open_browser:
            self._launch_browser(pairing_url)

        print_text(
            "\n".join(
                [
                    "",
                    "Once the link is opened, follow the instructions to approve the connection.",
                    "",
                    f"This authentication request will expire in approximately {minutes} minute{plural}.",
                    "You can safely stop this process and restart it later to continue from where you left off,",
                    "as long as the request has not expired.",
                    "",
                    "Now waiting for you to approve the connection using the link above...",
                ]
            )
        )

    def _launch_browser(self, url: str) -> None:
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as exc:
            debug(f"Browser launch failed: {exc}")
            opened = False
        if not opened:
            warning("Could not open a browser. Open the authentication link manually.")
