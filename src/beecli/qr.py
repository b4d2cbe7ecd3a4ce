"""Terminal QR rendering for pairing links."""

from __future__ import annotations

import io

import qrcode
import qrcode.constants


def render_qr(data: str, invert: bool = True) -> str:
    """Render *data* as a QR code made of Unicode half-block characters.

    *invert* draws light modules on a dark background, which scans reliably
    on the usual dark terminal themes.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    buffer = io.StringIO()
    qr.print_ascii(out=buffer, invert=invert)
    return buffer.getvalue().rstrip("\n")
