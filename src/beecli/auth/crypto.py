"""Open (and, for the server side and tests, seal) encrypted pairing tokens.

A completed pairing returns ``encryptedToken``: base64 of a fixed-layout
buffer::

    [0]        version byte, must equal 1
    [1..25)    24-byte nonce
    [25..57)   32-byte ephemeral sender public key
    [57..]     NaCl box ciphertext (16-byte Poly1305 tag + sealed token)

Every failure here is fatal and never retried: a payload that is too short,
has another version, or fails authentication cannot become valid by asking
again.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional

import nacl.exceptions
import nacl.public
import nacl.utils

from beecli.exceptions import CryptoError

PAYLOAD_VERSION = 1
NONCE_SIZE = nacl.public.Box.NONCE_SIZE
PUBLIC_KEY_SIZE = nacl.public.PublicKey.SIZE
MAC_SIZE = 16
MIN_PAYLOAD_SIZE = 1 + NONCE_SIZE + PUBLIC_KEY_SIZE + MAC_SIZE

_INVALID = "Invalid encrypted token in pairing response."


def decrypt_token(encrypted_token_b64: str, secret_key: bytes) -> str:
    """Decrypt a pairing token sealed to our ephemeral public key.

    Args:
        encrypted_token_b64: The ``result.encryptedToken`` field, base64.
        secret_key: Our 32-byte ephemeral secret key.

    Returns:
        The credential, with surrounding whitespace removed.

    Raises:
        CryptoError: If the payload is malformed, uses an unsupported version,
            fails authentication, or decrypts to an empty string.
    """
    try:
        packed = base64.b64decode(encrypted_token_b64.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CryptoError(_INVALID) from exc

    if len(packed) < MIN_PAYLOAD_SIZE:
        raise CryptoError(_INVALID)

    if packed[0] != PAYLOAD_VERSION:
        raise CryptoError("Unsupported pairing payload version.")

    nonce_end = 1 + NONCE_SIZE
    key_end = nonce_end + PUBLIC_KEY_SIZE
    nonce = packed[1:nonce_end]
    ephemeral_public_key = packed[nonce_end:key_end]
    ciphertext = packed[key_end:]

    try:
        box = nacl.public.Box(
            nacl.public.PrivateKey(secret_key),
            nacl.public.PublicKey(ephemeral_public_key),
        )
        opened = box.decrypt(ciphertext, nonce)
    except nacl.exceptions.CryptoError as exc:
        raise CryptoError(_INVALID) from exc

    try:
        token = opened.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise CryptoError(_INVALID) from exc

    if not token:
        raise CryptoError(_INVALID)
    return token


def encrypt_token(
    token: str,
    recipient_public_key: bytes,
    nonce: Optional[bytes] = None,
) -> str:
    """Seal *token* to *recipient_public_key* in the version-1 payload layout.

    This is the approving device's half of the exchange. A fresh sender
    keypair is generated for every call.

    Args:
        token: The credential to deliver.
        recipient_public_key: The pairing request's 32-byte public key.
        nonce: Optional 24-byte nonce; random when omitted.

    Returns:
        The base64-encoded payload accepted by :func:`decrypt_token`.
    """
    sender = nacl.public.PrivateKey.generate()
    box = nacl.public.Box(sender, nacl.public.PublicKey(recipient_public_key))
    if nonce is None:
        nonce = nacl.utils.random(NONCE_SIZE)
    sealed = box.encrypt(token.encode("utf-8"), nonce)
    packed = bytes([PAYLOAD_VERSION]) + nonce + bytes(sender.public_key) + sealed.ciphertext
    return base64.b64encode(packed).decode("ascii")
