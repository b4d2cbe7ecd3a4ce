"""Ephemeral X25519 keypairs for device pairing.

Each login attempt gets a fresh keypair from :func:`generate_keypair`. The
public half is sent with the pairing request; the approving device seals the
credential to it with NaCl ``box``. A keypair is never reused across attempts,
so an old pairing link can never decrypt a later token.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from dataclasses import dataclass, field

import nacl.public

from beecli.exceptions import CryptoError

KEY_SIZE = nacl.public.PrivateKey.SIZE


@dataclass(frozen=True)
class PairingKeyPair:
    """A Curve25519 keypair for one pairing attempt.

    The secret key is kept out of ``repr`` so that it cannot leak through
    debug output or tracebacks.
    """

    public_key: bytes
    secret_key: bytes = field(repr=False)

    @property
    def public_key_b64(self) -> str:
        return base64.b64encode(self.public_key).decode("ascii")

    @property
    def secret_key_b64(self) -> str:
        return base64.b64encode(self.secret_key).decode("ascii")

    @classmethod
    def from_b64(cls, public_key: str, secret_key: str) -> PairingKeyPair:
        """Restore a keypair persisted in :class:`~beecli.models.PairingState`.

        Raises:
            CryptoError: If either value is not base64 or not 32 bytes long.
        """
        try:
            public = base64.b64decode(public_key, validate=True)
            secret = base64.b64decode(secret_key, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CryptoError("Stored pairing keys are not valid base64.") from exc
        if len(public) != KEY_SIZE or len(secret) != KEY_SIZE:
            raise CryptoError("Stored pairing keys have the wrong length.")
        return cls(public_key=public, secret_key=secret)

    def fingerprint(self) -> str:
        """Short SHA-256 fingerprint of the public key, e.g. ``"3fa2 91bc 07de 4410"``.

        Shown next to the pairing link so the user can check that the
        approving device sees the same key.
        """
        digest = hashlib.sha256(self.public_key).hexdigest()[:16]
        return " ".join(digest[i : i + 4] for i in range(0, 16, 4))


def generate_keypair() -> PairingKeyPair:
    """Generate a fresh keypair from the operating system's CSPRNG."""
    private = nacl.public.PrivateKey.generate()
    return PairingKeyPair(
        public_key=bytes(private.public_key),
        secret_key=bytes(private),
    )
