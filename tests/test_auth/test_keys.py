"""Tests for ephemeral pairing keypairs."""

from __future__ import annotations

import base64

import nacl.public
import pytest

from beecli.auth.keys import KEY_SIZE, PairingKeyPair, generate_keypair
from beecli.exceptions import CryptoError


class TestGenerateKeypair:
    def test_key_sizes(self) -> None:
        keypair = generate_keypair()
        assert len(keypair.public_key) == KEY_SIZE == 32
        assert len(keypair.secret_key) == 32

    def test_public_key_matches_secret_key(self) -> None:
        keypair = generate_keypair()
        derived = nacl.public.PrivateKey(keypair.secret_key).public_key
        assert bytes(derived) == keypair.public_key

    def test_fresh_keypair_every_call(self) -> None:
        assert generate_keypair().public_key != generate_keypair().public_key

    def test_secret_key_not_in_repr(self) -> None:
        keypair = generate_keypair()
        assert keypair.secret_key_b64 not in repr(keypair)
        assert "secret_key" not in repr(keypair)


class TestFromB64:
    def test_restores_persisted_keypair(self) -> None:
        original = generate_keypair()
        restored = PairingKeyPair.from_b64(original.public_key_b64, original.secret_key_b64)
        assert restored == original

    def test_invalid_base64(self) -> None:
        with pytest.raises(CryptoError, match="not valid base64"):
            PairingKeyPair.from_b64("***", "***")

    def test_wrong_length(self) -> None:
        short = base64.b64encode(b"x" * 16).decode()
        with pytest.raises(CryptoError, match="wrong length"):
            PairingKeyPair.from_b64(short, short)


class TestFingerprint:
    def test_format(self) -> None:
        fingerprint = generate_keypair().fingerprint()
        groups = fingerprint.split(" ")
        assert len(groups) == 4
        assert all(len(group) == 4 for group in groups)
        int(fingerprint.replace(" ", ""), 16)

    def test_stable_for_same_key(self) -> None:
        keypair = PairingKeyPair(public_key=bytes(32), secret_key=bytes(32))
        assert keypair.fingerprint() == keypair.fingerprint()
        assert keypair.fingerprint() == "6668 7aad f862 bd77"
