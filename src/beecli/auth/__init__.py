"""Device-pairing authentication for beecli.

The main entry points are:

- :class:`PairingOrchestrator` -- runs one login: resume or start a pairing
  attempt, poll it, decrypt and verify the delivered credential.
- :class:`PairingTransport` -- the pairing request/poll HTTP call.
- :class:`CredentialVerifier` -- resolves a credential to its profile.
- :class:`CredentialStore` and :class:`PairingStateStore` -- persistence on
  top of a :class:`SecretStore` backend.

Typical usage::

    from beecli.auth import PairingOrchestrator

    result = PairingOrchestrator(env, transport, states, creds, verifier, presenter).login()
    print(result.profile.display_name)
"""

from beecli.auth.cancel import CancellationToken
from beecli.auth.credentials import CredentialStore, mask_token
from beecli.auth.crypto import decrypt_token, encrypt_token
from beecli.auth.keys import PairingKeyPair, generate_keypair
from beecli.auth.pairing import LoginResult, PairingOrchestrator
from beecli.auth.pairing_state import PairingStateStore
from beecli.auth.presenter import PairingPresenter, SessionStatus
from beecli.auth.secret_store import (
    FileSecretStore,
    KeyringSecretStore,
    SecretStore,
    create_secret_store,
)
from beecli.auth.transport import PairingTransport
from beecli.auth.verifier import CredentialVerifier

__all__ = [
    "CancellationToken",
    "CredentialStore",
    "CredentialVerifier",
    "FileSecretStore",
    "KeyringSecretStore",
    "LoginResult",
    "PairingKeyPair",
    "PairingOrchestrator",
    "PairingPresenter",
    "PairingStateStore",
    "PairingTransport",
    "SecretStore",
    "SessionStatus",
    "create_secret_store",
    "decrypt_token",
    "encrypt_token",
    "generate_keypair",
    "mask_token",
]
