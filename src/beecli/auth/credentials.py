"""Persistent API credential, one per environment.

The credential is an opaque bearer string produced by the pairing flow (or
supplied with ``bee login --token``) and read on every authenticated command.
It is never printed in full; use :func:`mask_token` for display.
"""

from __future__ import annotations

from typing import Optional

from beecli.auth.secret_store import SecretStore

TOKEN_NAME = "token"


def mask_token(token: str) -> str:
    """Return *token* with everything but the first and last four characters hidden.

    Example::

        >>> mask_token("tok_abc123")
        'tok_...c123'
        >>> mask_token("short")
        '********'
    """
    trimmed = token.strip()
    if len(trimmed) <= 8:
        return "********"
    return f"{trimmed[:4]}...{trimmed[-4:]}"


class CredentialStore:
    """Read/write the API credential for each environment.

    Args:
        secrets: The backing :class:`~beecli.auth.secret_store.SecretStore`.
    """

    def __init__(self, secrets: SecretStore) -> None:
        self._secrets = secrets

    def load(self, env: str) -> Optional[str]:
        """Return the stored credential for *env*, or ``None`` if absent or blank."""
        value = self._secrets.get(env, TOKEN_NAME)
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None

    def save(self, env: str, token: str) -> None:
        self._secrets.set(env, TOKEN_NAME, token.strip())

    def clear(self, env: str) -> None:
        self._secrets.delete(env, TOKEN_NAME)
