"""Persist an in-flight pairing attempt so a restarted CLI can resume it.

The snapshot (:class:`~beecli.models.PairingState`) is stored as a single
JSON value named ``pairing-state`` in the environment's secret-store scope.
A missing or corrupt record reads as absent: a broken snapshot must never
block a fresh login.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from beecli.auth.secret_store import SecretStore
from beecli.models import PairingState

logger = logging.getLogger(__name__)

STATE_NAME = "pairing-state"


class PairingStateStore:
    """``load`` / ``save`` / ``clear`` for :class:`~beecli.models.PairingState`.

    Args:
        secrets: The backing :class:`~beecli.auth.secret_store.SecretStore`.

    Example::

        store = PairingStateStore(FileSecretStore())
        store.save("prod", state)
        assert store.load("prod") == state
        store.clear("prod")
    """

    def __init__(self, secrets: SecretStore) -> None:
        self._secrets = secrets

    def load(self, env: str) -> Optional[PairingState]:
        """Return the stored snapshot for *env*, or ``None`` if absent or unreadable."""
        raw = self._secrets.get(env, STATE_NAME)
        if not raw:
            return None
        try:
            return PairingState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.debug("Discarding corrupt pairing state for %s: %s", env, exc)
            return None

    def save(self, env: str, state: PairingState) -> None:
        self._secrets.set(env, STATE_NAME, state.model_dump_json(by_alias=True))

    def clear(self, env: str) -> None:
        self._secrets.delete(env, STATE_NAME)
