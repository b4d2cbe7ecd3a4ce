"""Key-value secret storage scoped per environment.

Both the final credential and the in-flight pairing state live here, under
different *names* within the same *scope* (the environment name, e.g.
``"prod"`` or ``"staging"``).

Two backends are provided:

- :class:`FileSecretStore` -- one JSON file per scope under
  ``~/.local/share/beecli/secrets/<scope>.json`` (XDG) or the platform
  equivalent. Files are written atomically via
  :func:`~beecli.config.atomic_write` with ``0o600`` permissions so that
  secrets are never world-readable, even momentarily.
- :class:`KeyringSecretStore` -- the operating system keychain via
  :mod:`keyring`.

:func:`create_secret_store` picks one from the ``secret_backend`` setting.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import keyring
import keyring.errors

from beecli.config import atomic_write, get_data_dir
from beecli.exceptions import ConfigError

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "beecli"


class SecretStore(ABC):
    """Abstract ``get`` / ``set`` / ``delete`` contract for secret values."""

    @abstractmethod
    def get(self, scope: str, name: str) -> Optional[str]:
        """Return the stored value, or ``None`` if absent."""
        ...

    @abstractmethod
    def set(self, scope: str, name: str, value: str) -> None:
        """Store *value*, replacing any previous value."""
        ...

    @abstractmethod
    def delete(self, scope: str, name: str) -> None:
        """Remove the value. A no-op when it is already absent."""
        ...


def _secrets_dir() -> Path:
    """Return the secrets directory, creating it if needed."""
    path = get_data_dir() / "secrets"
    path.mkdir(parents=True, exist_ok=True)
    return path


class FileSecretStore(SecretStore):
    """Secret store backed by one ``0o600`` JSON file per scope.

    Args:
        directory: Where scope files live. Defaults to
            ``<data_dir>/secrets``.

    Example::

        store = FileSecretStore()
        store.set("prod", "token", "tok_abc123")
        assert store.get("prod", "token") == "tok_abc123"
    """

    def __init__(self, directory: Optional[Path] = None) -> None:
        self._directory = directory

    def path_for(self, scope: str) -> Path:
        """The filesystem path of *scope*'s JSON file."""
        directory = self._directory if self._directory is not None else _secrets_dir()
        return directory / f"{scope}.json"

    def get(self, scope: str, name: str) -> Optional[str]:
        value = self._read(scope).get(name)
        return value if isinstance(value, str) else None

    def set(self, scope: str, name: str, value: str) -> None:
        data = self._read(scope)
        data[name] = value
        self._write(scope, data)

    def delete(self, scope: str, name: str) -> None:
        data = self._read(scope)
        if name not in data:
            return
        del data[name]
        if data:
            self._write(scope, data)
        else:
            self.path_for(scope).unlink(missing_ok=True)

    def _read(self, scope: str) -> dict[str, object]:
        path = self.path_for(scope)
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.debug("Ignoring unreadable secret file %s: %s", path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, scope: str, data: dict[str, object]) -> None:
        text = json.dumps(data, indent=2) + "\n"
        atomic_write(self.path_for(scope), text, mode=0o600)


class KeyringSecretStore(SecretStore):
    """Secret store backed by the OS keychain.

    Each value is stored under service ``beecli`` with account
    ``<name>:<scope>`` (e.g. ``token:prod``).
    """

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self._service = service

    def get(self, scope: str, name: str) -> Optional[str]:
        try:
            return keyring.get_password(self._service, self._account(scope, name))
        except keyring.errors.KeyringError as exc:
            raise ConfigError(f"Keychain is unavailable: {exc}") from exc

    def set(self, scope: str, name: str, value: str) -> None:
        try:
            keyring.set_password(self._service, self._account(scope, name), value)
        except keyring.errors.KeyringError as exc:
            raise ConfigError(f"Keychain is unavailable: {exc}") from exc

    def delete(self, scope: str, name: str) -> None:
        try:
            keyring.delete_password(self._service, self._account(scope, name))
        except keyring.errors.PasswordDeleteError:
            pass
        except keyring.errors.KeyringError as exc:
            raise ConfigError(f"Keychain is unavailable: {exc}") from exc

    @staticmethod
    def _account(scope: str, name: str) -> str:
        return f"{name}:{scope}"


def create_secret_store(backend: str) -> SecretStore:
    """Return the secret store for the configured *backend*.

    Args:
        backend: ``"file"`` or ``"keyring"``.

    Raises:
        ConfigError: If *backend* is unknown.
    """
    if backend == "file":
        return FileSecretStore()
    if backend == "keyring":
        return KeyringSecretStore()
    raise ConfigError(f"Unknown secret backend '{backend}'. Use 'file' or 'keyring'.")
