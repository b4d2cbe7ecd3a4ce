"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for beecli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.beecli/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~beecli.models.GlobalConfig`
  JSON file storing the secret-store backend, pairing constants, and
  per-environment overrides.
* **Environments** -- :data:`ENVIRONMENTS` is the explicit map from
  environment name to :class:`~beecli.models.EnvironmentConfig` (API URL,
  pairing URLs, app id). Callers receive a resolved config object instead
  of branching on the environment name themselves.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, and the global config file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from beecli.exceptions import ConfigError
from beecli.models import EnvironmentConfig, GlobalConfig

_APP_NAME = "beecli"
_CONFIG_FILENAME = "config.json"

ENV_ENVIRONMENT = "BEE_ENV"
ENV_SECRET_BACKEND = "BEE_SECRET_BACKEND"
ENV_FINGERPRINT = "BEE_EMOJI_HASH"

ENVIRONMENTS: dict[str, EnvironmentConfig] = {
    "prod": EnvironmentConfig(
        name="prod",
        label="production",
        api_url="https://app-api-developer.ce.bee.amazon.dev",
        pairing_urls=["https://auth.beeai-services.com"],
        app_id="ph9fssu1kv1b0hns69fxf7rx",
        connect_host="bee.computer",
    ),
    "staging": EnvironmentConfig(
        name="staging",
        label="staging",
        api_url="https://developer.ce.korshaks.people.amazon.dev",
        pairing_urls=["https://public-api.korshaks.people.amazon.dev"],
        app_id="pk5z3uuzjpxj4f7frk6rsq2f",
        connect_host="bee.computer",
    ),
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/beecli/`` (default ``~/.config/beecli/``).
    On macOS/Windows: ``~/.beecli/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (secrets, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/beecli/`` (default ``~/.local/share/beecli/``).
    On macOS/Windows: ``~/.beecli/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.

    Args:
        path: Destination file.
        data: Text content to write.
        mode: Optional permission bits applied to the temp file before any
            content is written (e.g. ``0o600`` for secrets).
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def describe_validation_error(exc: ValidationError) -> str:
    """Summarise *exc* on one line as ``<loc>: <msg>`` for its first error."""
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    return f"{loc}: {first['msg']}" if loc else first["msg"]



def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~beecli.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid global config at {path}: {describe_validation_error(exc)}"
        ) from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Environments ---


def resolve_environment(name: str, config: Optional[GlobalConfig] = None) -> EnvironmentConfig:
    """Return the endpoint configuration for environment *name*.

    Built-in values from :data:`ENVIRONMENTS` are overlaid with any
    ``environments.<name>`` overrides from *config*.

    Args:
        name: Environment name (``"prod"`` or ``"staging"``).
        config: Global config carrying optional overrides.

    Returns:
        The resolved :class:`~beecli.models.EnvironmentConfig`.

    Raises:
        ConfigError: If *name* is unknown or the overrides fail validation.
    """
    base = ENVIRONMENTS.get(name)
    if base is None:
        available = ", ".join(sorted(ENVIRONMENTS))
        raise ConfigError(f"Unknown environment '{name}'. Available: {available}")

    overrides = config.environments.get(name) if config is not None else None
    if not overrides:
        return base
    try:
        return EnvironmentConfig.model_validate({**base.model_dump(), **overrides, "name": name})
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid override for environment '{name}': {describe_validation_error(exc)}"
        ) from exc


def resolve_settings(
    cli_environment: Optional[str] = None,
) -> tuple[GlobalConfig, EnvironmentConfig]:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``--staging``)
        2. Environment variables (``BEE_ENV``, ``BEE_SECRET_BACKEND``)
        3. User config (``~/.config/beecli/config.json``)
        4. Defaults

    Returns:
        A tuple of ``(global_config, environment_config)``.
    """
    global_cfg = load_global_config()

    env_backend = os.environ.get(ENV_SECRET_BACKEND)
    if env_backend:
        global_cfg.secret_backend = env_backend

    env_name = global_cfg.default_environment
    env_override = os.environ.get(ENV_ENVIRONMENT)
    if env_override:
        env_name = env_override.strip().lower()
    if cli_environment is not None:
        env_name = cli_environment

    return global_cfg, resolve_environment(env_name, global_cfg)


def fingerprint_enabled() -> bool:
    """Whether to show the public-key fingerprint next to the pairing link.

    Disabled by setting ``BEE_EMOJI_HASH`` to ``0``, ``false``, ``off`` or ``no``.
    """
    value = os.environ.get(ENV_FINGERPRINT, "").strip().lower()
    if not value:
        return True
    return value not in ("0", "false", "off", "no")
