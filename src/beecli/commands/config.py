"""Config commands -- view and modify global configuration.

Provides the ``bee config`` sub-command group for reading, updating, and
resetting the user's global configuration file
(:class:`~beecli.models.GlobalConfig`). Settings control the default
environment, the secret-store backend, and the pairing and retry constants.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from beecli.config import (
    describe_validation_error,
    get_config_dir,
    load_global_config,
    save_global_config,
)
from beecli.exceptions import InvalidUsageError
from beecli.models import GlobalConfig
from beecli.output import info, print_json, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Prints the config directory path to stderr and the full configuration
    as JSON to stdout.

    Example::

        bee config show
    """
    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    print_json(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'pairing.poll_interval')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to the type of
    the existing field (bool, int, float, or str) and the updated config is
    validated before saving.

    Example::

        bee config set default_environment staging
        bee config set secret_backend keyring
        bee config set pairing.poll_interval 3
    """
    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            raise InvalidUsageError(f"Invalid config key: {key}")
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        raise InvalidUsageError(f"Unknown config key: {key}")

    current = target[final_key]
    if isinstance(current, bool):
        coerced: object = value.lower() in ("true", "1", "yes")
    elif isinstance(current, (int, float)):
        try:
            coerced = type(current)(value)
        except ValueError:
            raise InvalidUsageError(
                f"Expected {type(current).__name__} for {key}, got: {value}"
            ) from None
    elif isinstance(current, dict):
        raise InvalidUsageError(f"Cannot set a whole section: {key}")
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise InvalidUsageError(
            f"Invalid value for {key}: {describe_validation_error(exc)}"
        ) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Reset configuration to defaults.

    Example::

        bee config reset
        bee config reset --yes
    """
    if not yes:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
