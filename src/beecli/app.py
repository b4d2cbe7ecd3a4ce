"""Typer application and CLI entry point for beecli.

This module wires together the top-level Typer application and registers the
built-in commands (``login``, ``logout``, ``status``, ``me``, ``version``,
``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It invokes the Typer app and maps
:class:`~beecli.exceptions.BeeError` to its exit code. Unhandled exceptions
are written to a crash log under the data directory.

See Also:
    :mod:`beecli.config`: Environment and global configuration resolution.
    :mod:`beecli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime

import typer

from beecli import __version__
from beecli.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="bee",
    help="Bee command-line client.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"bee {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    staging: bool = typer.Option(
        False, "--staging", help="Use the staging environment."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~beecli.output.OutputManager` from CLI
    flags and stores the environment override in the Typer context so that
    sub-commands can read it via ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        staging: Select the staging environment (highest precedence).
        json_output: Force JSON output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from beecli.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["environment"] = "staging" if staging else None
    ctx.obj["verbose"] = verbose


@app.command("version")
def version_command() -> None:
    """Print the CLI version."""
    from beecli.output import print_data

    print_data(__version__)


# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from beecli.commands.auth import (  # noqa: E402
    login_command,
    logout_command,
    me_command,
    status_command,
)
from beecli.commands.config import config_app  # noqa: E402

app.command("login")(login_command)
app.command("logout")(logout_command)
app.command("status")(status_command)
app.command("me")(me_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from beecli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``bee`` console script.

    Invokes the Typer application. Unhandled
    :class:`~beecli.exceptions.BeeError` instances cause a clean exit with
    the error's ``exit_code``; cancellation prints ``Cancelled.`` and exits
    with 130. All other exceptions produce a crash log and a generic
    failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    from beecli.exceptions import BeeError, CancelledError
    from beecli.output import error

    try:
        app()
    except SystemExit:
        raise
    except (KeyboardInterrupt, CancelledError):
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except BeeError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
