"""Typer application and CLI entry point for vaultoidc.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``login``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs the SIGINT handler, registers commands and
invokes the Typer app. :class:`~vaultoidc.exceptions.VaultOIDCError`
escaping a command exits with its ``exit_code``; any other exception is
written to a crash log under the data directory.

See Also:
    :mod:`vaultoidc.config`: Settings resolution.
    :mod:`vaultoidc.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from vaultoidc import __version__
from vaultoidc.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="vaultoidc",
    help="Log in to Vault through an OpenID Connect provider.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"vaultoidc {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Send the package's log records to stderr through Rich when verbose."""
    from rich.console import Console
    from rich.logging import RichHandler

    logger = logging.getLogger("vaultoidc")
    if not verbose:
        logger.setLevel(logging.WARNING)
        return
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
        )
    logger.setLevel(logging.DEBUG)


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
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

    Initialises the global :class:`~vaultoidc.output.OutputManager` and the
    package logger from the CLI flags.
    """
    from vaultoidc.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )
    _configure_logging(verbose)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly.

    ``sys.exit`` unwinds the stack, so a pending login's context manager
    still stops its redirect listener.
    """

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from vaultoidc.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def register_commands() -> None:
    """Attach the built-in sub-commands to :data:`app`."""
    from vaultoidc.commands.config import config_app
    from vaultoidc.commands.login import login_command

    app.command("login")(login_command)
    app.add_typer(config_app, name="config", help="Settings management.")


def main() -> None:
    """CLI entry point invoked by the ``vaultoidc`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from vaultoidc.exceptions import VaultOIDCError
        from vaultoidc.output import error

        if isinstance(exc, VaultOIDCError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
